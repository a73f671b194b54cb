"""
Execution Registry for Nodeflow Core
Tracks the current run and the last known node statuses of every document
"""
import asyncio
import threading
from typing import Dict, Optional, List, Set, Callable, Iterable, Tuple
from dataclasses import dataclass, field

from .engine import ExecutionEngine
from .document import PipelineDocument
from ..types import NodeID, DocumentID, NodeSnapshot, FailedNodeEntry, RunStatus
from ...utils.logger import get_logger

logger = get_logger(__name__)

SnapshotListener = Callable[[DocumentID, Dict[NodeID, NodeSnapshot]], None]


@dataclass
class RunState:
    """Run-state record of one document"""
    running_graph: Optional[ExecutionEngine] = None
    last_run_by_node: Dict[NodeID, NodeSnapshot] = field(default_factory=dict)
    run_id: int = 0
    last_completed_run_id: int = 0
    # Error summary is hidden for runs up to and including this id
    dismissed_run_id: int = 0


class ExecutionRegistry:
    """
    Process-wide map from document id to its RunState

    Features:
    - Lazy record creation, explicit disposal
    - Starting a run supersedes (stops, without waiting for) the previous one
    - A finishing run only updates the record if it is still the current one
    - End-of-run error summary, dismissed per run id

    Every read-modify-write of a record happens under one lock together with
    the "is this engine still current" check, so completions of superseded
    runs can never overwrite a newer run's bookkeeping.
    """

    def __init__(self):
        self._states: Dict[DocumentID, RunState] = {}
        self._lock = threading.Lock()
        self._listeners: List[SnapshotListener] = []
        # Strong references to runs launched in the background
        self._tasks: Set[asyncio.Task] = set()

    def get_state(self, document_id: DocumentID) -> RunState:
        """Get the record for a document, creating it on first access"""
        with self._lock:
            return self._get_or_create(document_id)

    def _get_or_create(self, document_id: DocumentID) -> RunState:
        state = self._states.get(document_id)
        if state is None:
            state = RunState()
            self._states[document_id] = state
        return state

    # ------------------------------------------------------------------
    # Run control
    # ------------------------------------------------------------------

    def begin_execution(self, document: PipelineDocument, starting_ids: Iterable[NodeID]) -> Tuple[int, ExecutionEngine]:
        """
        Create the engine for a new run and make it current

        Any previous run of the document is stopped and discarded; its
        in-flight work is not awaited.

        Returns:
            (run_id, engine) - pass both to run_execution()
        """
        engine = ExecutionEngine(document, starting_ids)
        document_id = document.document_id

        with self._lock:
            state = self._get_or_create(document_id)
            previous = state.running_graph
            state.run_id += 1
            run_id = state.run_id
            if previous is not None:
                previous.stop()
            state.running_graph = engine
            state.last_run_by_node = engine.get_snapshot_by_node_id()
            snapshot = dict(state.last_run_by_node)

        if previous is not None:
            logger.info(f"Run {run_id - 1} of document {document_id} superseded by run {run_id}")
        logger.info(f"Starting run {run_id} of document {document_id} from {len(engine.starting_ids)} node(s)")
        self._notify(document_id, snapshot)
        return run_id, engine

    async def run_execution(self, document_id: DocumentID, run_id: int, engine: ExecutionEngine) -> None:
        """Execute an engine created by begin_execution() and record its outcome"""
        try:
            await engine.execute()
        finally:
            with self._lock:
                state = self._states.get(document_id)
                current = state is not None and state.running_graph is engine
                if current:
                    state.running_graph = None
                    state.last_run_by_node = engine.get_snapshot_by_node_id()
                    state.last_completed_run_id = run_id
                    snapshot = dict(state.last_run_by_node)

            if current:
                logger.info(f"Run {run_id} of document {document_id} completed")
                self._notify(document_id, snapshot)
            else:
                logger.debug(f"Run {run_id} of document {document_id} finished after being superseded")

    async def start_execution(self, document: PipelineDocument, starting_ids: Iterable[NodeID]) -> int:
        """
        Start a run and wait for it to finish

        Args:
            document: Document to run
            starting_ids: Node ids that seed the run

        Returns:
            The run id
        """
        run_id, engine = self.begin_execution(document, starting_ids)
        await self.run_execution(document.document_id, run_id, engine)
        return run_id

    def launch_execution(self, document: PipelineDocument, starting_ids: Iterable[NodeID]) -> int:
        """
        Start a run in the background on the running event loop

        Returns:
            The run id (available immediately)
        """
        run_id, engine = self.begin_execution(document, starting_ids)
        task = asyncio.get_running_loop().create_task(
            self.run_execution(document.document_id, run_id, engine)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return run_id

    def stop_execution(self, document_id: DocumentID) -> Optional[int]:
        """
        Stop the current run of a document, if any

        The last-run snapshot is frozen as it was at the moment of stopping.

        Returns:
            The id of the stopped run, or None if nothing was running
        """
        with self._lock:
            state = self._states.get(document_id)
            if state is None or state.running_graph is None:
                return None
            engine = state.running_graph
            state.last_run_by_node = engine.get_snapshot_by_node_id()
            engine.stop()
            state.running_graph = None
            state.last_completed_run_id = state.run_id
            run_id = state.run_id
            snapshot = dict(state.last_run_by_node)

        logger.info(f"Run {run_id} of document {document_id} stopped")
        self._notify(document_id, snapshot)
        return run_id

    def dispose(self, document_id: DocumentID) -> None:
        """Stop any run of a document and drop its record"""
        with self._lock:
            state = self._states.pop(document_id, None)
        if state is not None and state.running_graph is not None:
            state.running_graph.stop()
        logger.debug(f"Disposed run state of document {document_id}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_running(self, document_id: DocumentID) -> bool:
        with self._lock:
            state = self._states.get(document_id)
            return state is not None and state.running_graph is not None

    def get_snapshot(self, document_id: DocumentID) -> Dict[NodeID, NodeSnapshot]:
        """
        Per-node status of the most recent run

        Live from the running engine when there is one, else the snapshot
        frozen when the last run completed or was stopped.
        """
        with self._lock:
            state = self._states.get(document_id)
            if state is None:
                return {}
            if state.running_graph is not None:
                return state.running_graph.get_snapshot_by_node_id()
            return dict(state.last_run_by_node)

    def get_status(self, document_id: DocumentID) -> RunStatus:
        """Run counters plus the per-node snapshot"""
        with self._lock:
            state = self._get_or_create(document_id)
            running = state.running_graph is not None
            nodes = state.running_graph.get_snapshot_by_node_id() if running else dict(state.last_run_by_node)
            return {
                'running': running,
                'run_id': state.run_id,
                'last_completed_run_id': state.last_completed_run_id,
                'nodes': nodes,
            }

    def get_failed_nodes(self, document: PipelineDocument) -> List[FailedNodeEntry]:
        """
        End-of-run error summary

        Lists the failed nodes of the last completed run, or nothing once that
        run's errors have been dismissed.
        """
        with self._lock:
            state = self._states.get(document.document_id)
            if state is None or state.last_completed_run_id <= state.dismissed_run_id:
                return []
            snapshot = dict(state.last_run_by_node)

        failed: List[FailedNodeEntry] = []
        for node_id, entry in snapshot.items():
            if entry['status'] != 'failed':
                continue
            label = document.describe(node_id)[1] if document.has_node(node_id) else node_id
            failed.append({
                'node_id': node_id,
                'label': label,
                'error': entry['error'] or 'Unknown error',
            })
        return failed

    def dismiss_errors(self, document_id: DocumentID) -> None:
        """Hide the error summary until a later run completes"""
        with self._lock:
            state = self._get_or_create(document_id)
            state.dismissed_run_id = state.last_completed_run_id

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def add_snapshot_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a callback fired with (document_id, snapshot) after every run transition

        Returns:
            Function that unregisters the listener
        """
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self, document_id: DocumentID, snapshot: Dict[NodeID, NodeSnapshot]) -> None:
        for listener in list(self._listeners):
            try:
                listener(document_id, snapshot)
            except Exception as e:
                logger.error(f"Snapshot listener failed for document {document_id}: {e}", exc_info=True)


# Default registry for hosts that do not manage their own
execution_registry = ExecutionRegistry()


async def start_execution(document: PipelineDocument, starting_ids: Iterable[NodeID]) -> int:
    """Start a run of a document on the default registry and wait for it"""
    return await execution_registry.start_execution(document, starting_ids)


def stop_execution(document_id: DocumentID) -> Optional[int]:
    """Stop the current run of a document on the default registry"""
    return execution_registry.stop_execution(document_id)


def get_snapshot(document_id: DocumentID) -> Dict[NodeID, NodeSnapshot]:
    """Per-node status of a document's most recent run on the default registry"""
    return execution_registry.get_snapshot(document_id)
