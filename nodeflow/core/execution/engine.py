"""
Execution Engine for Nodeflow Core
Runs one snapshot of a pipeline graph, unlocking nodes as their producers finish
"""
import asyncio
import time
from typing import Dict, List, Optional, Iterable, Set

from ..types import NodeID, NodeStatus, NodeSnapshot
from .document import PipelineDocument
from .node_base import ExecutionContext
from .node_registry import get_node_definition
from .snapshot import GraphNode, Snapshot, build_snapshot, root_node_ids
from .values import InputValues, ExecutionResult, PipelineValue, is_stop, get_input_text
from .nodes.list_iterator import ListIteratorNode, parse_items, apply_template
from ...utils.logger import get_logger

logger = get_logger(__name__)


class AlreadyExecutedError(RuntimeError):
    """Raised when execute() is called on an engine that has already run"""
    pass


def error_message(exc: BaseException) -> str:
    """Message recorded on a failed node"""
    return str(exc) or exc.__class__.__name__


class ExecutionEngine:
    """
    Single-use scheduler for one run

    Features:
    - Backward-built snapshot: only what the starting nodes need is run
    - Readiness by fan-out: a producer finishing is what tries its consumers
    - STOP short-circuit: a STOP input leaves the consumer waiting, not failed
    - Failure isolation: a failing node only blocks its own dependents
    - List iteration: re-runs the iterator's downstream once per item, after
      the rest of the run has settled; nested iterators run inline per item

    Every state transition happens synchronously before an await, so the
    "state must be waiting" guard is enough to keep a node from starting twice.
    """

    def __init__(self, document: PipelineDocument, starting_ids: Iterable[NodeID]):
        """
        Initialize execution engine

        Args:
            document: Live graph the run is built from and reports to
            starting_ids: Node ids that seed the run
        """
        self.document = document
        self.starting_ids: List[NodeID] = list(dict.fromkeys(starting_ids))
        self.state: str = 'waiting'
        self._nodes: Snapshot = build_snapshot(document, self.starting_ids)
        # List iterators that became ready; they run once everything else has settled
        self._deferred: List[NodeID] = []

    @property
    def is_executing(self) -> bool:
        return self.state == 'executing'

    async def execute(self) -> None:
        """
        Run the snapshot to completion (or until stopped)

        Node failures are recorded on the nodes and never raised from here.

        Raises:
            AlreadyExecutedError: If this engine has already been executed
        """
        if self.state != 'waiting':
            raise AlreadyExecutedError("ExecutionEngine can only be executed once")

        start_time = time.time()
        self.state = 'executing'
        logger.info(f"Executing {len(self._nodes)} node(s) in document {self.document.document_id}")

        # Roots are included so that starting from a sink still runs its producers
        seeds = list(dict.fromkeys(self.starting_ids + root_node_ids(self._nodes)))
        try:
            await asyncio.gather(*(self.try_execute(node_id) for node_id in seeds))
            while self._deferred and self.state == 'executing':
                pending, self._deferred = self._deferred, []
                await asyncio.gather(*(self._run_list_iterator(node_id) for node_id in pending))
        finally:
            self.state = 'stopped'
            failed = sum(1 for node in self._nodes.values() if node.state == 'failed')
            logger.info(
                f"Execution of document {self.document.document_id} finished in "
                f"{time.time() - start_time:.3f}s ({failed} failed)"
            )

    def stop(self) -> None:
        """Stop the run; in-flight compute calls finish but nothing new starts"""
        if self.state != 'stopped':
            logger.debug(f"Stopping execution of document {self.document.document_id}")
        self.state = 'stopped'

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _resolve_inputs(self, node: GraphNode) -> Optional[InputValues]:
        """
        Collect a node's inputs from its producers

        Returns:
            Inputs keyed by sink port id, or None if the node is not ready
        """
        inputs: InputValues = {}
        ports = get_node_definition(node.payload).ports(node.payload)

        for connection in node.incoming():
            dependency = self._nodes.get(connection.connected_node_id)
            if dependency is not None:
                if dependency.state != 'executed':
                    return None
                value = (dependency.outputs or {}).get(connection.connected_port_id)
                if is_stop(value):
                    return None
            else:
                # Producer is outside the snapshot: read what it currently displays
                logger.debug(
                    f"Node {node.node_id}: producer {connection.connected_node_id} is not part of the run, "
                    f"using its preview value"
                )
                info = self.document.get_output_info(connection.connected_node_id).get(connection.connected_port_id)
                if info is None or is_stop(info.value):
                    return None
                value = info.value

            port = ports.get(connection.own_port_id)
            if port is not None and port.multi:
                inputs.setdefault(connection.own_port_id, []).append(value)
            else:
                inputs[connection.own_port_id] = value

        return inputs

    async def try_execute(self, node_id: NodeID, inline: bool = False) -> None:
        """
        Run a node if all of its inputs are available, then try its dependents

        Safe to call redundantly: anything other than a waiting node in an
        executing run is a no-op.

        Args:
            node_id: Node to try
            inline: Set inside a list iterator's per-item branch; a nested
                list iterator is then driven immediately instead of deferred
        """
        if self.state != 'executing':
            return

        node = self._nodes.get(node_id)
        if node is None or node.state != 'waiting':
            return

        inputs = self._resolve_inputs(node)
        if inputs is None:
            return

        definition = get_node_definition(node.payload)
        if isinstance(definition, ListIteratorNode):
            if inline:
                await self._execute_list_iterator(node, inputs)
            elif node_id not in self._deferred:
                self._deferred.append(node_id)
            return

        self._nodes[node_id] = node.with_state('executing')
        self.document.set_busy(node_id, True)
        logger.debug(f"Node {node_id} ({node.node_type}) executing")

        start_time = time.time()
        try:
            context = ExecutionContext(document=self.document, node_id=node_id)
            outputs = await definition.compute(node.payload, inputs, context)
            self._nodes[node_id] = node.with_state('executed', outputs=dict(outputs or {}))
            logger.debug(f"Node {node_id} ({node.node_type}) executed in {time.time() - start_time:.3f}s")
        except Exception as e:
            self._nodes[node_id] = node.with_state('failed', error=error_message(e))
            logger.error(f"Node {node_id} ({node.node_type}) failed: {error_message(e)}", exc_info=True)
            return
        finally:
            self.document.set_busy(node_id, False)

        await asyncio.gather(*(self.try_execute(c.connected_node_id, inline) for c in node.outgoing()))

    # ------------------------------------------------------------------
    # List iteration
    # ------------------------------------------------------------------

    async def _run_list_iterator(self, node_id: NodeID) -> None:
        if self.state != 'executing':
            return
        node = self._nodes.get(node_id)
        if node is None or node.state != 'waiting':
            return
        inputs = self._resolve_inputs(node)
        if inputs is not None:
            await self._execute_list_iterator(node, inputs)

    async def _execute_list_iterator(self, node: GraphNode, inputs: InputValues) -> None:
        """
        Drive a list iterator: run its downstream once per item

        For each item the iterator publishes {current_item, output}, runs the
        dependents of current_item one by one, takes the first result they
        produced as the running output, republishes it and runs the dependents
        of output. Progress is written back to the iterator's payload.
        """
        node_id = node.node_id
        items = parse_items(node.payload.get('items'))
        template = get_input_text(inputs, 'template')

        if not items:
            self._nodes[node_id] = node.with_state('executed', outputs={'output': None, 'current_item': None})
            self.document.update_node(
                node_id,
                lambda payload: {**payload, 'completedCount': 0, 'totalCount': 0, 'lastResultUrl': None}
            )
            return

        self._nodes[node_id] = node.with_state('executing')
        self.document.set_busy(node_id, True)
        logger.debug(f"List iterator {node_id} starting over {len(items)} item(s)")

        current_item_targets = [c.connected_node_id for c in node.outgoing() if c.own_port_id == 'current_item']
        output_targets = [c.connected_node_id for c in node.outgoing() if c.own_port_id == 'output']

        last_result: PipelineValue = None
        try:
            for i, raw_item in enumerate(items):
                if self.state != 'executing':
                    return

                item = apply_template(template, raw_item)
                if i > 0:
                    self._reset_downstream_to_waiting(node_id)

                self._nodes[node_id] = node.with_state('executed', outputs={'current_item': item, 'output': last_result})
                for target in current_item_targets:
                    await self.try_execute(target, inline=True)

                for target in current_item_targets:
                    harvested = self._harvest_result(target)
                    if harvested is not None:
                        last_result = harvested
                        break

                self._nodes[node_id] = node.with_state('executed', outputs={'current_item': item, 'output': last_result})
                for target in output_targets:
                    await self.try_execute(target, inline=True)

                completed = i + 1
                result_url = last_result if isinstance(last_result, str) else None
                self.document.update_node(
                    node_id,
                    lambda payload: {
                        **payload,
                        'completedCount': completed,
                        'totalCount': len(items),
                        'lastResultUrl': result_url,
                    }
                )
                self.document.set_stale(node_id, completed < len(items))
                logger.debug(f"List iterator {node_id} completed item {completed}/{len(items)}")

            self._nodes[node_id] = node.with_state(
                'executed',
                outputs={'current_item': items[-1], 'output': last_result}
            )
        except Exception as e:
            self._nodes[node_id] = node.with_state('failed', error=error_message(e))
            logger.error(f"List iterator {node_id} failed: {error_message(e)}", exc_info=True)
        finally:
            self.document.set_busy(node_id, False)

    def _harvest_result(self, node_id: NodeID) -> PipelineValue:
        """Result of a per-item dependent: its 'output' port, else its first port"""
        executed = self._nodes.get(node_id)
        if executed is None or executed.state != 'executed' or not executed.outputs:
            return None
        outputs = executed.outputs
        value = outputs.get('output')
        if value is None:
            value = next(iter(outputs.values()), None)
        if is_stop(value):
            return None
        return value

    def _reset_downstream_to_waiting(self, node_id: NodeID) -> None:
        """Put everything reachable forward from a node back to waiting, except failed nodes"""
        reached: Set[NodeID] = set()
        to_visit = [node_id]
        while to_visit:
            current = to_visit.pop()
            if current in reached:
                continue
            node = self._nodes.get(current)
            if node is None:
                continue
            reached.add(current)
            to_visit.extend(c.connected_node_id for c in node.outgoing())

        reached.discard(node_id)
        for current in reached:
            node = self._nodes[current]
            if node.state != 'failed':
                self._nodes[current] = node.with_state('waiting')

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_node_status(self, node_id: NodeID) -> Optional[NodeStatus]:
        node = self._nodes.get(node_id)
        return node.state if node is not None else None

    def get_node_outputs(self, node_id: NodeID) -> Optional[ExecutionResult]:
        node = self._nodes.get(node_id)
        return node.outputs if node is not None else None

    def get_node_snapshot(self, node_id: NodeID) -> Optional[NodeSnapshot]:
        """Status and own error of one node, or None if it is not part of the run"""
        node = self._nodes.get(node_id)
        if node is None:
            return None
        return {
            'status': node.state,
            'error': node.error if node.state == 'failed' else None,
        }

    def get_snapshot_by_node_id(self) -> Dict[NodeID, NodeSnapshot]:
        """
        Status of every node in the run

        Waiting nodes with a failed producer carry a synthesized
        "Blocked by upstream failure (<type>)." message.
        """
        return {
            node_id: {
                'status': node.state,
                'error': node.error if node.state == 'failed' else self._blocking_failure_message(node),
            }
            for node_id, node in self._nodes.items()
        }

    def _blocking_failure_message(self, node: GraphNode) -> Optional[str]:
        if node.state != 'waiting':
            return None
        for connection in node.incoming():
            dependency = self._nodes.get(connection.connected_node_id)
            if dependency is not None and dependency.state == 'failed':
                return f"Blocked by upstream failure ({dependency.node_type})."
        return None

    def node_ids(self) -> List[NodeID]:
        return list(self._nodes.keys())
