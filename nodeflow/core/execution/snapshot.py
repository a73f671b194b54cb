"""
Execution graph snapshot
The subgraph a run needs, materialized once when the run is created
"""
from dataclasses import dataclass, replace
from typing import Dict, Any, List, Iterable, Optional, TYPE_CHECKING

from ..types import NodeID, NodeStatus
from .document import PortConnection
from .values import ExecutionResult

if TYPE_CHECKING:
    from .document import PipelineDocument


@dataclass(frozen=True)
class GraphNode:
    """
    One node of a run

    Transitions produce a new GraphNode (see with_state) so that a reference
    held across an await never observes a half-applied change.
    """
    node_id: NodeID
    state: NodeStatus
    payload: Dict[str, Any]
    connections: List[PortConnection]
    outputs: Optional[ExecutionResult] = None
    error: Optional[str] = None

    @property
    def node_type(self) -> str:
        return self.payload.get('type', 'unknown')

    def incoming(self) -> List[PortConnection]:
        """Sink-side connections in ascending order"""
        return sorted((c for c in self.connections if c.terminal == 'end'), key=lambda c: c.order)

    def outgoing(self) -> List[PortConnection]:
        return [c for c in self.connections if c.terminal == 'start']

    def with_state(self, state: NodeStatus, outputs: Optional[ExecutionResult] = None, error: Optional[str] = None) -> "GraphNode":
        return replace(self, state=state, outputs=outputs, error=error)


Snapshot = Dict[NodeID, GraphNode]


def build_snapshot(document: 'PipelineDocument', starting_ids: Iterable[NodeID]) -> Snapshot:
    """
    Build the induced subgraph needed to compute the starting nodes

    Walks incoming connections backward from the starting ids. Each node is
    fetched and recorded at most once, as "waiting", with its full connection
    list. Ids that no longer exist or are not recognized node kinds are
    skipped silently.

    Args:
        document: Live graph to read from
        starting_ids: Node ids that seed the run

    Returns:
        Map of node id -> GraphNode
    """
    snapshot: Snapshot = {}
    to_visit = list(starting_ids)

    while to_visit:
        node_id = to_visit.pop()
        if node_id in snapshot:
            continue

        payload = document.get_node(node_id)
        if payload is None or document.get_definition(node_id) is None:
            continue

        connections = document.get_port_connections(node_id)
        snapshot[node_id] = GraphNode(
            node_id=node_id,
            state='waiting',
            payload=payload,
            connections=connections,
        )

        for connection in connections:
            if connection.terminal == 'end':
                to_visit.append(connection.connected_node_id)

    return snapshot


def root_node_ids(snapshot: Snapshot) -> List[NodeID]:
    """Nodes of a snapshot with no producer inside the snapshot"""
    return [
        node_id for node_id, node in snapshot.items()
        if not any(c.connected_node_id in snapshot for c in node.incoming())
    ]
