"""
Type definitions for Nodeflow Core

This module provides:
- Type aliases for common identifiers and values
- TypedDict for the serialized graph (what the canvas saves and the API accepts)
- TypedDict for status snapshots handed back to the display layer
"""
from typing import TypedDict, TypeAlias, Optional, Dict, Any, List, Union, Literal
from typing_extensions import NotRequired


# ============================================================================
# Type Aliases
# ============================================================================

NodeID: TypeAlias = str
PortID: TypeAlias = str
ConnectionID: TypeAlias = str
DocumentID: TypeAlias = str

# Scalar value carried on an edge
PipelineValue: TypeAlias = Union[str, int, float, bool, None]

PortTerminal: TypeAlias = Literal["start", "end"]
PortDataType: TypeAlias = Literal["text", "number", "boolean", "model", "image", "any"]
NodeStatus: TypeAlias = Literal["waiting", "executing", "executed", "failed"]


# ============================================================================
# Serialized Graph
# ============================================================================

class NodeData(TypedDict):
    """A node as stored on the canvas. Every key other than 'id' is payload."""
    id: NodeID
    type: str  # Node kind (e.g., "text", "generate", "list_iterator")
    position: NotRequired[Dict[str, float]]  # {"x": 0.0, "y": 0.0}


class ConnectionData(TypedDict):
    """Connection from a source port on one node to a sink port on another"""
    id: NotRequired[ConnectionID]
    from_node: NodeID
    from_port: PortID
    to_node: NodeID
    to_port: PortID
    order: NotRequired[int]  # Tie-break for multi sink ports (ascending)


class NodeGraph(TypedDict):
    """Complete pipeline graph"""
    nodes: List[Dict[str, Any]]
    connections: List[ConnectionData]
    id: NotRequired[str]
    name: NotRequired[str]


# ============================================================================
# Execution Snapshots
# ============================================================================

class NodeSnapshot(TypedDict):
    """Status of one node in the most recent run"""
    status: NodeStatus
    error: Optional[str]


class FailedNodeEntry(TypedDict):
    """One row of the end-of-run error summary"""
    node_id: NodeID
    label: str
    error: str


class RunStatus(TypedDict):
    """Status of a document's execution, as reported to the host"""
    running: bool
    run_id: int
    last_completed_run_id: int
    nodes: Dict[NodeID, NodeSnapshot]
