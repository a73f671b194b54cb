"""
Execution Engine for Nodeflow Core
Runs pipeline graphs node by node as their inputs become available
"""
from .values import STOP, is_stop
from .node_base import BaseNode, ExecutionContext, Port, PortInfo
from .node_registry import (
    NODE_REGISTRY,
    UnknownNodeTypeError,
    register_node,
    get_node_class,
    get_node_definition,
    create_node_payload,
)
from .document import PipelineDocument, PortConnection
from .snapshot import GraphNode, build_snapshot
from .engine import ExecutionEngine, AlreadyExecutedError
from .runner import (
    RunState,
    ExecutionRegistry,
    execution_registry,
    start_execution,
    stop_execution,
    get_snapshot,
)

__all__ = [
    'STOP',
    'is_stop',
    'BaseNode',
    'ExecutionContext',
    'Port',
    'PortInfo',
    'NODE_REGISTRY',
    'UnknownNodeTypeError',
    'register_node',
    'get_node_class',
    'get_node_definition',
    'create_node_payload',
    'PipelineDocument',
    'PortConnection',
    'GraphNode',
    'build_snapshot',
    'ExecutionEngine',
    'AlreadyExecutedError',
    'RunState',
    'ExecutionRegistry',
    'execution_registry',
    'start_execution',
    'stop_execution',
    'get_snapshot',
]
