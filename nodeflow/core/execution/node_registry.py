"""
Node registry for execution engine
Maps node type strings to node implementations
"""
from typing import Dict, Type, Optional, Any
from .node_base import BaseNode


class UnknownNodeTypeError(ValueError):
    """Raised when a payload names a node type that is not registered"""
    pass


# Registry mapping node type -> node class
NODE_REGISTRY: Dict[str, Type[BaseNode]] = {}

# Node kinds are stateless, so one instance per type is shared
_INSTANCES: Dict[str, BaseNode] = {}


def register_node(node_type: str, node_class: Type[BaseNode]):
    """
    Register a node type

    Args:
        node_type: String identifier for the node type (e.g., "generate")
        node_class: Node class that extends BaseNode
    """
    NODE_REGISTRY[node_type] = node_class
    _INSTANCES.pop(node_type, None)


def get_node_class(node_type: str) -> Optional[Type[BaseNode]]:
    """
    Get node class for a given type

    Args:
        node_type: String identifier for the node type

    Returns:
        Node class or None if not found
    """
    return NODE_REGISTRY.get(node_type)


def get_node_definition(node: Any) -> BaseNode:
    """
    Get the node implementation for a payload or a type string

    Args:
        node: Payload dict (with a "type" key) or the type string itself

    Returns:
        Shared BaseNode instance for that type

    Raises:
        UnknownNodeTypeError: If the type is not registered
    """
    node_type = node if isinstance(node, str) else (node or {}).get('type')
    definition = _INSTANCES.get(node_type)
    if definition is None:
        node_class = NODE_REGISTRY.get(node_type)
        if node_class is None:
            raise UnknownNodeTypeError(f"Unknown node type: {node_type}")
        definition = node_class()
        _INSTANCES[node_type] = definition
    return definition


def create_node_payload(node_type: str, **overrides) -> Dict[str, Any]:
    """Default payload for a node type with optional field overrides"""
    payload = get_node_definition(node_type).get_default()
    payload.update(overrides)
    return payload


# Import and register all node types
# This ensures nodes are registered when the module is imported
def _register_all_nodes():
    """Register all node types"""
    from .nodes.text import TextNode
    from .nodes.number import NumberNode
    from .nodes.boolean import BooleanNode
    from .nodes.enum import EnumNode
    from .nodes.model import ModelNode
    from .nodes.generate import GenerateNode
    from .nodes.preview import PreviewNode
    from .nodes.join import JoinNode
    from .nodes.delay import DelayNode
    from .nodes.random_number import RandomNode
    from .nodes.repeater import RepeaterNode
    from .nodes.switch import SwitchNode
    from .nodes.list_iterator import ListIteratorNode

    for node_class in (
        TextNode,
        NumberNode,
        BooleanNode,
        EnumNode,
        ModelNode,
        GenerateNode,
        PreviewNode,
        JoinNode,
        DelayNode,
        RandomNode,
        RepeaterNode,
        SwitchNode,
        ListIteratorNode,
    ):
        register_node(node_class.node_type, node_class)


# Auto-register on import
_register_all_nodes()
