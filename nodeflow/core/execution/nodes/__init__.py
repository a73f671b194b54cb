"""
Node implementations for execution engine
"""
from .text import TextNode
from .number import NumberNode
from .boolean import BooleanNode
from .enum import EnumNode
from .model import ModelNode
from .generate import GenerateNode
from .preview import PreviewNode
from .join import JoinNode
from .delay import DelayNode
from .random_number import RandomNode
from .repeater import RepeaterNode
from .switch import SwitchNode
from .list_iterator import ListIteratorNode

__all__ = [
    'TextNode',
    'NumberNode',
    'BooleanNode',
    'EnumNode',
    'ModelNode',
    'GenerateNode',
    'PreviewNode',
    'JoinNode',
    'DelayNode',
    'RandomNode',
    'RepeaterNode',
    'SwitchNode',
    'ListIteratorNode',
]
