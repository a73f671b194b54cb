"""
Pipeline values
Scalar values carried on edges, the STOP sentinel and input coercion helpers
"""
from typing import Dict, List, Union

from ..types import PipelineValue


class _StopExecution:
    """
    Sentinel meaning "upstream deliberately produced no result"

    A node output holding STOP never activates the consuming node and is not
    treated as an error.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "STOP"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_StopExecution, ())


STOP = _StopExecution()

# What a node may emit on a source port
OutputValue = Union[PipelineValue, _StopExecution]

# What a node receives on a sink port (a list for multi ports)
InputValue = Union[PipelineValue, List[PipelineValue]]

InputValues = Dict[str, InputValue]
ExecutionResult = Dict[str, OutputValue]


def is_stop(value) -> bool:
    """Check whether a value is the STOP sentinel"""
    return value is STOP


def coerce_to_text(value: PipelineValue, fallback: str = '') -> str:
    """Coerce any pipeline value to a string"""
    if value is None or is_stop(value):
        return fallback
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def coerce_to_number(value: PipelineValue, fallback: float = 0) -> float:
    """Coerce any pipeline value to a number"""
    if value is None or is_stop(value):
        return fallback
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).strip())
    except ValueError:
        return fallback


def get_input(inputs: InputValues, key: str) -> PipelineValue:
    """Extract a single value from an input entry (first element for multi ports)"""
    value = inputs.get(key)
    if isinstance(value, list):
        return value[0] if value else None
    return value


def get_input_multi(inputs: InputValues, key: str) -> List[PipelineValue]:
    """Always return a list from an input entry"""
    value = inputs.get(key)
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


def get_input_text(inputs: InputValues, key: str, fallback: str = '') -> str:
    """Extract a single value and coerce it to a string"""
    return coerce_to_text(get_input(inputs, key), fallback)


def get_input_number(inputs: InputValues, key: str, fallback: float = 0) -> float:
    """Extract a single value and coerce it to a number"""
    return coerce_to_number(get_input(inputs, key), fallback)
