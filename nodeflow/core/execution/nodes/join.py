"""
Join Node
Concatenates several text inputs
"""
from typing import Dict, Any
from ..node_base import BaseNode, ExecutionContext, Port, InfoValues, single_output, any_inputs_stale
from ..values import InputValues, ExecutionResult, coerce_to_text, get_input_multi, is_stop

DEFAULT_SEPARATOR = ", "


def join_values(values, separator: str) -> str:
    """Join trimmed, non-empty text forms of values"""
    parts = [coerce_to_text(value).strip() for value in values if not is_stop(value)]
    return separator.join(part for part in parts if part)


class JoinNode(BaseNode):
    """
    Join node

    Inputs:
        inputs: Multi port; values are joined in connection order

    Outputs:
        output: Joined text

    Properties:
        separator: Text placed between parts (default ", ")
    """

    node_type = "join"
    title = "Join"
    category = "scripting"

    def get_default(self) -> Dict[str, Any]:
        return {'type': self.node_type, 'separator': DEFAULT_SEPARATOR}

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {
            'inputs': Port('inputs', 'end', 'text', multi=True),
            'output': Port('output', 'start', 'text'),
        }

    def _separator(self, payload: Dict[str, Any]) -> str:
        separator = payload.get('separator')
        return DEFAULT_SEPARATOR if separator is None else str(separator)

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        return {'output': join_values(get_input_multi(inputs, 'inputs'), self._separator(payload))}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        info = inputs.get('inputs')
        if info is None:
            values = []
        else:
            values = info.value if info.multi else [info.value]
        return single_output(join_values(values, self._separator(payload)), 'text', is_stale or any_inputs_stale(inputs))
