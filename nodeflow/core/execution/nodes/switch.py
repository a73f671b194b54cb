"""
Switch Node
Gates a value on a boolean condition
"""
from typing import Dict, Any
from ..node_base import BaseNode, ExecutionContext, Port, PortInfo, InfoValues, STOP, any_inputs_stale
from ..values import InputValues, ExecutionResult, get_input


def is_open(condition: Any, pass_on_false: bool) -> bool:
    """Whether a condition value lets the input through"""
    if isinstance(condition, str):
        truthy = condition.strip().lower() in ('true', '1', 'yes')
    else:
        truthy = bool(condition)
    return truthy != pass_on_false


class SwitchNode(BaseNode):
    """
    Switch node

    When the condition blocks, the output is STOP and nothing downstream runs
    for this pass. That is not an error.

    Inputs:
        input: Any value
        condition: Boolean gate

    Outputs:
        output: The input value, or STOP

    Properties:
        passOnFalse: Invert the gate (let the value through when the condition is false)
    """

    node_type = "switch"
    title = "Switch"
    category = "scripting"

    def get_default(self) -> Dict[str, Any]:
        return {'type': self.node_type, 'passOnFalse': False}

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {
            'input': Port('input', 'end', 'any'),
            'condition': Port('condition', 'end', 'boolean'),
            'output': Port('output', 'start', 'any'),
        }

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        if not is_open(get_input(inputs, 'condition'), bool(payload.get('passOnFalse', False))):
            return {'output': STOP}
        return {'output': get_input(inputs, 'input')}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        condition = inputs.get('condition')
        value_info = inputs.get('input')
        stale = is_stale or any_inputs_stale(inputs)
        condition_value = condition.first_value() if condition is not None else None
        if not is_open(condition_value, bool(payload.get('passOnFalse', False))):
            return {'output': PortInfo(value=STOP, is_stale=stale)}
        if value_info is None:
            return {'output': PortInfo(value=None, is_stale=stale)}
        return {'output': PortInfo(value=value_info.first_value(), is_stale=stale, data_type=value_info.data_type)}
