"""
Repeater Node
Fans one value out to a configurable number of outputs
"""
from typing import Dict, Any
from ..node_base import BaseNode, ExecutionContext, Port, PortInfo, InfoValues
from ..values import InputValues, ExecutionResult, get_input


def output_count(payload: Dict[str, Any]) -> int:
    try:
        return max(1, int(payload.get('outputCount', 1)))
    except (TypeError, ValueError):
        return 1


class RepeaterNode(BaseNode):
    """
    Repeater node

    Inputs:
        input: Any value

    Outputs:
        out_0 .. out_{n-1}: Copies of the input

    Properties:
        outputCount: Number of output ports (at least 1)
    """

    node_type = "repeater"
    title = "Repeater"
    category = "scripting"

    def get_default(self) -> Dict[str, Any]:
        return {'type': self.node_type, 'outputCount': 2}

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        ports = {'input': Port('input', 'end', 'any')}
        for i in range(output_count(payload)):
            ports[f'out_{i}'] = Port(f'out_{i}', 'start', 'any')
        return ports

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        value = get_input(inputs, 'input')
        return {f'out_{i}': value for i in range(output_count(payload))}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        info = inputs.get('input')
        result: InfoValues = {}
        for i in range(output_count(payload)):
            if info is not None:
                result[f'out_{i}'] = PortInfo(
                    value=info.first_value(),
                    is_stale=info.is_stale or is_stale,
                    data_type=info.data_type,
                )
            else:
                result[f'out_{i}'] = PortInfo(value=None, is_stale=is_stale)
        return result
