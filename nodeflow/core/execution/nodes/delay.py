"""
Delay Node
"""
import asyncio
from typing import Dict, Any
from ..node_base import BaseNode, ExecutionContext, Port, PortInfo, InfoValues
from ..values import InputValues, ExecutionResult, get_input, coerce_to_number


class DelayNode(BaseNode):
    """
    Waits, then passes its input through unchanged

    Inputs:
        input: Any value

    Outputs:
        output: The same value

    Properties:
        delayMs: Milliseconds to wait (negative values count as 0)
    """

    node_type = "delay"
    title = "Delay"
    category = "scripting"

    def get_default(self) -> Dict[str, Any]:
        return {'type': self.node_type, 'delayMs': 1000}

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {
            'input': Port('input', 'end', 'any'),
            'output': Port('output', 'start', 'any'),
        }

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        delay_ms = max(0, coerce_to_number(payload.get('delayMs')))
        await asyncio.sleep(delay_ms / 1000)
        return {'output': get_input(inputs, 'input')}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        info = inputs.get('input')
        if info is None:
            return {'output': PortInfo(value=None, is_stale=is_stale)}
        return {'output': PortInfo(value=info.first_value(), is_stale=is_stale or info.is_stale, data_type=info.data_type)}
