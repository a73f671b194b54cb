"""
Number Node
Static numeric input
"""
from typing import Dict, Any
from ..node_base import BaseNode, ExecutionContext, Port, InfoValues, single_output
from ..values import InputValues, ExecutionResult, coerce_to_number


class NumberNode(BaseNode):
    """
    Publishes a number from its payload

    Outputs:
        output: The number

    Properties:
        value: Number (non-numeric strings fall back to 0)
    """

    node_type = "number"
    title = "Number"

    def get_default(self) -> Dict[str, Any]:
        return {'type': self.node_type, 'value': 0}

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {'output': Port('output', 'start', 'number')}

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        return {'output': coerce_to_number(payload.get('value'))}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        return single_output(coerce_to_number(payload.get('value')), 'number', is_stale)
