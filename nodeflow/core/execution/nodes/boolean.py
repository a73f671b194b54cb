"""
Boolean Node
"""
from typing import Dict, Any
from ..node_base import BaseNode, ExecutionContext, Port, InfoValues, single_output
from ..values import InputValues, ExecutionResult


class BooleanNode(BaseNode):
    """
    Publishes a true/false toggle

    Outputs:
        output: The boolean value

    Properties:
        value: Toggle state
    """

    node_type = "boolean"
    title = "Boolean"

    def get_default(self) -> Dict[str, Any]:
        return {'type': self.node_type, 'value': False}

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {'output': Port('output', 'start', 'boolean')}

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        return {'output': bool(payload.get('value', False))}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        return single_output(bool(payload.get('value', False)), 'boolean', is_stale)
