"""
Text Node
Static text input (matches the canvas TextNode)
"""
from typing import Dict, Any
from ..node_base import BaseNode, ExecutionContext, Port, InfoValues, single_output
from ..values import InputValues, ExecutionResult


class TextNode(BaseNode):
    """
    Text node that publishes its own content

    Inputs:
        (none)

    Outputs:
        output: The text content

    Properties:
        text: Text content
    """

    node_type = "text"
    title = "Text"

    def get_default(self) -> Dict[str, Any]:
        return {'type': self.node_type, 'text': ''}

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {'output': Port('output', 'start', 'text')}

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        return {'output': str(payload.get('text', ''))}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        return single_output(str(payload.get('text', '')), 'text', is_stale)
