"""
Enum Node
Picks one option out of a comma separated list
"""
from typing import Dict, Any, List, Optional
from ..node_base import BaseNode, ExecutionContext, Port, InfoValues, single_output
from ..values import InputValues, ExecutionResult


def parse_options(options: str) -> List[str]:
    """Split a comma separated option list, dropping blanks"""
    return [option.strip() for option in (options or '').split(',') if option.strip()]


def ensure_selected_option(options: str, value: Optional[str]) -> Optional[str]:
    """
    Return the selected option if it is still offered, else the first option

    Returns:
        The option, or None when there are no options at all
    """
    parsed = parse_options(options)
    if not parsed:
        return None
    if value in parsed:
        return value
    return parsed[0]


class EnumNode(BaseNode):
    """
    Enum node

    Outputs:
        output: Selected option text

    Properties:
        options: Comma separated options (e.g., "square, portrait, landscape")
        value: Currently selected option
    """

    node_type = "enum"
    title = "Enum"

    def get_default(self) -> Dict[str, Any]:
        return {'type': self.node_type, 'options': 'option 1, option 2', 'value': 'option 1'}

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {'output': Port('output', 'start', 'text')}

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        return {'output': ensure_selected_option(payload.get('options', ''), payload.get('value'))}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        value = ensure_selected_option(payload.get('options', ''), payload.get('value'))
        return single_output(value, 'text', is_stale)
