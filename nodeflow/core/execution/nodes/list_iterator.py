"""
List Iterator Node
Runs the nodes downstream of it once per list item
"""
from typing import Dict, Any, List, Optional
from ..node_base import BaseNode, ExecutionContext, Port, PortInfo, InfoValues, any_inputs_stale
from ..values import InputValues, ExecutionResult


def parse_items(items: Optional[str]) -> List[str]:
    """Split a newline separated item list, trimming and dropping blank lines"""
    return [line.strip() for line in (items or '').split('\n') if line.strip()]


def apply_template(template: Optional[str], item: str) -> str:
    """Prefix an item with the template text, if any"""
    if template:
        return f"{template}, {item}"
    return item


class ListIteratorNode(BaseNode):
    """
    List iterator

    The execution engine drives this node directly: for each item it publishes
    the item on current_item, waits for the dependents of current_item, takes
    their result as the running output and then runs the dependents of output.
    compute() only reports the state left by the last run.

    Inputs:
        template: Optional text prepended to every item ("{template}, {item}")

    Outputs:
        output: Running result harvested from the per-item branch
        current_item: The item being processed

    Properties:
        items: Newline separated items
        completedCount, totalCount: Progress counters written during a run
        lastResultUrl: Latest text result written during a run
    """

    node_type = "list_iterator"
    title = "List Iterator"
    category = "scripting"

    def get_default(self) -> Dict[str, Any]:
        return {
            'type': self.node_type,
            'items': 'cat\ndog\nbird',
            'completedCount': 0,
            'totalCount': 0,
            'lastResultUrl': None,
        }

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {
            'template': Port('template', 'end', 'any'),
            'output': Port('output', 'start', 'image'),
            'current_item': Port('current_item', 'start', 'text'),
        }

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        items = parse_items(payload.get('items'))
        return {
            'output': payload.get('lastResultUrl'),
            'current_item': items[-1] if items else None,
        }

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        items = parse_items(payload.get('items'))
        completed = int(payload.get('completedCount') or 0)
        current_item = items[min(completed - 1, len(items) - 1)] if completed > 0 and items else None
        stale = is_stale or any_inputs_stale(inputs)
        return {
            'output': PortInfo(value=payload.get('lastResultUrl'), is_stale=stale, data_type='image'),
            'current_item': PortInfo(value=current_item, is_stale=stale, data_type='text'),
        }
