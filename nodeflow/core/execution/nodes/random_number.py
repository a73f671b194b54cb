"""
Random Node
Random integer in an inclusive range
"""
import math
import random
from typing import Dict, Any
from ..node_base import BaseNode, ExecutionContext, Port, InfoValues, single_output, any_inputs_stale
from ..values import InputValues, ExecutionResult, get_input_number, coerce_to_number


class RandomNode(BaseNode):
    """
    Random node

    Inputs:
        min: Lower bound (falls back to the payload's min)
        max: Upper bound (falls back to the payload's max)

    Outputs:
        output: Random integer between the bounds, inclusive (swapped if reversed)

    Properties:
        min, max: Default bounds
    """

    node_type = "random"
    title = "Random"
    category = "scripting"

    def get_default(self) -> Dict[str, Any]:
        return {'type': self.node_type, 'min': 0, 'max': 100}

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {
            'min': Port('min', 'end', 'number'),
            'max': Port('max', 'end', 'number'),
            'output': Port('output', 'start', 'number'),
        }

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        low = get_input_number(inputs, 'min', coerce_to_number(payload.get('min')))
        high = get_input_number(inputs, 'max', coerce_to_number(payload.get('max')))
        low, high = min(low, high), max(low, high)
        return {'output': random.randint(math.ceil(low), max(math.ceil(low), math.floor(high)))}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        # Nothing to show until the node actually runs
        return single_output(None, 'number', is_stale or any_inputs_stale(inputs))
