"""
Model Node
Selects the generation model that downstream "generate" nodes call
"""
from typing import Dict, Any, Tuple, Optional
from ..node_base import BaseNode, ExecutionContext, Port, InfoValues, single_output
from ..values import InputValues, ExecutionResult
from ...config import Config

MODEL_REF_PREFIX = "hf"


def encode_model_ref(provider: str, model_id: str) -> str:
    """Encode a provider/model pair as "hf:{provider}:{model_id}" """
    return f"{MODEL_REF_PREFIX}:{provider}:{model_id}"


def decode_model_ref(ref: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Decode a model reference produced by encode_model_ref

    Returns:
        (provider, model_id), or None if the text is not a model reference
    """
    if not ref or not isinstance(ref, str):
        return None
    parts = ref.split(':', 2)
    if len(parts) != 3 or parts[0] != MODEL_REF_PREFIX or not parts[2]:
        return None
    return parts[1], parts[2]


class ModelNode(BaseNode):
    """
    Model selector

    Outputs:
        output: Encoded model reference

    Properties:
        provider: Inference provider (default from NODEFLOW_DEFAULT_PROVIDER)
        modelId: Model id (blank falls back to NODEFLOW_DEFAULT_MODEL)
    """

    node_type = "model"
    title = "Model"

    def get_default(self) -> Dict[str, Any]:
        return {
            'type': self.node_type,
            'provider': Config.DEFAULT_PROVIDER,
            'modelId': Config.DEFAULT_MODEL,
        }

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {'output': Port('output', 'start', 'model')}

    def _model_ref(self, payload: Dict[str, Any]) -> str:
        provider = (payload.get('provider') or '').strip() or Config.DEFAULT_PROVIDER
        model_id = (payload.get('modelId') or '').strip() or Config.DEFAULT_MODEL
        return encode_model_ref(provider, model_id)

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        return {'output': self._model_ref(payload)}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        return single_output(self._model_ref(payload), 'model', is_stale)
