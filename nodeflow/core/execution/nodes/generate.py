"""
Generate Node
Calls the image generation service
"""
import asyncio
from typing import Dict, Any
from ..node_base import BaseNode, ExecutionContext, Port, InfoValues, single_output, any_inputs_stale
from ..values import InputValues, ExecutionResult, get_input_text
from .model import encode_model_ref
from ...config import Config
from ....utils.logger import get_logger

logger = get_logger(__name__)


class GenerateNode(BaseNode):
    """
    Generates an image from a model reference and a prompt

    Inputs:
        model: Encoded model reference (from ModelNode, defaults to the configured model)
        prompt: Prompt text (falls back to the payload's prompt when unconnected)

    Outputs:
        output: URL of the generated image

    Properties:
        prompt: Prompt used when the prompt port is not connected
        lastResultUrl: Written back after each successful call
    """

    node_type = "generate"
    title = "Generate"
    category = "process"

    def get_default(self) -> Dict[str, Any]:
        return {'type': self.node_type, 'prompt': '', 'lastResultUrl': None}

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {
            'model': Port('model', 'end', 'model'),
            'prompt': Port('prompt', 'end', 'text'),
            'output': Port('output', 'start', 'image'),
        }

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        model = get_input_text(inputs, 'model') or encode_model_ref(Config.DEFAULT_PROVIDER, Config.DEFAULT_MODEL)
        prompt = get_input_text(inputs, 'prompt', payload.get('prompt', ''))
        if not prompt.strip():
            raise ValueError("Prompt is empty")

        client = context.container.get_generation_client()
        logger.debug(f"Generating for node {context.node_id} with model={model}, prompt={prompt[:50]}")
        image_url = await asyncio.to_thread(client.generate, model, prompt)

        context.update_payload(lambda node: {**node, 'lastResultUrl': image_url})
        return {'output': image_url}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        return single_output(payload.get('lastResultUrl'), 'image', is_stale or any_inputs_stale(inputs))
