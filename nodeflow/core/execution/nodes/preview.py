"""
Preview Node
Displays an image at the end of a pipeline
"""
from typing import Dict, Any, Optional
from ..node_base import BaseNode, ExecutionContext, Port, InfoValues
from ..values import InputValues, ExecutionResult

# Keys looked up, in order, when an image arrives as a structured value
_IMAGE_URL_KEYS = ('imageUrl', 'url', 'path', 'src')


def coerce_to_image_url(value: Any) -> Optional[str]:
    """
    Best effort extraction of an image url from an incoming value

    Strings are trimmed ("null"/"undefined" count as empty), lists yield their
    first resolvable entry, dicts are searched by well known keys then by value.
    """
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed or trimmed in ('null', 'undefined'):
            return None
        return trimmed
    if isinstance(value, (list, tuple)):
        for entry in value:
            resolved = coerce_to_image_url(entry)
            if resolved:
                return resolved
        return None
    if isinstance(value, dict):
        for key in _IMAGE_URL_KEYS:
            resolved = coerce_to_image_url(value.get(key))
            if resolved:
                return resolved
        for nested in value.values():
            resolved = coerce_to_image_url(nested)
            if resolved:
                return resolved
    return None


class PreviewNode(BaseNode):
    """
    Preview sink

    Inputs:
        image: Image url to display

    Outputs:
        (none)

    Properties:
        lastImageUrl: Written back with the displayed image url
    """

    node_type = "preview"
    title = "Preview"
    category = "output"

    def get_default(self) -> Dict[str, Any]:
        return {'type': self.node_type, 'lastImageUrl': None}

    def ports(self, payload: Dict[str, Any]) -> Dict[str, Port]:
        return {'image': Port('image', 'end', 'image')}

    async def compute(self, payload: Dict[str, Any], inputs: InputValues, context: ExecutionContext) -> ExecutionResult:
        image_url = coerce_to_image_url(inputs.get('image'))
        context.update_payload(lambda node: {**node, 'lastImageUrl': image_url})
        return {}

    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        return {}
