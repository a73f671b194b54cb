"""
Generation Client
HTTP client for the image generation service "generate" nodes call.

POST {endpoint}/generate with {"model", "prompt"} returns {"imageUrl"}.
The call is blocking; nodes run it in a worker thread.
"""
from typing import Dict, Any, Optional

import requests

from ....utils.logger import get_logger
from ...config import Config

logger = get_logger(__name__)


class GenerationError(RuntimeError):
    """Raised when the generation service cannot produce an image"""
    pass


class GenerationClient:
    """
    Thin requests-based client for the generation service

    The endpoint URL is resolved in this order:
    1. The endpoint_url argument
    2. NODEFLOW_GENERATION_URL (Config.GENERATION_URL)
    """

    def __init__(self, endpoint_url: Optional[str] = None, timeout: Optional[float] = None, api_key: Optional[str] = None):
        """
        Args:
            endpoint_url: Base URL of the generation service (e.g. http://localhost:7791)
            timeout: Request timeout in seconds
            api_key: Optional bearer token
        """
        self.endpoint_url = (endpoint_url or Config.GENERATION_URL).rstrip("/")
        self.timeout = timeout or Config.GENERATION_TIMEOUT
        self.api_key = api_key if api_key is not None else Config.GENERATION_API_KEY
        self.session = requests.Session()
        logger.info(f"GenerationClient initialized → {self.endpoint_url}")

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def generate(self, model: str, prompt: str) -> str:
        """
        Generate one image

        Args:
            model: Encoded model reference (from a "model" node)
            prompt: Prompt text

        Returns:
            URL of the generated image

        Raises:
            GenerationError: If the service is unreachable, times out, answers
                with an error status or returns no image url
        """
        try:
            resp = self.session.post(
                f"{self.endpoint_url}/generate",
                json={"model": model, "prompt": prompt},
                headers=self._headers(),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data: Dict[str, Any] = resp.json()
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Generation service unreachable at {self.endpoint_url}")
            raise GenerationError(f"Generation service unreachable: {self.endpoint_url}") from e
        except requests.exceptions.Timeout as e:
            logger.error(f"Generation request timed out ({self.timeout}s)")
            raise GenerationError(f"Generation request timed out ({self.timeout}s)") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            try:
                detail = e.response.json().get("detail", str(e))
            except ValueError:
                detail = str(e)
            logger.error(f"Generation service HTTP error {status}: {detail}")
            raise GenerationError(f"HTTP {status}: {detail}") from e
        except ValueError as e:
            raise GenerationError("Generation service returned invalid JSON") from e

        if data.get("error"):
            raise GenerationError(str(data["error"]))
        image_url = data.get("imageUrl")
        if not image_url:
            raise GenerationError("Generation service returned no image")
        return image_url

    def health_check(self) -> bool:
        """Check if the generation service is reachable and healthy"""
        try:
            resp = self.session.get(f"{self.endpoint_url}/health", timeout=5)
            return resp.status_code == 200
        except requests.exceptions.RequestException:
            return False
