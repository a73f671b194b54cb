"""
Bootstrap module for Nodeflow Core
Single entry point that builds the services shared by the API and the CLI
"""
from typing import Optional
import threading

from .container import ServiceContainer
from .config import Config
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Cached container (clients hold connection pools, so reuse them)
_container: Optional[ServiceContainer] = None
_container_lock = threading.Lock()


def get_container(*, generation_url: Optional[str] = None, force: bool = False) -> ServiceContainer:
    """
    Build or retrieve the cached ServiceContainer

    Args:
        generation_url: Override NODEFLOW_GENERATION_URL (forces a fresh container)
        force: Force rebuild even if cached (default: False)

    Returns:
        ServiceContainer with its generation client initialized
    """
    global _container

    if _container is not None and not force and generation_url is None:
        return _container

    with _container_lock:
        # Double-check after acquiring lock
        if _container is not None and not force and generation_url is None:
            return _container

        from .execution.nodes.generation_client import GenerationClient

        logger.info("Building service container")
        container = ServiceContainer(
            generation_client=GenerationClient(endpoint_url=generation_url or Config.GENERATION_URL),
        )
        if generation_url is None:
            _container = container
        return container


def clear_cache() -> None:
    """Drop the cached container (used by tests)"""
    global _container
    with _container_lock:
        _container = None
