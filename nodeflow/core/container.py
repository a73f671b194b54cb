"""
Service Container
Holds the collaborators node implementations call out to
"""
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .execution.nodes.generation_client import GenerationClient


@dataclass
class ServiceContainer:
    """
    Container holding external services for node implementations

    Documents carry a container so nodes never construct their own clients;
    tests swap in fakes by building a container by hand.
    """
    generation_client: Optional['GenerationClient'] = None

    # Metadata
    initialized_at: Optional[float] = None

    def __post_init__(self):
        """Set initialization timestamp if not provided"""
        if self.initialized_at is None:
            import time
            self.initialized_at = time.time()

    def get_generation_client(self) -> 'GenerationClient':
        """Return the configured generation client, creating the default one lazily"""
        if self.generation_client is None:
            from .execution.nodes.generation_client import GenerationClient
            self.generation_client = GenerationClient()
        return self.generation_client
