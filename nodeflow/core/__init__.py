"""
Core configuration, types and service container
"""
from .config import Config
from .container import ServiceContainer
from .bootstrap import get_container

__all__ = ["Config", "ServiceContainer", "get_container"]
