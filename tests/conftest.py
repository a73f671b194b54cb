"""
Shared fixtures for Nodeflow Core tests
"""
from unittest.mock import MagicMock

import pytest


@pytest.fixture
def generation_client():
    """Fake generation client: returns https://img.test/<prompt>.png"""
    client = MagicMock()
    client.generate.side_effect = lambda model, prompt: f"https://img.test/{prompt}.png"
    return client


@pytest.fixture
def container(generation_client):
    from nodeflow.core.container import ServiceContainer
    return ServiceContainer(generation_client=generation_client)


@pytest.fixture
def document(container):
    from nodeflow.core.execution.document import PipelineDocument
    return PipelineDocument("doc-test", container)
