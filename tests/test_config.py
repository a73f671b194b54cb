"""
Tests for configuration and service bootstrap
"""
import pytest


def test_defaults_validate():
    from nodeflow.core.config import Config
    assert Config.validate() is True


@pytest.mark.parametrize("attribute, value", [
    ("API_PORT", 0),
    ("GENERATION_TIMEOUT", 0),
    ("GENERATION_URL", "ftp://nowhere"),
])
def test_invalid_values_fail_validation(monkeypatch, attribute, value):
    from nodeflow.core.config import Config

    monkeypatch.setattr(Config, attribute, value)
    assert Config.validate() is False


def test_get_container_is_cached():
    from nodeflow.core.bootstrap import get_container, clear_cache

    clear_cache()
    try:
        first = get_container()
        assert get_container() is first
        assert get_container(force=True) is not first
        override = get_container(generation_url="http://other.test")
        assert override.generation_client.endpoint_url == "http://other.test"
        assert get_container() is not override
    finally:
        clear_cache()


def test_container_creates_default_client_lazily():
    from nodeflow.core.container import ServiceContainer
    from nodeflow.core.execution.nodes.generation_client import GenerationClient

    container = ServiceContainer()
    assert container.generation_client is None
    assert isinstance(container.get_generation_client(), GenerationClient)
    assert container.initialized_at is not None


def test_logger_naming_and_shared_handler():
    import logging
    from nodeflow.utils.logger import get_logger, set_log_level

    logger = get_logger("nodeflow.core.execution.engine")
    assert logger.name == "nodeflow.execution.engine"
    assert get_logger("nodeflow.api.routes").name == "nodeflow.api.routes"

    root = logging.getLogger("nodeflow")
    assert len(root.handlers) == 1
    assert root.propagate is False

    previous = root.level
    try:
        set_log_level(logging.DEBUG)
        assert logger.isEnabledFor(logging.DEBUG)
        set_log_level(logging.WARNING)
        assert not logger.isEnabledFor(logging.INFO)
    finally:
        root.setLevel(previous)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
