"""Root test configuration."""

import logging

import pytest
import structlog
from deploymeta.config.settings import get_settings
from deploymeta.providers.memory import InMemoryAdapter
from deploymeta.resources.policy import get_policy


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def factory_env(monkeypatch):
    """Factory credentials in the environment, with the settings cache reset."""
    monkeypatch.setenv("DEPLOYMETA_LICENCE_KEY", "test-licence")
    monkeypatch.setenv("DEPLOYMETA_DEPLOYMENT_NAME", "acme")
    monkeypatch.setenv("DEPLOYMETA_BASE_URL", "https://factory.test")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def dns_adapter():
    return InMemoryAdapter(get_policy("dns_record"), id_prefix="dns")
