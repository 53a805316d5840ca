"""Root test configuration."""

import logging

import pytest
import structlog

from worker_operator.config.settings import Settings
from worker_operator.events import MemoryEventSink
from worker_operator.store.memory import InMemoryResourceStore


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
def settings() -> Settings:
    return Settings(_env_file=None, requeue_delay=2.0)


@pytest.fixture
def store() -> InMemoryResourceStore:
    return InMemoryResourceStore()


@pytest.fixture
def events() -> MemoryEventSink:
    return MemoryEventSink()
