"""Pytest configuration and shared fixtures for all tests."""

from typing import List

import pytest
from loguru import logger

from honorer.di import Container
from honorer.module import ModuleRegistrationConfig, ModuleRegistrationFactory
from honorer.routing import RecordingRouter


@pytest.fixture
def container():
    """Fresh root container."""
    return Container()


@pytest.fixture
def router():
    """In-memory router."""
    return RecordingRouter()


@pytest.fixture
def factory(router, container):
    """Module factory over an in-memory router and a fresh root container."""
    return ModuleRegistrationFactory(router, container)


@pytest.fixture
def make_factory(router, container):
    """Build a module factory with custom registration options."""
    def _make(**options) -> ModuleRegistrationFactory:
        return ModuleRegistrationFactory(router, container, ModuleRegistrationConfig(**options))

    return _make


@pytest.fixture
def log_messages():
    """Collect loguru messages (level, text) emitted during a test."""
    messages: List[tuple] = []
    handler_id = logger.add(
        lambda message: messages.append((message.record["level"].name, message.record["message"])),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)
