"""
Locus - Test Configuration

Pytest fixtures and sample services shared by all tests.
"""
import itertools

import pytest

from di import Registry, reset_registry


_ids = itertools.count(1)


class IService:
    """Service interface used as a registration key."""


class ServiceImpl(IService):
    """Concrete service; every construction gets a fresh id."""

    def __init__(self):
        self.id = next(_ids)


class AnotherService:
    """Service depending on IService."""

    def __init__(self, svc: IService):
        self.svc = svc


@pytest.fixture
def registry() -> Registry:
    """Empty registry."""
    return Registry()


@pytest.fixture
def populated_registry() -> Registry:
    """Registry with a keyed registration followed by a default one."""
    registry = Registry()
    registry.register(IService, lambda r: ServiceImpl(), key="inst1")
    registry.register(IService, lambda r: ServiceImpl())
    return registry


@pytest.fixture(autouse=True)
def _reset_process_registry():
    """Keep the process-wide registry from leaking between tests."""
    reset_registry()
    yield
    reset_registry()
