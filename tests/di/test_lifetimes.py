"""
Tests for di/lifetimes.py - factory lifetime helpers.
"""
import threading

import pytest

from conftest import IService, ServiceImpl
from di import (
    ServiceLifetime,
    instance,
    lifetime_factory,
    per_thread,
    singleton,
    transient,
)


def _resolve_in_thread(registry, service_type):
    """Resolve on a fresh thread, re-raising any failure in the caller."""
    result = {}

    def target():
        try:
            result["value"] = registry.get_instance(service_type)
        except Exception as e:  # surfaced below
            result["error"] = e

    thread = threading.Thread(target=target)
    thread.start()
    thread.join()

    if "error" in result:
        raise result["error"]
    return result["value"]


class TestInstanceAndTransient:
    """Tests for instance() and transient()."""

    def test_instance_returns_same_object(self, registry):
        inst = ServiceImpl()
        registry.register(IService, instance(inst))

        assert registry.get_instance(IService) is inst
        assert registry.get_instance(IService) is inst

    def test_transient_builds_each_time(self, registry):
        registry.register(IService, transient(ServiceImpl))

        assert registry.get_instance(IService) is not registry.get_instance(IService)


class TestSingleton:
    """Tests for singleton()."""

    def test_factory_runs_once(self, registry):
        calls = []
        registry.register(IService, singleton(lambda r: calls.append(1) or ServiceImpl()))

        first = registry.get_instance(IService)
        second = registry.get_instance(IService)

        assert first is second
        assert len(calls) == 1

    def test_not_cached_when_factory_fails(self, registry):
        """A failed first build is retried on the next lookup."""
        attempts = []

        def flaky(r):
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("not yet")
            return ServiceImpl()

        registry.register(IService, singleton(flaky))

        with pytest.raises(RuntimeError):
            registry.get_instance(IService)
        assert isinstance(registry.get_instance(IService), ServiceImpl)
        assert len(attempts) == 2

    def test_shared_across_threads(self, registry):
        registry.register(IService, singleton(lambda r: ServiceImpl()))

        main = registry.get_instance(IService)
        other = _resolve_in_thread(registry, IService)

        assert main is other

    def test_branch_shares_singleton(self, registry):
        """Branches share the registration, and so the memoized instance."""
        registry.register(IService, singleton(lambda r: ServiceImpl()))
        child = registry.branch()

        assert child.get_instance(IService) is registry.get_instance(IService)


class TestPerThread:
    """Tests for per_thread()."""

    def test_same_instance_within_thread(self, registry):
        registry.register(IService, per_thread(lambda r: ServiceImpl()))

        id1 = registry.get_instance(IService).id
        id3 = registry.get_instance(IService).id

        assert id1 == id3

    def test_different_instance_per_thread(self, registry):
        registry.register(IService, per_thread(lambda r: ServiceImpl()))

        id1 = registry.get_instance(IService).id
        id2 = _resolve_in_thread(registry, IService).id

        assert id1 != id2

    def test_separate_helpers_do_not_share_slots(self, registry):
        """Each per_thread() wrapper owns its own thread-local slot."""
        registry.register(IService, per_thread(lambda r: ServiceImpl()), key="a")
        registry.register(IService, per_thread(lambda r: ServiceImpl()), key="b")

        assert registry.get_instance(IService, "a") is not registry.get_instance(IService, "b")


class TestLifetimeFactory:
    """Tests for lifetime_factory()."""

    @pytest.mark.parametrize("lifetime,same", [
        (ServiceLifetime.SINGLETON, True),
        (ServiceLifetime.PER_THREAD, True),
        (ServiceLifetime.TRANSIENT, False),
    ])
    def test_lifetimes(self, registry, lifetime, same):
        registry.register(IService, lifetime_factory(lifetime, lambda r: ServiceImpl()))

        first = registry.get_instance(IService)
        second = registry.get_instance(IService)

        assert (first is second) is same

    def test_unknown_lifetime(self):
        with pytest.raises(ValueError):
            lifetime_factory("forever", lambda r: None)
