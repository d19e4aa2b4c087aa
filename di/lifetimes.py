"""
Locus - Lifetime Helpers

The registry itself never caches: it calls the registered factory on every
lookup. Lifetimes are a property of the factory, and these helpers build
factories with the usual policies.

Usage:
    registry.register(Clock, singleton(lambda r: SystemClock()))
    registry.register(Session, per_thread(lambda r: Session(r.get_instance(Engine))))
    registry.register(Request, transient(Request))
    registry.register(Settings, instance(settings))
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Callable

from di.registry import Factory, Registry

_UNSET = object()


class ServiceLifetime(Enum):
    """Service lifetime options."""

    SINGLETON = "singleton"    # One instance, built on first lookup
    PER_THREAD = "per_thread"  # One instance per thread
    TRANSIENT = "transient"    # New instance every time


def instance(obj: Any) -> Factory:
    """Factory that always returns ``obj``."""

    def factory(registry: Registry) -> Any:
        return obj

    return factory


def transient(cls: Callable[[], Any]) -> Factory:
    """Factory that calls ``cls()`` on every lookup, ignoring the registry."""

    def factory(registry: Registry) -> Any:
        return cls()

    return factory


def singleton(factory: Factory) -> Factory:
    """
    Wrap ``factory`` so it runs once and its result is reused.

    The first build is guarded by a lock so concurrent first lookups still
    produce a single instance. If the wrapped factory raises, nothing is
    cached and the next lookup tries again.
    """
    lock = threading.Lock()
    value: Any = _UNSET

    def memoized(registry: Registry) -> Any:
        nonlocal value
        if value is _UNSET:
            with lock:
                if value is _UNSET:
                    value = factory(registry)
        return value

    return memoized


def per_thread(factory: Factory) -> Factory:
    """Wrap ``factory`` so each thread gets, and keeps, its own instance."""
    slot = threading.local()

    def thread_bound(registry: Registry) -> Any:
        try:
            return slot.value
        except AttributeError:
            slot.value = factory(registry)
            return slot.value

    return thread_bound


def lifetime_factory(lifetime: ServiceLifetime, factory: Factory) -> Factory:
    """Apply ``lifetime`` to ``factory``."""
    if lifetime is ServiceLifetime.SINGLETON:
        return singleton(factory)
    if lifetime is ServiceLifetime.PER_THREAD:
        return per_thread(factory)
    if lifetime is ServiceLifetime.TRANSIENT:
        return factory
    raise ValueError(f"Unknown lifetime: {lifetime!r}")
