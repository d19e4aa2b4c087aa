"""
Locus - Dependency Registry

A minimal service locator. Factories are registered per type, optionally
under a key, and invoked on every lookup; the registry itself keeps no
instances.

Usage:
    from di import Registry, singleton

    registry = Registry()
    registry.register(Settings, singleton(lambda r: Settings.from_env()))
    registry.register(Mailer, lambda r: SmtpMailer(r.get_instance(Settings)))
    registry.register(Mailer, lambda r: FakeMailer(), key="fake")

    mailer = registry.get_instance(Mailer)            # SmtpMailer
    fake = registry.get_instance(Mailer, key="fake")  # FakeMailer

    test_registry = registry.branch()
    test_registry.remove_all(Mailer)
"""

from core.errors import (
    DuplicateDefaultRegistrationError,
    NotRegisteredError,
    RegistryError,
)
from di.lifetimes import (
    ServiceLifetime,
    instance,
    lifetime_factory,
    per_thread,
    singleton,
    transient,
)
from di.registry import (
    DEFAULT_KEY,
    Factory,
    Registration,
    Registry,
    get_registry,
    reset_registry,
    set_registry,
)

__all__ = [
    # Registry
    "Registry",
    "Registration",
    "Factory",
    "DEFAULT_KEY",

    # Process-wide registry
    "get_registry",
    "set_registry",
    "reset_registry",

    # Lifetimes
    "ServiceLifetime",
    "singleton",
    "per_thread",
    "transient",
    "instance",
    "lifetime_factory",

    # Errors
    "RegistryError",
    "NotRegisteredError",
    "DuplicateDefaultRegistrationError",
]
