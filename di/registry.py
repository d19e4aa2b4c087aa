"""
Locus - Service Registry

A minimal service locator: maps a (service type, key) pair to a factory
that is invoked on every lookup. The registry never caches; lifetimes are
expressed by the factories themselves (see ``di.lifetimes``).

Features:
- Default and keyed registrations, kept in registration order
- First-registered-wins resolution by type alone
- Scoped removal (default entry, keyed entry, or every entry of a type)
- Copy-on-branch derivation isolating mutation from the parent

Usage:
    registry = Registry()
    registry.register(Database, lambda r: Database(r.get_instance(Settings)))
    registry.register(Settings, lambda r: settings)

    db = registry.get_instance(Database)

    child = registry.branch()
    child.register(Cache, lambda r: FakeCache(), key="test")
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Hashable,
    Iterator,
    List,
    Optional,
    Tuple,
    Type,
    TypeVar,
    overload,
)

from config import get_config
from core.errors import (
    DuplicateDefaultRegistrationError,
    ErrorContext,
    NotRegisteredError,
    describe_type,
)
from core.types import DEFAULT_KEY
from observability.logging import RegistryLogger

T = TypeVar("T")

Factory = Callable[["Registry"], Any]


# Distinguishes "no key given" from every real key in is_registered()
_ANY_KEY = object()


def _key_label(key: Hashable) -> Optional[str]:
    return None if key is DEFAULT_KEY else repr(key)


@dataclass(frozen=True)
class Registration:
    """One offered way to produce an instance of ``service_type``."""

    service_type: Hashable
    key: Hashable
    factory: Factory

    @property
    def is_default(self) -> bool:
        return self.key is DEFAULT_KEY

    def matches(self, key: Hashable) -> bool:
        """Exact key match; the default key only matches itself."""
        if key is DEFAULT_KEY or self.key is DEFAULT_KEY:
            return key is self.key
        return self.key == key

    def create(self, registry: "Registry") -> Any:
        return self.factory(registry)


class Registry:
    """
    Service registry mapping types to ordered factory registrations.

    Registrations for a type are kept in the order they were made. At most
    one of them may use the default key. Resolving by type alone invokes
    the first registration of that type, whatever its key.

    A registry built from a parent (``Registry(parent)`` or
    ``parent.branch()``) starts with copies of the parent's per-type lists
    and shares the Registration objects. After that the two evolve
    independently; lookups never consult the parent.

    The registry does no locking. Callers that mutate it from several
    threads, or branch it while another thread mutates it, must serialize
    those calls themselves.
    """

    def __init__(self, parent: Optional["Registry"] = None) -> None:
        self._registrations: Dict[Hashable, List[Registration]] = {}
        self._log = RegistryLogger(trace_resolution=get_config().registry.trace_resolution)

        if parent is not None:
            self._registrations = {
                service_type: list(entries)
                for service_type, entries in parent._registrations.items()
            }
            self._log.branched(len(self._registrations), len(self))

    def branch(self) -> "Registry":
        """Create an independently mutable copy of this registry."""
        return type(self)(self)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        service_type: Hashable,
        factory: Factory,
        key: Hashable = DEFAULT_KEY,
    ) -> "Registry":
        """
        Register a factory for ``service_type``.

        Args:
            service_type: Type (or any hashable token) the factory provides
            factory: Callable receiving this registry and returning an instance
            key: Optional instance key; omitted means the default key

        Returns:
            The registry, for chaining

        Raises:
            DuplicateDefaultRegistrationError: If ``key`` is omitted and the
                type already has a default registration
        """
        if not callable(factory):
            raise TypeError(
                f"Factory for {describe_type(service_type)} must be callable, "
                f"got {type(factory).__name__}"
            )

        entries = self._registrations.get(service_type, [])
        if key is DEFAULT_KEY and any(entry.is_default for entry in entries):
            self._log.duplicate_default(describe_type(service_type))
            raise DuplicateDefaultRegistrationError(
                service_type,
                context=ErrorContext.from_current_span(
                    "register",
                    "registry",
                    metadata={"registered": len(entries)},
                ),
            )

        entries.append(Registration(service_type, key, factory))
        self._registrations[service_type] = entries
        self._log.registered(describe_type(service_type), _key_label(key), len(entries) - 1)
        return self

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @overload
    def get_instance(self, service_type: Type[T]) -> T: ...

    @overload
    def get_instance(self, service_type: Type[T], key: Hashable) -> T: ...

    @overload
    def get_instance(self, service_type: Hashable, key: Hashable = ...) -> Any: ...

    def get_instance(self, service_type, key=DEFAULT_KEY):
        """
        Resolve an instance of ``service_type``.

        Without a key the first registration of the type is used, whether
        or not it carries a key. With a key, the first registration whose
        key equals it is used. The factory runs on every call and its
        exceptions propagate untouched.

        Passing ``DEFAULT_KEY`` explicitly is the same as passing no key: it
        resolves the first registration even when that one is keyed. By
        contrast ``is_registered(t, DEFAULT_KEY)`` and ``remove(t, DEFAULT_KEY)``
        only consider the registration made without a key.

        Raises:
            NotRegisteredError: If no registration matches
        """
        registration = self._find(service_type, key)
        if registration is None:
            self._log.not_registered(describe_type(service_type), _key_label(key))
            raise NotRegisteredError(
                service_type,
                key=key,
                context=ErrorContext.from_current_span(
                    "get_instance",
                    "registry",
                    metadata={"available_keys": [repr(k) for k in self.keys(service_type)]},
                ),
            )

        instance = registration.create(self)
        self._log.resolved(describe_type(service_type), _key_label(key))
        return instance

    def get_all_instances(self, service_type: Hashable) -> List[Any]:
        """Invoke every registration of ``service_type`` in registration order."""
        # Snapshot: factories may mutate the registry while we iterate
        entries = tuple(self._registrations.get(service_type, ()))
        return [entry.create(self) for entry in entries]

    def _find(self, service_type: Hashable, key: Hashable) -> Optional[Registration]:
        entries = self._registrations.get(service_type)
        if not entries:
            return None
        if key is DEFAULT_KEY:
            return entries[0]
        for entry in entries:
            if entry.matches(key):
                return entry
        return None

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def remove(self, service_type: Hashable, key: Hashable = DEFAULT_KEY) -> "Registry":
        """
        Remove the registration of ``service_type`` carrying ``key``.

        Without a key only the default registration is removed; keyed
        registrations are left alone. Removing something absent is a no-op.
        """
        entries = self._registrations.get(service_type)
        if not entries:
            return self

        kept = [entry for entry in entries if not entry.matches(key)]
        removed = len(entries) - len(kept)
        if removed:
            self._store(service_type, kept)
            self._log.removed(describe_type(service_type), _key_label(key), removed)
        return self

    def remove_all(self, service_type: Hashable) -> "Registry":
        """Remove every registration of ``service_type``, keyed or not."""
        entries = self._registrations.pop(service_type, None)
        if entries:
            self._log.removed(describe_type(service_type), None, len(entries))
        return self

    def _store(self, service_type: Hashable, entries: List[Registration]) -> None:
        if entries:
            self._registrations[service_type] = entries
        else:
            del self._registrations[service_type]

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def is_registered(self, service_type: Hashable, key: Hashable = _ANY_KEY) -> bool:
        """
        Check whether ``service_type`` can be resolved.

        Without ``key`` any registration counts. Pass ``DEFAULT_KEY`` to ask
        about the default registration specifically.
        """
        entries = self._registrations.get(service_type, ())
        if key is _ANY_KEY:
            return bool(entries)
        return any(entry.matches(key) for entry in entries)

    def keys(self, service_type: Hashable) -> List[Hashable]:
        """Keys of the registrations of ``service_type``, in order."""
        return [entry.key for entry in self._registrations.get(service_type, ())]

    def registrations(self, service_type: Hashable) -> Tuple[Registration, ...]:
        return tuple(self._registrations.get(service_type, ()))

    def registered_types(self) -> List[Hashable]:
        return list(self._registrations)

    def __contains__(self, service_type: Hashable) -> bool:
        return self.is_registered(service_type)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._registrations.values())

    def __iter__(self) -> Iterator[Registration]:
        for entries in list(self._registrations.values()):
            yield from list(entries)

    def __repr__(self) -> str:
        return f"<Registry types={len(self._registrations)} registrations={len(self)}>"


# ----------------------------------------------------------------------
# Current registry
# ----------------------------------------------------------------------

_registry: Optional[Registry] = None
_registry_lock = threading.Lock()


def get_registry() -> Registry:
    """Get or create the process-wide registry."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = Registry()
    return _registry


def set_registry(registry: Registry) -> Registry:
    """Install ``registry`` as the process-wide registry and return it."""
    global _registry
    if not isinstance(registry, Registry):
        raise TypeError(f"Expected a Registry, got {type(registry).__name__}")
    with _registry_lock:
        _registry = registry
    return registry


def reset_registry() -> None:
    """Drop the process-wide registry; the next get_registry() builds a new one."""
    global _registry
    with _registry_lock:
        _registry = None
