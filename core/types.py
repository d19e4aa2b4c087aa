"""
Locus - Shared Type Definitions

Markers shared by the registry and its error types.
"""
from typing import Any, Optional


class _DefaultKey:
    """Marker for registrations made without an explicit key."""

    _instance: Optional["_DefaultKey"] = None

    def __new__(cls) -> "_DefaultKey":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DEFAULT_KEY"

    def __reduce__(self) -> str:
        return "DEFAULT_KEY"


# Distinct from every caller-supplied key, including None and ""
DEFAULT_KEY: Any = _DefaultKey()
