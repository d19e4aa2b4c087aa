"""
Locus - Core Module

Foundational pieces shared by the registry and its helpers:
- Unified error hierarchy with severity and trace context

Usage:
    from core import NotRegisteredError, LocusError

    try:
        mailer = registry.get_instance(Mailer)
    except NotRegisteredError:
        mailer = NullMailer()
"""

from core.errors import (
    DuplicateDefaultRegistrationError,
    ErrorContext,
    ErrorSeverity,
    LocusError,
    NotRegisteredError,
    RegistryError,
    describe_type,
)
from core.types import DEFAULT_KEY

__all__ = [
    "LocusError",
    "RegistryError",
    "NotRegisteredError",
    "DuplicateDefaultRegistrationError",
    "ErrorContext",
    "ErrorSeverity",
    "describe_type",
    "DEFAULT_KEY",
]
