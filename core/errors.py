"""
Locus - Unified Error Handling

Provides the error hierarchy raised by the registry.

Features:
- Hierarchical exception classes with error codes and severities
- Structured context (operation, trace ids, registry state) on each error
- OpenTelemetry integration for error tracing
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from core.types import DEFAULT_KEY


class ErrorSeverity(Enum):
    """Error severity levels for prioritized handling."""

    WARNING = "warning"      # Caller can recover, e.g. by registering first
    ERROR = "error"
    CRITICAL = "critical"    # Programming error in the composition root


@dataclass
class ErrorContext:
    """Where a registry error was raised, and what the registry held."""

    operation: str
    component: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    stack_trace: Optional[str] = None

    @classmethod
    def from_current_span(
        cls,
        operation: str,
        component: str,
        **kwargs: Any
    ) -> "ErrorContext":
        """Create context carrying the ids of the current OpenTelemetry span."""
        span = trace.get_current_span()
        trace_id = None
        span_id = None

        if span and span.is_recording():
            ctx = span.get_span_context()
            if ctx.is_valid:
                trace_id = format(ctx.trace_id, "032x")
                span_id = format(ctx.span_id, "016x")

        return cls(
            operation=operation,
            component=component,
            trace_id=trace_id,
            span_id=span_id,
            # Drop this frame so the trace ends at the raising call
            stack_trace="".join(traceback.format_stack(limit=9)[:-1]),
            **kwargs
        )


def describe_type(service_type: Any) -> str:
    """Readable name for a type identifier used as a registry key."""
    name = getattr(service_type, "__qualname__", None) or getattr(service_type, "__name__", None)
    if name is None:
        return repr(service_type)
    module = getattr(service_type, "__module__", None)
    if module and module != "builtins":
        return f"{module}.{name}"
    return name


class LocusError(Exception):
    """
    Base exception for all Locus-specific errors.

    Carries an error code, a severity, optional structured context and a
    list of suggestions, and records itself on the current OpenTelemetry
    span when one is recording.
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "LOCUS_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context
        self.severity = severity or self.default_severity
        self.cause = cause
        self.recoverable = recoverable
        self.suggestions = suggestions or []

        self._record_to_span()

    def _record_to_span(self) -> None:
        span = trace.get_current_span()
        if span and span.is_recording():
            span.set_status(Status(StatusCode.ERROR, self.message))
            span.record_exception(self)
            span.set_attribute("error.code", self.error_code)
            span.set_attribute("error.severity", self.severity.value)
            span.set_attribute("error.recoverable", self.recoverable)
            if self.context:
                span.set_attribute("error.component", self.context.component)
                span.set_attribute("error.operation", self.context.operation)

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            parts.append(f" (operation: {self.context.component}.{self.context.operation})")
        if self.cause:
            parts.append(f" [caused by: {self.cause}]")
        return "".join(parts)


class RegistryError(LocusError):
    """Errors raised by registry operations."""

    error_code = "REGISTRY_ERROR"

    def __init__(
        self,
        message: str,
        service_type: Any = None,
        key: Hashable = DEFAULT_KEY,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.service_type = service_type
        self.key = key


class NotRegisteredError(RegistryError, LookupError):
    """
    No registration matches the requested type (and key).

    ``key`` is ``DEFAULT_KEY`` for a lookup by type alone; any other value,
    ``None`` included, is the explicit key that was asked for.
    """

    error_code = "NOT_REGISTERED"
    default_severity = ErrorSeverity.WARNING

    def __init__(
        self,
        service_type: Any,
        key: Hashable = DEFAULT_KEY,
        **kwargs: Any,
    ):
        name = describe_type(service_type)
        if key is DEFAULT_KEY:
            message = f"No registration found for {name}"
        else:
            message = f"No registration found for {name} with key {key!r}"
        kwargs.setdefault("recoverable", True)
        kwargs.setdefault(
            "suggestions",
            [f"Register a factory for {name} before resolving it"],
        )
        super().__init__(message, service_type=service_type, key=key, **kwargs)


class DuplicateDefaultRegistrationError(RegistryError, ValueError):
    """A second default-keyed registration was attempted for a type."""

    error_code = "DUPLICATE_DEFAULT_REGISTRATION"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(self, service_type: Any, **kwargs: Any):
        name = describe_type(service_type)
        kwargs.setdefault(
            "suggestions",
            [
                f"Register additional {name} factories under an explicit key",
                f"Call remove({name}) before replacing the default factory",
            ],
        )
        super().__init__(
            f"{name} already has a default registration",
            service_type=service_type,
            **kwargs,
        )
