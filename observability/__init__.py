"""
Locus - Observability Package

Structured logging with OpenTelemetry trace context propagation.

Usage:
    from observability import setup_logging, get_logger

    setup_logging()
    logger = get_logger("locus.app")
"""
from .logging import (
    LogContext,
    RegistryLogger,
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    shutdown_logging,
    unbind_context,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "shutdown_logging",
    "LogContext",
    "bind_context",
    "unbind_context",
    "clear_context",
    "RegistryLogger",
]
