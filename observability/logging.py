"""
Locus - Structured Logging with Trace Context

Structlog over the standard library, with OpenTelemetry trace ids added to
every event.

Importing this module, or building a Registry, configures nothing. The
registry emits its events through ``structlog.get_logger`` and so follows
whatever structlog setup the host application has. Applications without
their own setup call ``setup_logging()`` once at startup.

Usage:
    from observability.logging import setup_logging, get_logger

    setup_logging(LoggingConfig(level="DEBUG", json_format=False))

    logger = get_logger("locus.app")
    logger.info("Registry built", registrations=12)
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

import structlog
from opentelemetry import trace
from structlog.types import EventDict, WrappedLogger

from config import LoggingConfig

# Global state
_configured: bool = False

ROOT_LOGGER_NAME = "locus"


def add_trace_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """
    Structlog processor that adds OpenTelemetry trace context to log events.

    Adds trace_id and span_id from the current span context, enabling
    correlation between logs and traces in observability backends.
    """
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        if ctx.is_valid:
            event_dict["trace_id"] = format(ctx.trace_id, "032x")
            event_dict["span_id"] = format(ctx.span_id, "016x")
            event_dict["trace_flags"] = int(ctx.trace_flags)
    return event_dict


def add_service_context(
    service_name: str,
    environment: str,
) -> structlog.types.Processor:
    """Create a processor stamping service name and environment on each event."""

    def processor(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["service"] = service_name
        event_dict["environment"] = environment
        return event_dict

    return processor


def _shared_processors(config: LoggingConfig) -> list:
    """Processors run both for structlog events and for plain stdlib records."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_context(config.service_name, config.environment),
    ]
    if config.include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    if config.enable_trace_context:
        processors.append(add_trace_context)
    if config.include_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ],
                additional_ignores=[__name__],
            )
        )
    return processors


def _formatter(config: LoggingConfig, renderer: Any) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(config),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Configure structlog and the ``locus`` stdlib logger.

    Each handler renders through a ``ProcessorFormatter``, so every line
    is a single rendered event: JSON in the file sink, JSON or console
    text on stdout depending on ``config.json_format``.

    Args:
        config: Logging configuration. Uses defaults if not provided.
    """
    global _configured

    if _configured:
        return

    config = config or LoggingConfig()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(config),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configure_stdlib_logging(config)

    _configured = True


def _configure_stdlib_logging(config: LoggingConfig) -> None:
    level = getattr(logging, config.level, logging.INFO)
    handlers: list[logging.Handler] = []

    if config.log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        if config.json_format:
            renderer = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer(colors=False)
        console_handler.setFormatter(_formatter(config, renderer))
        handlers.append(console_handler)

    if config.log_to_file:
        config.log_file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            config.log_file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(_formatter(config, structlog.processors.JSONRenderer()))
        handlers.append(file_handler)

    locus_logger = logging.getLogger(ROOT_LOGGER_NAME)
    locus_logger.setLevel(level)

    for handler in locus_logger.handlers[:]:
        locus_logger.removeHandler(handler)

    for handler in handlers:
        locus_logger.addHandler(handler)
    locus_logger.propagate = not handlers

    logging.getLogger("opentelemetry").setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """
    Get a structlog logger for ``name``.

    Uses the process-wide structlog configuration as it stands; call
    ``setup_logging()`` first to get the Locus defaults.
    """
    return structlog.get_logger(name)


def shutdown_logging() -> None:
    """Flush, close and detach the handlers installed by setup_logging()."""
    global _configured

    locus_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in locus_logger.handlers[:]:
        handler.flush()
        handler.close()
        locus_logger.removeHandler(handler)
    locus_logger.propagate = True
    locus_logger.setLevel(logging.NOTSET)

    _configured = False


class LogContext:
    """
    Context manager for adding contextual information to all logs.

    Example:
        >>> with LogContext(composition_root="worker"):
        ...     logger.info("Wiring services")
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())


def bind_context(**kwargs: Any) -> None:
    """Bind contextual variables to all subsequent log messages."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove contextual variables from log context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound contextual variables."""
    structlog.contextvars.clear_contextvars()


class RegistryLogger:
    """
    Logger specialized for registry operations.

    All registry events are debug level. They are only emitted when the
    stdlib ``locus.registry`` logger is enabled for DEBUG, so a host that
    never touches the ``locus`` loggers gets no registry output.
    """

    name = f"{ROOT_LOGGER_NAME}.registry"

    def __init__(self, trace_resolution: bool = False):
        self._logger = get_logger(self.name)
        self._level_source = logging.getLogger(self.name)
        self.trace_resolution = trace_resolution

    def _debug(self, event: str, **fields: Any) -> None:
        if self._level_source.isEnabledFor(logging.DEBUG):
            self._logger.debug(event, component="registry", **fields)

    def registered(self, service_type: str, key: Optional[str], position: int) -> None:
        self._debug("Factory registered", service_type=service_type, key=key, position=position)

    def duplicate_default(self, service_type: str) -> None:
        self._debug("Duplicate default registration rejected", service_type=service_type)

    def removed(self, service_type: str, key: Optional[str], count: int) -> None:
        self._debug("Registrations removed", service_type=service_type, key=key, count=count)

    def branched(self, type_count: int, registration_count: int) -> None:
        self._debug("Registry branched", type_count=type_count, registration_count=registration_count)

    def resolved(self, service_type: str, key: Optional[str]) -> None:
        if self.trace_resolution:
            self._debug("Instance resolved", service_type=service_type, key=key)

    def not_registered(self, service_type: str, key: Optional[str]) -> None:
        self._debug("No registration found", service_type=service_type, key=key)
