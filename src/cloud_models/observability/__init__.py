"""Structured JSON-lines logging and correlation context."""

from cloud_models.observability.logging import (
    LoggingSettings,
    LogSink,
    configure_structlog,
    correlation_scope,
    default_log_redactor,
    get_correlation_context,
    setup_logging,
)

__all__ = [
    "LogSink",
    "LoggingSettings",
    "configure_structlog",
    "correlation_scope",
    "default_log_redactor",
    "get_correlation_context",
    "setup_logging",
]
