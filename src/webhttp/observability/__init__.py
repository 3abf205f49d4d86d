from __future__ import annotations

from webhttp.observability.logging import (
    LOG_FORMAT_CONSOLE,
    LOG_FORMAT_ENV,
    LOG_FORMAT_JSON,
    ContextFilter,
    LogContext,
    RedactingFilter,
    StructuredConsoleFormatter,
    StructuredJSONFormatter,
    get_logger,
)

__all__ = [
    "LOG_FORMAT_CONSOLE",
    "LOG_FORMAT_ENV",
    "LOG_FORMAT_JSON",
    "ContextFilter",
    "LogContext",
    "RedactingFilter",
    "StructuredConsoleFormatter",
    "StructuredJSONFormatter",
    "get_logger",
]
