"""Log setup for applications embedding webhttp.

The client modules only log through ``logging.getLogger(__name__)`` and bind
``session_id`` / ``request_id`` with ``LogContext``. Nothing here installs a
handler on import: call ``get_logger("webhttp")`` to get structured JSON (or
console, via ``WEBHTTP_LOG_FORMAT``) output that carries those ids and masks
credentials passed through ``extra``.
"""

from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Mapping

__all__ = ["LOG_FORMAT_CONSOLE", "LOG_FORMAT_ENV", "LOG_FORMAT_JSON", "ContextFilter", "LogContext", "RedactingFilter", "StructuredConsoleFormatter", "StructuredJSONFormatter", "get_logger"]


LOG_FORMAT_ENV = "WEBHTTP_LOG_FORMAT"
LOG_FORMAT_JSON = "json"
LOG_FORMAT_CONSOLE = "console"

_DEFAULT_CONTEXT_KEYS = ("session_id", "request_id")
_LOG_CONTEXT: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar("webhttp_log_context")

_DEFAULT_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s session_id=%(session_id)s request_id=%(request_id)s"

_RESERVED_FIELDS = {"timestamp", "level", "logger", "message", "exception", "stack"}

_LOG_RECORD_ATTRS = {"name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created", "msecs", "relativeCreated", "thread", "threadName", "processName", "process", "message", "asctime", "taskName"}

# Extra fields whose values are credentials.
_SECRET_FIELDS = {"api_key", "access_token", "refresh_token", "auth_token", "x-api-key", "x-access-token", "x-auth-token", "x-refresh-token", "x-api-encryption-key"}
_REDACTED = "***"


def _normalize_log_format(value: str | None) -> str:
    if not value:
        return LOG_FORMAT_JSON
    normalized = value.strip().lower()
    if normalized in {LOG_FORMAT_JSON, LOG_FORMAT_CONSOLE}:
        return normalized
    return LOG_FORMAT_JSON


def _json_default(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return repr(value)


def _extract_extras(record: logging.LogRecord) -> dict[str, Any]:
    extras: dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _LOG_RECORD_ATTRS or key.startswith("_"):
            continue
        extras[key] = value
    return extras


def _merge_context(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def _context_snapshot() -> dict[str, Any]:
    current = _LOG_CONTEXT.get({})
    snapshot: dict[str, Any] = {key: current.get(key) for key in _DEFAULT_CONTEXT_KEYS}
    for key, value in current.items():
        if key not in snapshot:
            snapshot[key] = value
    return snapshot


def _filter_reserved(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if key not in _RESERVED_FIELDS}


class LogContext:
    """Async-safe structured logging context.

    Values bound here are attached to every record emitted while the context
    is active, including records from concurrent tasks' own copies.

    Args:
        session_id: Client session identifier.
        request_id: Per-attempt request identifier.
        **extra: Additional context values for log enrichment.
    """

    def __init__(
        self,
        session_id: str | None = None,
        request_id: str | None = None,
        **extra: Any,
    ) -> None:
        self._values = _merge_context({}, {"session_id": session_id, "request_id": request_id, **extra})
        self._token: contextvars.Token[dict[str, Any]] | None = None

    def __enter__(self) -> LogContext:
        current = _LOG_CONTEXT.get({})
        self._token = _LOG_CONTEXT.set(_merge_context(current, self._values))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: Any,
    ) -> None:
        if self._token is not None:
            _LOG_CONTEXT.reset(self._token)
            self._token = None

    @classmethod
    def bind(cls, **values: Any) -> None:
        current = _LOG_CONTEXT.get({})
        _LOG_CONTEXT.set(_merge_context(current, values))

    @classmethod
    def clear(cls) -> None:
        _LOG_CONTEXT.set({})

    @classmethod
    def snapshot(cls) -> dict[str, Any]:
        return _context_snapshot()


class ContextFilter(logging.Filter):

    def filter(self, record: logging.LogRecord) -> bool:
        context = _context_snapshot()
        for key, value in context.items():
            if hasattr(record, key):
                continue
            record.__dict__[key] = "-" if value is None else value
        return True


class RedactingFilter(logging.Filter):
    """Masks credential values passed through ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key in list(record.__dict__):
            if key.lower() in _SECRET_FIELDS and record.__dict__[key]:
                record.__dict__[key] = _REDACTED
        return True


class StructuredJSONFormatter(logging.Formatter):
    """Formats log records as JSON strings.

    Args:
        datefmt: Optional date format string.
        json_default: Callable used by json.dumps for unknown types.
        ensure_ascii: Whether to escape non-ASCII characters.
    """

    def __init__(
        self,
        *,
        datefmt: str | None = None,
        json_default: Any | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__(datefmt=datefmt)
        self._json_default = json_default or _json_default
        self._ensure_ascii = ensure_ascii

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_filter_reserved(_context_snapshot()))
        payload.update(_filter_reserved(_extract_extras(record)))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(
            payload,
            default=self._json_default,
            ensure_ascii=self._ensure_ascii,
        )


class StructuredConsoleFormatter(logging.Formatter):

    def __init__(
        self,
        fmt: str | None = None,
        *,
        datefmt: str | None = None,
    ) -> None:
        super().__init__(fmt=fmt or _DEFAULT_CONSOLE_FORMAT, datefmt=datefmt)


def _handler_exists(logger: logging.Logger, format_kind: str) -> bool:
    for handler in logger.handlers:
        if getattr(handler, "_webhttp_handler", False) and getattr(
            handler, "_format_kind", None
        ) == format_kind:
            return True
    return False


def get_logger(
    name: str,
    *,
    log_format: str | None = None,
    formatter: logging.Formatter | None = None,
    level: int | None = None,
    stream: Any | None = None,
) -> logging.Logger:
    """Return a logger with a structured handler attached once.

    Args:
        name: Logger name.
        log_format: ``json`` or ``console``; defaults to ``WEBHTTP_LOG_FORMAT``.
        formatter: Optional formatter override.
        level: Optional log level to apply to handler and logger.
        stream: Optional stream for handler output.

    Returns:
        Configured logging.Logger instance.
    """

    resolved_format = _normalize_log_format(log_format or os.getenv(LOG_FORMAT_ENV))
    if formatter is None:
        if resolved_format == LOG_FORMAT_CONSOLE:
            formatter = StructuredConsoleFormatter()
        else:
            formatter = StructuredJSONFormatter()
    logger = logging.getLogger(name)
    if _handler_exists(logger, resolved_format):
        return logger

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    handler.addFilter(RedactingFilter())
    handler.setLevel(level or logging.NOTSET)
    handler._webhttp_handler = True  # type: ignore[attr-defined]
    handler._format_kind = resolved_format  # type: ignore[attr-defined]
    logger.addHandler(handler)
    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger
