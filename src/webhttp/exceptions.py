from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from webhttp.utils.constant import (
    KEY_MISSING_ERROR_CODE,
    NETWORK_ERROR_CODE,
    NETWORK_STATUS_CODE,
    UNKNOWN_ERROR_CODE,
    UNKNOWN_STATUS_CODE,
)


@dataclass(frozen=True)
class WebHttpError(Exception):
    """Base class for terminal call failures with a normalized error shape.

    ``status_code`` is a real HTTP status for server errors and a negative
    sentinel otherwise. ``body`` keeps the raw error payload (the parsed
    response body, or the original exception) for diagnostics.
    """

    status_code: int
    message: str | None = None
    error_code: str | None = None
    body: Any | None = None
    cause: BaseException | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", (self.message or self.error_code or "",))
        if self.cause is not None:
            object.__setattr__(self, "__cause__", self.cause)
            object.__setattr__(self, "__suppress_context__", True)

    def to_error_map(self) -> dict[str, Any]:
        """Return the ``{statusCode, message, errorCode}`` record."""
        return {
            "statusCode": self.status_code,
            "message": self.message,
            "errorCode": self.error_code,
        }


@dataclass(frozen=True)
class ServerError(WebHttpError):
    """Raised when a response was received but the call failed."""


@dataclass(frozen=True)
class KeyExchangeError(ServerError):
    """Raised when the server keeps reporting a missing encryption key."""

    error_code: str | None = KEY_MISSING_ERROR_CODE


@dataclass(frozen=True)
class NetworkError(WebHttpError):
    """Raised when a request was sent but no response arrived."""

    status_code: int = NETWORK_STATUS_CODE
    message: str | None = "Network communication error"
    error_code: str | None = NETWORK_ERROR_CODE


@dataclass(frozen=True)
class UnknownError(WebHttpError):
    """Raised when neither a request nor a response is available."""

    status_code: int = UNKNOWN_STATUS_CODE
    message: str | None = "Unknown error"
    error_code: str | None = UNKNOWN_ERROR_CODE
