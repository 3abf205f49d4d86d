"""Transport outcomes and their normalization into ``WebHttpError``.

The transport reports a failed attempt as one of:

- ``TransportResponseError``: a response arrived with a non-2xx status;
- ``TransportRequestError``: the request went out but no response came back;
- any other exception: neither artifact is available (for example an
  interceptor failed before anything was sent).
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from webhttp.exceptions import NetworkError, ServerError, UnknownError, WebHttpError
from webhttp.utils.constant import KEY_MISSING_ERROR_CODE

__all__ = [
    "TransportRequestError",
    "TransportResponseError",
    "key_missing_public_key",
    "normalize_error",
    "parse_body",
]


class TransportResponseError(Exception):
    """A response was received but its status marks the call as failed."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.request = response.request
        super().__init__(f"HTTP {response.status_code} {response.reason_phrase}")

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def body(self) -> Any:
        return parse_body(self.response)


class TransportRequestError(Exception):
    """The request was sent (or attempted) but no response was received."""

    def __init__(self, request: httpx.Request, cause: BaseException) -> None:
        self.request = request
        self.cause = cause
        super().__init__(f"{type(cause).__name__}: {cause}")


def parse_body(response: httpx.Response) -> Any:
    """Decode a response body as JSON, falling back to text."""
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text


def key_missing_public_key(error: BaseException) -> str | None:
    """Return the server-supplied public key if ``error`` asks for a key exchange."""
    if not isinstance(error, TransportResponseError):
        return None
    body = error.body
    if not isinstance(body, dict) or body.get("errorCode") != KEY_MISSING_ERROR_CODE:
        return None
    details = body.get("error")
    if not isinstance(details, dict):
        return None
    public_key = details.get("publicKey")
    if not isinstance(public_key, str) or not public_key:
        return None
    return public_key


def normalize_error(error: BaseException) -> WebHttpError:
    """Classify a failed call into a ``WebHttpError``."""
    if isinstance(error, WebHttpError):
        return error

    if isinstance(error, TransportResponseError):
        body = error.body
        fields = body if isinstance(body, dict) else {}
        status_code = fields.get("statusCode")
        message = fields.get("message")
        return ServerError(
            status_code=status_code if isinstance(status_code, int) else error.status_code,
            message=message if isinstance(message, str) and message else error.response.reason_phrase,
            error_code=fields.get("errorCode"),
            body=body,
            cause=error,
        )

    if isinstance(error, TransportRequestError):
        return NetworkError(body=error.cause, cause=error)

    return UnknownError(message=str(error) or type(error).__name__, body=error, cause=error)
