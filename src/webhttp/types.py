"""Request and response types for the WebHttp client."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, InstanceOf, field_validator

from webhttp.client.config import WebHttpConfig
from webhttp.client.errors import parse_body


class RequestOptions(BaseModel):
    """Caller-supplied parameters of one logical call.

    ``data`` is sent as JSON; ``content`` as raw bytes. ``config`` holds
    per-call overrides, a mapping merged on top of the instance configuration
    or a complete ``WebHttpConfig`` used as is.
    """

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    url: str
    params: dict[str, Any] | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    data: Any | None = None
    content: bytes | None = None
    config: dict[str, Any] | InstanceOf[WebHttpConfig] | None = None

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("method cannot be empty")
        return value

    @field_validator("url")
    @classmethod
    def _non_empty_url(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("url cannot be empty")
        return value


class WebHttpResponse(BaseModel):
    """Successful call result with the decoded (and decrypted) body."""

    status_code: int
    headers: dict[str, str] = Field(default_factory=dict)
    data: Any | None = None

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> WebHttpResponse:
        return cls(
            status_code=response.status_code,
            headers=dict(response.headers.items()),
            data=parse_body(response),
        )
