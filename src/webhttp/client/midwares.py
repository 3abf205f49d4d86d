"""Interceptor contracts and the ordered request pipeline.

Stages run in registration order on the way out and in reverse order on the
way in. With the default stages this means headers are assembled before the
body is encrypted, and a response body is decrypted before its auth headers
are read back into the session context.
"""

from __future__ import annotations

import dataclasses
import json
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from webhttp.client.config import WebHttpConfig
    from webhttp.core.context import WebHttpContext
    from webhttp.types import RequestOptions

__all__ = [
    "ClientContext",
    "ClientRequestInterceptor",
    "InterceptorPipeline",
    "PreparedRequest",
]


@dataclasses.dataclass
class ClientContext:
    """Per-call state handed to every interceptor.

    ``session`` is the instance-wide context shared with concurrent calls;
    ``state`` is scratch space for the attempt in flight.
    """

    session: WebHttpContext
    config: WebHttpConfig
    state: dict[str, Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass
class PreparedRequest:
    """Mutable request built fresh from the descriptor for each attempt."""

    method: str
    url: str
    headers: httpx.Headers = dataclasses.field(default_factory=httpx.Headers)
    params: dict[str, Any] | None = None
    data: Any | None = None
    content: bytes | None = None
    timeout: float | None = None

    def __post_init__(self) -> None:
        # Case-insensitive, so stages replace caller headers instead of duplicating them.
        if not isinstance(self.headers, httpx.Headers):
            self.headers = httpx.Headers(self.headers)

    @classmethod
    def from_options(cls, options: RequestOptions, config: WebHttpConfig) -> PreparedRequest:
        return cls(
            method=options.method,
            url=options.url,
            headers=httpx.Headers(options.headers),
            params=dict(options.params) if options.params is not None else None,
            data=options.data,
            content=options.content,
            timeout=config.timeout,
        )

    @property
    def has_body(self) -> bool:
        return self.content is not None or self.data is not None

    def body_bytes(self) -> bytes | None:
        """Return the body as it would go on the wire."""
        if self.content is not None:
            return self.content
        if self.data is not None:
            return json.dumps(self.data, separators=(",", ":")).encode("utf-8")
        return None

    def build_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``httpx.AsyncClient.build_request``."""
        kwargs: dict[str, Any] = {"headers": self.headers, "timeout": self.timeout}
        if self.params is not None:
            kwargs["params"] = self.params
        if self.content is not None:
            kwargs["content"] = self.content
        elif self.data is not None:
            kwargs["json"] = self.data
        return kwargs


class ClientRequestInterceptor(ABC):
    """A named request/response stage of the client pipeline."""

    name: str = ""

    def enabled(self, context: ClientContext) -> bool:
        """Whether the stage runs for this call."""
        return True

    @abstractmethod
    async def intercept_request(
        self,
        request: PreparedRequest,
        context: ClientContext,
    ) -> PreparedRequest:
        """Transform an outgoing request.

        Args:
            request: The request being prepared for this attempt.
            context: The call context.

        Returns:
            The request to pass to the next stage.
        """

    async def intercept_response(
        self,
        response: httpx.Response,
        request: PreparedRequest,
        context: ClientContext,
    ) -> httpx.Response:
        """Transform an incoming response, successful or not."""
        return response


class InterceptorPipeline:
    """Ordered, named collection of interceptor stages."""

    def __init__(self, stages: list[ClientRequestInterceptor] | None = None) -> None:
        self._stages: list[ClientRequestInterceptor] = []
        for stage in stages or []:
            self.use(stage)

    def use(self, interceptor: ClientRequestInterceptor, *, before: str | None = None) -> None:
        """Register a stage at the end, or ahead of the stage named ``before``."""
        name = interceptor.name or type(interceptor).__name__
        if name in self.names:
            raise ValueError(f"Interceptor stage '{name}' is already registered")
        if before is None:
            self._stages.append(interceptor)
            return
        try:
            index = self.names.index(before)
        except ValueError:
            raise KeyError(before) from None
        self._stages.insert(index, interceptor)

    def remove(self, name: str) -> ClientRequestInterceptor:
        for index, stage in enumerate(self._stages):
            if self._stage_name(stage) == name:
                return self._stages.pop(index)
        raise KeyError(name)

    @property
    def names(self) -> list[str]:
        return [self._stage_name(stage) for stage in self._stages]

    def __iter__(self) -> Iterator[ClientRequestInterceptor]:
        return iter(list(self._stages))

    def __len__(self) -> int:
        return len(self._stages)

    async def apply_request(self, request: PreparedRequest, context: ClientContext) -> PreparedRequest:
        for stage in list(self._stages):
            if stage.enabled(context):
                request = await stage.intercept_request(request, context)
        return request

    async def apply_response(
        self,
        response: httpx.Response,
        request: PreparedRequest,
        context: ClientContext,
    ) -> httpx.Response:
        for stage in reversed(list(self._stages)):
            if stage.enabled(context):
                response = await stage.intercept_response(response, request, context)
        return response

    @staticmethod
    def _stage_name(stage: ClientRequestInterceptor) -> str:
        return stage.name or type(stage).__name__
