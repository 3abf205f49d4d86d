from __future__ import annotations

import logging

import httpx

from webhttp.client.errors import TransportRequestError, TransportResponseError
from webhttp.client.interceptors.headers import STATE_REQUEST_ID
from webhttp.client.midwares import ClientContext, InterceptorPipeline, PreparedRequest
from webhttp.client.transports.base import ClientTransport
from webhttp.observability.logging import LogContext
from webhttp.resilience.retry_policy import RetryExecutor
from webhttp.types import RequestOptions

logger = logging.getLogger(__name__)


class RestTransport(ClientTransport):
    """An httpx-backed transport running the interceptor pipeline.

    Every attempt, including connection-level retries, rebuilds the request
    from the descriptor and passes it through the request stages; every
    received response, including error responses, passes through the
    response stages before its status is judged.
    """

    def __init__(
        self,
        httpx_client: httpx.AsyncClient,
        interceptors: InterceptorPipeline | None = None,
        *,
        owns_client: bool = False,
    ):
        """Initializes the RestTransport."""
        self.httpx_client = httpx_client
        self.interceptors = interceptors if interceptors is not None else InterceptorPipeline()
        self._owns_client = owns_client

    async def send(self, options: RequestOptions, *, context: ClientContext) -> httpx.Response:
        executor = RetryExecutor(context.config.retry)
        return await executor.execute(self._send_once, options, context)

    async def _send_once(self, options: RequestOptions, context: ClientContext) -> httpx.Response:
        context.state.pop(STATE_REQUEST_ID, None)
        prepared = PreparedRequest.from_options(options, context.config)
        prepared = await self.interceptors.apply_request(prepared, context)
        request = self.httpx_client.build_request(prepared.method, prepared.url, **prepared.build_kwargs())
        # Bound for this attempt only.
        with LogContext(request_id=context.state.get(STATE_REQUEST_ID)):
            try:
                response = await self.httpx_client.send(request)
            except httpx.RequestError as e:
                logger.debug("No response for %s %s: %s", request.method, request.url, e)
                raise TransportRequestError(request, e) from e

            response = await self.interceptors.apply_response(response, prepared, context)
        if response.is_error:
            raise TransportResponseError(response)
        return response

    async def close(self) -> None:
        if self._owns_client:
            await self.httpx_client.aclose()
