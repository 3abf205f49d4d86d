from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from webhttp.client.config import ClientConfig, WebHttpConfig
from webhttp.client.errors import key_missing_public_key, normalize_error
from webhttp.client.interceptors.crypto import STATE_PUBLIC_KEY, CryptoInterceptor
from webhttp.client.interceptors.headers import HeaderInterceptor
from webhttp.client.key_exchange import KeyExchange
from webhttp.client.midwares import ClientContext, ClientRequestInterceptor, InterceptorPipeline
from webhttp.client.transports.base import ClientTransport
from webhttp.client.transports.rest import RestTransport
from webhttp.core.context import WebHttpContext
from webhttp.crypto.cipher import Cipher
from webhttp.exceptions import KeyExchangeError
from webhttp.observability.logging import LogContext
from webhttp.types import RequestOptions, WebHttpResponse

logger = logging.getLogger(__name__)


class WebHttp:
    """HTTP client facade with header injection, payload encryption and
    transparent recovery from server key rotation.

    Each instance owns one ``WebHttpContext`` shared by all of its calls.

    Args:
        client_config: Transport construction settings.
        config: Instance-level behavior settings; a ``WebHttpConfig`` or a
            mapping of overrides on top of the defaults.
        cipher: Cipher used by the crypto stage.
        transport: Transport override. When given, the caller wires
            ``self.interceptors`` into it.
    """

    def __init__(
        self,
        client_config: ClientConfig | None = None,
        config: WebHttpConfig | Mapping[str, Any] | None = None,
        *,
        cipher: Cipher | None = None,
        transport: ClientTransport | None = None,
    ) -> None:
        self.client_config = client_config or ClientConfig()
        self.config = WebHttpConfig.from_value(config)

        # WebHttp context for all requests at session level
        self.context = WebHttpContext()
        self.interceptors = InterceptorPipeline()
        self._use_default_interceptors(cipher)
        self._key_exchange = KeyExchange(self.context)

        if transport is None:
            owns_client = self.client_config.httpx_client is None
            httpx_client = self.client_config.httpx_client or httpx.AsyncClient(
                base_url=self.client_config.base_url,
                headers=self.client_config.headers,
            )
            transport = RestTransport(httpx_client, self.interceptors, owns_client=owns_client)
        self._transport = transport

    def _use_default_interceptors(self, cipher: Cipher | None) -> None:
        if not self.config.disable_header_injection:
            self.interceptors.use(HeaderInterceptor())
        if not self.config.disable_crypto:
            self.interceptors.use(CryptoInterceptor(cipher))

    def _encrypts(self, context: ClientContext) -> bool:
        """Whether a crypto stage is registered and runs for this call."""
        return any(
            isinstance(interceptor, CryptoInterceptor) and interceptor.enabled(context)
            for interceptor in self.interceptors
        )

    def add_interceptor(self, interceptor: ClientRequestInterceptor, *, before: str | None = None) -> None:
        """Adds a custom stage to the pipeline.

        Args:
            interceptor: The stage to add.
            before: Name of an existing stage to insert ahead of.
        """
        self.interceptors.use(interceptor, before=before)

    async def request(self, options: RequestOptions | Mapping[str, Any]) -> WebHttpResponse:
        """Sends one logical call.

        A server reply reporting that its private key is missing is answered
        by publishing the key it supplies and resending the same request, at
        most ``key_refresh_max_attempts`` times. Any other failure is raised.

        Args:
            options: The call descriptor.
        Returns:
            The successful response.
        Raises:
            ServerError: A response was received and the call failed.
            KeyExchangeError: The key-missing reply kept repeating.
            NetworkError: No response was received.
            UnknownError: The call failed before a request existed.
        """
        if not isinstance(options, RequestOptions):
            options = RequestOptions.model_validate(options)
        config = self.config.merge(options.config)
        context = ClientContext(session=self.context, config=config)

        with LogContext(session_id=self.context.session_id):
            refreshes = 0
            while True:
                try:
                    response = await self._transport.send(options, context=context)
                except Exception as e:
                    public_key = key_missing_public_key(e) if self._encrypts(context) else None
                    if public_key is None:
                        error = normalize_error(e)
                        logger.debug(
                            "%s %s failed: status=%s code=%s",
                            options.method,
                            options.url,
                            error.status_code,
                            error.error_code,
                        )
                        if error is e:
                            raise
                        raise error from e
                    if refreshes >= config.key_refresh_max_attempts:
                        server_error = normalize_error(e)
                        logger.warning(
                            "%s %s: server key still missing after %d refresh(es)",
                            options.method,
                            options.url,
                            refreshes,
                        )
                        raise KeyExchangeError(
                            status_code=server_error.status_code,
                            message=f"Encryption key refresh failed after {refreshes} attempt(s)",
                            body=server_error.body,
                            cause=e,
                        ) from e
                    refreshes += 1
                    await self._key_exchange.refresh(context.state.get(STATE_PUBLIC_KEY, ""), public_key)
                    logger.info("%s %s: resending with refreshed public key", options.method, options.url)
                    continue
                return WebHttpResponse.from_httpx(response)

    async def get(self, url: str, **kwargs: Any) -> WebHttpResponse:
        return await self.request(RequestOptions(method="GET", url=url, **kwargs))

    async def post(self, url: str, **kwargs: Any) -> WebHttpResponse:
        return await self.request(RequestOptions(method="POST", url=url, **kwargs))

    async def put(self, url: str, **kwargs: Any) -> WebHttpResponse:
        return await self.request(RequestOptions(method="PUT", url=url, **kwargs))

    async def patch(self, url: str, **kwargs: Any) -> WebHttpResponse:
        return await self.request(RequestOptions(method="PATCH", url=url, **kwargs))

    async def delete(self, url: str, **kwargs: Any) -> WebHttpResponse:
        return await self.request(RequestOptions(method="DELETE", url=url, **kwargs))

    async def aclose(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> WebHttp:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
