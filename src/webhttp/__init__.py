"""Public API for webhttp.

This module intentionally re-exports the stable, supported surface area of the
library. Import from here when possible.
"""

from webhttp.client.base_client import WebHttp
from webhttp.client.config import ClientConfig, WebHttpConfig
from webhttp.client.midwares import ClientContext, ClientRequestInterceptor, PreparedRequest
from webhttp.core.context import ContextError, WebHttpContext
from webhttp.exceptions import (
    KeyExchangeError,
    NetworkError,
    ServerError,
    UnknownError,
    WebHttpError,
)
from webhttp.observability.logging import LogContext, get_logger
from webhttp.resilience.retry_policy import RetryPolicy, RetryStrategy
from webhttp.types import RequestOptions, WebHttpResponse
from webhttp.utils.constant import ContextKey, RequestHeaders, ResponseHeaders

__all__ = [
    # client
    "WebHttp",
    "ClientConfig",
    "WebHttpConfig",
    "RetryPolicy",
    "RetryStrategy",
    # types
    "RequestOptions",
    "WebHttpResponse",
    # context
    "ContextError",
    "ContextKey",
    "WebHttpContext",
    # interceptors
    "ClientContext",
    "ClientRequestInterceptor",
    "PreparedRequest",
    # headers
    "RequestHeaders",
    "ResponseHeaders",
    # logging
    "LogContext",
    "get_logger",
    # errors
    "KeyExchangeError",
    "NetworkError",
    "ServerError",
    "UnknownError",
    "WebHttpError",
]
