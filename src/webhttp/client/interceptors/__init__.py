"""Client interceptors for the default request pipeline.

The default pipeline is ``header`` then ``crypto`` on the way out and the
reverse on the way in.
"""

from __future__ import annotations

from webhttp.client.interceptors.crypto import CryptoInterceptor
from webhttp.client.interceptors.headers import HeaderInterceptor
from webhttp.client.midwares import (
    ClientContext,
    ClientRequestInterceptor,
    InterceptorPipeline,
    PreparedRequest,
)

__all__ = [
    # Base classes
    "ClientContext",
    "ClientRequestInterceptor",
    "InterceptorPipeline",
    "PreparedRequest",
    # Default stages
    "CryptoInterceptor",
    "HeaderInterceptor",
]
