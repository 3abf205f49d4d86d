from __future__ import annotations

import base64
import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from webhttp import ClientConfig, WebHttp
from webhttp.crypto import HybridCipher, seal_with_content_key, unwrap_content_key
from webhttp.utils.constant import KEY_MISSING_ERROR_CODE, RequestHeaders

BASE_URL = "https://api.example.com"


class KeyServer:
    """Server side of the key exchange, backed by a real RSA key pair."""

    def __init__(self, private_key: rsa.RSAPrivateKey) -> None:
        self.private_key = private_key
        der = private_key.public_key().public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        self.public_key = base64.b64encode(der).decode("ascii")
        self.public_key_pem = private_key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")
        self._cipher = HybridCipher()

    def open_request(self, request: httpx.Request) -> tuple[Any, bytes]:
        """Return the decrypted JSON body (or None) and the request content key."""
        content_key = unwrap_content_key(
            request.headers[RequestHeaders.ENCRYPTION_KEY.value], self.private_key
        )
        if not request.content:
            return None, content_key
        plaintext = self._cipher.decrypt(json.loads(request.content), content_key)
        return json.loads(plaintext), content_key

    def seal(self, payload: Any, content_key: bytes) -> dict[str, str]:
        return seal_with_content_key(json.dumps(payload).encode("utf-8"), content_key)

    def key_missing(self, public_key: str | None = None) -> httpx.Response:
        return key_missing_response(public_key or self.public_key)


def key_missing_response(public_key: str) -> httpx.Response:
    return httpx.Response(
        400,
        json={
            "statusCode": 400,
            "message": "Private key not found",
            "errorCode": KEY_MISSING_ERROR_CODE,
            "error": {"publicKey": public_key},
        },
    )


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def key_server(rsa_private_key: rsa.RSAPrivateKey) -> KeyServer:
    return KeyServer(rsa_private_key)


@pytest.fixture
def make_client() -> Callable[..., WebHttp]:
    """Build a WebHttp whose network is the given MockTransport handler."""

    def _make(handler: Callable[[httpx.Request], Any], config: Any = None, **kwargs: Any) -> WebHttp:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
        return WebHttp(ClientConfig(httpx_client=http), config, **kwargs)

    return _make
