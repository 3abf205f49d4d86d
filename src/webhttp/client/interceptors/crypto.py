"""Payload encryption stage.

Once the server has published a public key into the session context, every
request body is sealed for it and the wrapped content key travels in the
encryption-key header. Encrypted replies are opened with the content key the
attempt generated.
"""

from __future__ import annotations

import logging

import httpx

from webhttp.client.errors import parse_body
from webhttp.client.midwares import ClientContext, ClientRequestInterceptor, PreparedRequest
from webhttp.crypto.cipher import Cipher, HybridCipher
from webhttp.utils.constant import ContextKey, RequestHeaders

logger = logging.getLogger(__name__)

STATE_PUBLIC_KEY = "crypto.public_key"
STATE_CONTENT_KEY = "crypto.content_key"

# Recomputed for the plaintext body by httpx.
_STALE_RESPONSE_HEADERS = ("content-length", "content-encoding", "transfer-encoding")


class CryptoInterceptor(ClientRequestInterceptor):
    """Encrypts outgoing bodies and decrypts incoming ones."""

    name = "crypto"

    def __init__(self, cipher: Cipher | None = None) -> None:
        self.cipher = cipher or HybridCipher()

    def enabled(self, context: ClientContext) -> bool:
        return not context.config.disable_crypto

    async def intercept_request(self, request: PreparedRequest, context: ClientContext) -> PreparedRequest:
        public_key = context.session.get(ContextKey.PUBLIC_KEY)
        # Recorded even when empty so a key-missing reply can tell which key it rejected.
        context.state[STATE_PUBLIC_KEY] = public_key
        context.state.pop(STATE_CONTENT_KEY, None)
        if not public_key:
            return request

        sealed = self.cipher.encrypt(request.body_bytes(), public_key)
        context.state[STATE_CONTENT_KEY] = sealed.content_key
        request.headers[RequestHeaders.ENCRYPTION_KEY.value] = sealed.wrapped_key
        if sealed.envelope is not None:
            request.data = sealed.envelope
            request.content = None
            request.headers["content-type"] = "application/json"
        return request

    async def intercept_response(
        self,
        response: httpx.Response,
        request: PreparedRequest,
        context: ClientContext,
    ) -> httpx.Response:
        content_key = context.state.get(STATE_CONTENT_KEY)
        if content_key is None:
            return response
        body = parse_body(response)
        if not self.cipher.is_envelope(body):
            return response

        plaintext = self.cipher.decrypt(body, content_key)
        headers = [
            (name, value)
            for name, value in response.headers.multi_items()
            if name.lower() not in _STALE_RESPONSE_HEADERS
        ]
        logger.debug("Decrypted response payload (%d bytes)", len(plaintext))
        return httpx.Response(
            status_code=response.status_code,
            headers=headers,
            content=plaintext,
            request=response.request,
            extensions=response.extensions,
        )
