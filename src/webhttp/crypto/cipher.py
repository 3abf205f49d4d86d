"""Hybrid payload encryption used by the crypto interceptor.

Outgoing bodies are sealed with a per-request AES-256-GCM content key. The
content key is wrapped with the server's RSA public key (OAEP, SHA-256) so
only the server can recover it; the server encrypts its reply with the same
content key, which the client keeps locally to open the response.

Envelope wire format (JSON object)::

    {"iv": "<base64 nonce>", "payload": "<base64 ciphertext + tag>"}
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from webhttp.crypto.exceptions import DecryptionError, EnvelopeError, InvalidPublicKeyError

logger = logging.getLogger(__name__)

ENVELOPE_IV = "iv"
ENVELOPE_PAYLOAD = "payload"

CONTENT_KEY_BITS = 256
NONCE_SIZE = 12


def oaep_padding() -> padding.OAEP:
    """Return the OAEP padding used to wrap content keys."""
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(value: Any, field_name: str) -> bytes:
    if not isinstance(value, str):
        raise EnvelopeError(f"Envelope field '{field_name}' must be a string")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise EnvelopeError(f"Envelope field '{field_name}' is not valid base64") from e


@dataclass(frozen=True, slots=True)
class SealedPayload:
    """Result of sealing one outgoing request.

    Attributes:
        envelope: Encrypted body, or ``None`` when the request had no body.
        wrapped_key: Base64 content key wrapped with the server public key.
        content_key: Raw content key, kept locally to open the response.
    """

    envelope: dict[str, str] | None
    wrapped_key: str
    content_key: bytes


class Cipher(ABC):
    """Encrypts request bodies for a server key and opens encrypted replies."""

    @abstractmethod
    def encrypt(self, plaintext: bytes | None, public_key: str) -> SealedPayload:
        """Seal ``plaintext`` for the holder of ``public_key``."""

    @abstractmethod
    def decrypt(self, envelope: Any, content_key: bytes) -> bytes:
        """Open an envelope produced with ``content_key``."""

    def is_envelope(self, value: Any) -> bool:
        """Return whether ``value`` looks like an encrypted envelope."""
        return (
            isinstance(value, Mapping)
            and set(value.keys()) == {ENVELOPE_IV, ENVELOPE_PAYLOAD}
        )


class HybridCipher(Cipher):
    """RSA-OAEP key wrapping with AES-256-GCM body encryption."""

    def __init__(self) -> None:
        self._keys: dict[str, rsa.RSAPublicKey] = {}

    def load_public_key(self, public_key: str) -> rsa.RSAPublicKey:
        """Load a PEM or base64 DER RSA public key, caching parsed keys."""
        cached = self._keys.get(public_key)
        if cached is not None:
            return cached
        if not public_key:
            raise InvalidPublicKeyError("Public key cannot be empty")
        try:
            if "-----BEGIN" in public_key:
                loaded = serialization.load_pem_public_key(public_key.encode("utf-8"))
            else:
                der = base64.b64decode(public_key, validate=True)
                loaded = serialization.load_der_public_key(der)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise InvalidPublicKeyError(f"Invalid public key: {e}") from e
        if not isinstance(loaded, rsa.RSAPublicKey):
            raise InvalidPublicKeyError("Public key must be an RSA key")
        self._keys[public_key] = loaded
        return loaded

    def encrypt(self, plaintext: bytes | None, public_key: str) -> SealedPayload:
        server_key = self.load_public_key(public_key)
        content_key = AESGCM.generate_key(bit_length=CONTENT_KEY_BITS)
        wrapped = server_key.encrypt(content_key, oaep_padding())

        envelope = None
        if plaintext is not None:
            nonce = os.urandom(NONCE_SIZE)
            ciphertext = AESGCM(content_key).encrypt(nonce, plaintext, None)
            envelope = {
                ENVELOPE_IV: _b64encode(nonce),
                ENVELOPE_PAYLOAD: _b64encode(ciphertext),
            }
        logger.debug("Sealed request payload (%s bytes)", 0 if plaintext is None else len(plaintext))
        return SealedPayload(envelope=envelope, wrapped_key=_b64encode(wrapped), content_key=content_key)

    def decrypt(self, envelope: Any, content_key: bytes) -> bytes:
        if not self.is_envelope(envelope):
            raise EnvelopeError("Encrypted body must be an object with 'iv' and 'payload'")
        nonce = _b64decode(envelope[ENVELOPE_IV], ENVELOPE_IV)
        ciphertext = _b64decode(envelope[ENVELOPE_PAYLOAD], ENVELOPE_PAYLOAD)
        if len(nonce) != NONCE_SIZE:
            raise EnvelopeError(f"Envelope nonce must be {NONCE_SIZE} bytes")
        try:
            return AESGCM(content_key).decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise DecryptionError("Response payload failed authentication") from e


def seal_with_content_key(plaintext: bytes, content_key: bytes) -> dict[str, str]:
    """Encrypt ``plaintext`` into an envelope with an existing content key.

    This is the server side of the exchange: a server that unwrapped the
    request's content key seals its reply with it.
    """
    nonce = os.urandom(NONCE_SIZE)
    ciphertext = AESGCM(content_key).encrypt(nonce, plaintext, None)
    return {ENVELOPE_IV: _b64encode(nonce), ENVELOPE_PAYLOAD: _b64encode(ciphertext)}


def unwrap_content_key(wrapped_key: str, private_key: rsa.RSAPrivateKey) -> bytes:
    """Recover a content key from the encryption-key header value."""
    try:
        return private_key.decrypt(base64.b64decode(wrapped_key, validate=True), oaep_padding())
    except (binascii.Error, ValueError) as e:
        raise DecryptionError("Content key could not be unwrapped") from e
