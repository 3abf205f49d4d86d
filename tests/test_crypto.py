from __future__ import annotations

import base64

import pytest

from webhttp.crypto import (
    DecryptionError,
    EnvelopeError,
    HybridCipher,
    InvalidPublicKeyError,
    seal_with_content_key,
    unwrap_content_key,
)


@pytest.mark.parametrize("key_attr", ["public_key", "public_key_pem"])
def test_round_trip(key_server, key_attr):
    cipher = HybridCipher()
    payload = b'{"card":"4111-1111"}'

    sealed = cipher.encrypt(payload, getattr(key_server, key_attr))

    assert sealed.envelope is not None
    assert b"4111" not in base64.b64decode(sealed.envelope["payload"])
    content_key = unwrap_content_key(sealed.wrapped_key, key_server.private_key)
    assert content_key == sealed.content_key
    assert cipher.decrypt(sealed.envelope, content_key) == payload


def test_each_seal_uses_a_fresh_content_key(key_server):
    cipher = HybridCipher()

    first = cipher.encrypt(b"same", key_server.public_key)
    second = cipher.encrypt(b"same", key_server.public_key)

    assert first.content_key != second.content_key
    assert first.envelope != second.envelope


def test_seal_without_body_still_wraps_a_key(key_server):
    sealed = HybridCipher().encrypt(None, key_server.public_key)

    assert sealed.envelope is None
    assert unwrap_content_key(sealed.wrapped_key, key_server.private_key) == sealed.content_key


def test_server_reply_opens_with_content_key(key_server):
    cipher = HybridCipher()
    sealed = cipher.encrypt(b"ping", key_server.public_key)

    reply = seal_with_content_key(b"pong", sealed.content_key)

    assert cipher.decrypt(reply, sealed.content_key) == b"pong"


def test_tampered_payload_fails_authentication(key_server):
    cipher = HybridCipher()
    sealed = cipher.encrypt(b"payload", key_server.public_key)
    raw = bytearray(base64.b64decode(sealed.envelope["payload"]))
    raw[0] ^= 0xFF
    tampered = {**sealed.envelope, "payload": base64.b64encode(bytes(raw)).decode()}

    with pytest.raises(DecryptionError):
        cipher.decrypt(tampered, sealed.content_key)


@pytest.mark.parametrize(
    "envelope",
    [
        "not-an-object",
        {"payload": "AAAA"},
        {"iv": "***", "payload": "AAAA"},
        {"iv": base64.b64encode(b"short").decode(), "payload": "AAAA"},
    ],
)
def test_malformed_envelope(envelope):
    with pytest.raises(EnvelopeError):
        HybridCipher().decrypt(envelope, b"\x00" * 32)


@pytest.mark.parametrize("public_key", ["", "PK1", base64.b64encode(b"not der").decode()])
def test_invalid_public_key(public_key):
    with pytest.raises(InvalidPublicKeyError):
        HybridCipher().encrypt(b"x", public_key)


def test_is_envelope():
    cipher = HybridCipher()

    assert cipher.is_envelope({"iv": "a", "payload": "b"})
    assert not cipher.is_envelope({"iv": "a", "payload": "b", "extra": 1})
    assert not cipher.is_envelope(["iv", "payload"])
