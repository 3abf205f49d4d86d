from webhttp.crypto.cipher import (
    Cipher,
    HybridCipher,
    SealedPayload,
    seal_with_content_key,
    unwrap_content_key,
)
from webhttp.crypto.exceptions import (
    CryptoError,
    DecryptionError,
    EnvelopeError,
    InvalidPublicKeyError,
)

__all__ = [
    "Cipher",
    "HybridCipher",
    "SealedPayload",
    "seal_with_content_key",
    "unwrap_content_key",
    "CryptoError",
    "DecryptionError",
    "EnvelopeError",
    "InvalidPublicKeyError",
]
