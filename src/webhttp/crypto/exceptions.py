"""
Exception hierarchy for payload encryption.

All crypto-related errors inherit from CryptoError for easy catching.
"""


class CryptoError(Exception):
    """Base exception for all cryptographic errors."""


class InvalidPublicKeyError(CryptoError):
    """The server public key could not be loaded.

    Accepted forms are a PEM document or base64-encoded DER
    (SubjectPublicKeyInfo) holding an RSA key.
    """


class EnvelopeError(CryptoError):
    """Invalid envelope format.

    The encrypted envelope is malformed:
    - Not a JSON object
    - Missing ``iv`` or ``payload``
    - Invalid base64
    """


class DecryptionError(CryptoError):
    """Failed to decrypt ciphertext.

    Possible causes:
    - Wrong content key
    - Corrupted ciphertext
    - Invalid authentication tag
    """
