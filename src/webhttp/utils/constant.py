from enum import StrEnum

DEFAULT_CLIENT_ID = "BROWSER"
KEY_MISSING_ERROR_CODE = "ApiCrypto::PRIVATE_KEY_NOT_FOUND"
NETWORK_ERROR_CODE = "WebHttp::NETWORK"
UNKNOWN_ERROR_CODE = "WebHttp::UNKNOWN"
NETWORK_STATUS_CODE = -1
UNKNOWN_STATUS_CODE = -2


class RequestHeaders(StrEnum):
    """Header names written on outgoing requests."""
    SESSION_ID = "x-session-id"
    REQUEST_ID = "x-request-id"
    API_KEY = "x-api-key"
    AUTH_TOKEN = "x-auth-token"
    ACCESS_TOKEN = "x-access-token"
    ENCRYPTION_KEY = "x-api-encryption-key"
    CLIENT_ID = "x-client-id"


class ResponseHeaders(StrEnum):
    """Header names read from incoming responses."""
    AUTH_TOKEN = "x-auth-token"
    ACCESS_TOKEN = "x-access-token"
    REFRESH_TOKEN = "x-refresh-token"


class ContextKey(StrEnum):
    """Keys of the session context store."""
    SESSION_ID = "session_id"
    API_KEY = "api_key"
    ACCESS_TOKEN = "access_token"
    REFRESH_TOKEN = "refresh_token"
    PUBLIC_KEY = "public_key"
    CLIENT_ID = "client_id"
    AUTHENTICATION_TOKEN_KEY = "authentication_token_key"
