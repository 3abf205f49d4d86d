"""Session-scoped context store.

One ``WebHttpContext`` is owned by each client instance and shared by every
call issued through it. Interceptors read credentials from it and write
rotated tokens back; the key-exchange path publishes new server public keys.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Mapping

from webhttp.utils.constant import DEFAULT_CLIENT_ID, ContextKey, RequestHeaders

__all__ = ["ContextError", "WebHttpContext"]


class ContextError(Exception):
    """Raised when a write would break a context invariant."""


class WebHttpContext:
    """Mutable key/value state for one client session.

    Args:
        session_id: Session identifier; generated with ``uuid4`` when omitted.
        client_id: Client identifier sent with every request.
    """

    def __init__(self, session_id: str | None = None, client_id: str = DEFAULT_CLIENT_ID) -> None:
        self._lock = threading.Lock()
        self._values: dict[ContextKey, str] = {
            ContextKey.SESSION_ID: session_id or str(uuid.uuid4()),
            ContextKey.API_KEY: "",
            ContextKey.ACCESS_TOKEN: "",
            ContextKey.REFRESH_TOKEN: "",
            ContextKey.PUBLIC_KEY: "",
            ContextKey.CLIENT_ID: client_id,
            ContextKey.AUTHENTICATION_TOKEN_KEY: RequestHeaders.ACCESS_TOKEN.value,
        }

    @property
    def session_id(self) -> str:
        return self._values[ContextKey.SESSION_ID]

    def get(self, key: ContextKey | str) -> str:
        return self._values[self._key(key)]

    def set(self, key: ContextKey | str, value: str) -> None:
        """Overwrite a value; last write wins."""
        resolved = self._writable_key(key)
        with self._lock:
            self._values[resolved] = value

    def update(self, values: Mapping[ContextKey | str, str]) -> None:
        """Overwrite several values under one lock acquisition."""
        resolved = {self._writable_key(key): value for key, value in values.items()}
        with self._lock:
            self._values.update(resolved)

    def compare_and_set(self, key: ContextKey | str, expected: str, value: str) -> bool:
        """Set ``key`` to ``value`` only if it currently holds ``expected``."""
        resolved = self._writable_key(key)
        with self._lock:
            if self._values[resolved] != expected:
                return False
            self._values[resolved] = value
            return True

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return {key.value: value for key, value in self._values.items()}

    def __contains__(self, key: object) -> bool:
        try:
            self._key(key)  # type: ignore[arg-type]
        except KeyError:
            return False
        return True

    def __repr__(self) -> str:
        return f"WebHttpContext(session_id={self.session_id!r})"

    @staticmethod
    def _key(key: ContextKey | str) -> ContextKey:
        try:
            return ContextKey(key)
        except ValueError:
            raise KeyError(key) from None

    def _writable_key(self, key: ContextKey | str) -> ContextKey:
        resolved = self._key(key)
        if resolved is ContextKey.SESSION_ID:
            raise ContextError("session_id is immutable for the lifetime of the client")
        return resolved
