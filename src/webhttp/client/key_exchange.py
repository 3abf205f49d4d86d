"""Single-flight publication of server public keys.

When the server rejects a request because it no longer holds the private
counterpart of the key the client used, it answers with a fresh public key.
Several calls in flight on the same client can receive that answer at once;
only the first one publishes, the others resend with whatever key is current.
"""

from __future__ import annotations

import asyncio
import logging

from webhttp.core.context import WebHttpContext
from webhttp.utils.constant import ContextKey

logger = logging.getLogger(__name__)


class KeyExchange:
    """Coordinates public-key refreshes for one session context."""

    def __init__(self, context: WebHttpContext) -> None:
        self._context = context
        self._lock = asyncio.Lock()
        self.refresh_count = 0

    async def refresh(self, rejected_key: str, supplied_key: str) -> str:
        """Publish ``supplied_key`` unless the rejected key was already replaced.

        Args:
            rejected_key: The public key the failed attempt was sent with.
            supplied_key: The public key carried by the server's error body.

        Returns:
            The public key the retry should use.
        """
        async with self._lock:
            if self._context.compare_and_set(ContextKey.PUBLIC_KEY, rejected_key, supplied_key):
                self.refresh_count += 1
                logger.info("Published refreshed server public key")
                return supplied_key
            current = self._context.get(ContextKey.PUBLIC_KEY)
            logger.debug("Public key already refreshed by a concurrent call")
            return current
