from __future__ import annotations

from abc import ABC, abstractmethod

import httpx

from webhttp.client.midwares import ClientContext
from webhttp.types import RequestOptions


class ClientTransport(ABC):
    """Abstract base class for client transport mechanisms."""

    @abstractmethod
    async def send(self, options: RequestOptions, *, context: ClientContext) -> httpx.Response:
        """Sends a request and returns the successful response.

        Args:
            options: The call descriptor to send.
            context: Context provided by the client.
        Returns:
            The ``httpx.Response`` with a 2xx status, after response stages ran.
        Raises:
            TransportResponseError: A non-2xx response was received.
            TransportRequestError: No response was received.
        """

    async def close(self) -> None:
        """Release transport resources."""
