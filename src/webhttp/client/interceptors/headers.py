"""Identity and auth header injection.

Outgoing requests carry the session identity and credentials held in the
session context. Tokens the server rotates in response headers are written
back so the next call on the same client picks them up.
"""

from __future__ import annotations

import logging
import uuid

import httpx

from webhttp.client.midwares import ClientContext, ClientRequestInterceptor, PreparedRequest
from webhttp.utils.constant import ContextKey, RequestHeaders, ResponseHeaders

logger = logging.getLogger(__name__)

STATE_REQUEST_ID = "header.request_id"

# Header name that carried a rotated token -> header to echo it under next time.
_TOKEN_HEADERS = {
    ResponseHeaders.AUTH_TOKEN: RequestHeaders.AUTH_TOKEN,
    ResponseHeaders.ACCESS_TOKEN: RequestHeaders.ACCESS_TOKEN,
}


class HeaderInterceptor(ClientRequestInterceptor):
    """Injects session headers and harvests rotated tokens."""

    name = "header"

    def enabled(self, context: ClientContext) -> bool:
        return not context.config.disable_header_injection

    async def intercept_request(self, request: PreparedRequest, context: ClientContext) -> PreparedRequest:
        session = context.session
        request_id = str(uuid.uuid4())
        context.state[STATE_REQUEST_ID] = request_id

        headers = {
            RequestHeaders.SESSION_ID.value: session.get(ContextKey.SESSION_ID),
            RequestHeaders.REQUEST_ID.value: request_id,
            RequestHeaders.CLIENT_ID.value: session.get(ContextKey.CLIENT_ID),
        }
        api_key = session.get(ContextKey.API_KEY)
        if api_key:
            headers[RequestHeaders.API_KEY.value] = api_key
        access_token = session.get(ContextKey.ACCESS_TOKEN)
        if access_token:
            headers[session.get(ContextKey.AUTHENTICATION_TOKEN_KEY)] = access_token

        request.headers.update(headers)
        return request

    async def intercept_response(
        self,
        response: httpx.Response,
        request: PreparedRequest,
        context: ClientContext,
    ) -> httpx.Response:
        updates: dict[ContextKey, str] = {}
        for response_header, request_header in _TOKEN_HEADERS.items():
            token = response.headers.get(response_header.value)
            if token:
                updates[ContextKey.ACCESS_TOKEN] = token
                updates[ContextKey.AUTHENTICATION_TOKEN_KEY] = request_header.value
        refresh_token = response.headers.get(ResponseHeaders.REFRESH_TOKEN.value)
        if refresh_token:
            updates[ContextKey.REFRESH_TOKEN] = refresh_token

        if updates:
            context.session.update(updates)
            logger.debug("Updated session tokens from response headers: %s", sorted(k.value for k in updates))
        return response
