from __future__ import annotations

import io
import itertools
import json
import logging
from typing import Any

import httpx
import pytest

from webhttp import RequestOptions, ServerError, WebHttpConfig, WebHttpContext
from webhttp.client.interceptors import ClientContext, HeaderInterceptor, InterceptorPipeline
from webhttp.client.transports import RestTransport
from webhttp.observability.logging import (
    LOG_FORMAT_CONSOLE,
    LOG_FORMAT_ENV,
    LogContext,
    StructuredConsoleFormatter,
    StructuredJSONFormatter,
    get_logger,
)
from webhttp.utils.constant import RequestHeaders

_LOGGER_COUNTER = itertools.count()


def _unique_logger_name(prefix: str) -> str:
    """Return a unique logger name for isolation."""
    return f"{prefix}.{next(_LOGGER_COUNTER)}"


def _cleanup_logger(logger: logging.Logger) -> None:
    """Remove all handlers from a logger."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _read_json_payload(stream: io.StringIO) -> dict[str, Any]:
    """Parse the last JSON log line from the stream."""
    lines = [line for line in stream.getvalue().splitlines() if line.strip()]
    assert lines, "expected log output to contain at least one line"
    return json.loads(lines[-1])


@pytest.fixture(autouse=True)
def _reset_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


def test_json_logger_includes_session_context():
    stream = io.StringIO()
    logger = get_logger(_unique_logger_name("webhttp.test"), log_format="json", stream=stream)
    try:
        with LogContext(session_id="s-1", request_id="r-1"):
            logger.info("sent", extra={"method": "GET"})
        payload = _read_json_payload(stream)
    finally:
        _cleanup_logger(logger)

    assert payload["message"] == "sent"
    assert payload["level"] == "INFO"
    assert payload["session_id"] == "s-1"
    assert payload["request_id"] == "r-1"
    assert payload["method"] == "GET"


def test_context_is_restored_on_exit():
    with LogContext(session_id="outer"):
        with LogContext(session_id="inner", request_id="r-2"):
            assert LogContext.snapshot()["session_id"] == "inner"
        assert LogContext.snapshot() == {"session_id": "outer", "request_id": None}
    assert LogContext.snapshot()["session_id"] is None


def test_credentials_in_extra_are_redacted():
    stream = io.StringIO()
    logger = get_logger(_unique_logger_name("webhttp.test"), log_format="json", stream=stream)
    try:
        logger.info("auth", extra={"access_token": "tok-1", "api_key": "k-1"})
        payload = _read_json_payload(stream)
    finally:
        _cleanup_logger(logger)

    assert payload["access_token"] == "***"
    assert payload["api_key"] == "***"


def test_console_format_from_env(monkeypatch):
    monkeypatch.setenv(LOG_FORMAT_ENV, LOG_FORMAT_CONSOLE)
    stream = io.StringIO()
    logger = get_logger(_unique_logger_name("webhttp.test"), stream=stream)
    try:
        assert isinstance(logger.handlers[0].formatter, StructuredConsoleFormatter)
        with LogContext(session_id="s-9"):
            logger.warning("hello")
    finally:
        _cleanup_logger(logger)

    line = stream.getvalue().strip()
    assert "hello" in line
    assert "session_id=s-9" in line
    assert "request_id=-" in line


def test_handler_is_attached_once():
    name = _unique_logger_name("webhttp.test")
    logger = get_logger(name, log_format="json")
    try:
        assert get_logger(name, log_format="json") is logger
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, StructuredJSONFormatter)
    finally:
        _cleanup_logger(logger)


@pytest.mark.asyncio
async def test_client_logs_carry_session_id(make_client, caplog):
    client = make_client(lambda request: httpx.Response(404, json={"message": "missing"}), {"retry": {"max_attempts": 1}})
    caplog.set_level(logging.DEBUG, logger="webhttp")

    with pytest.raises(ServerError):
        await client.get("/missing")

    records = [r for r in caplog.records if r.name == "webhttp.client.base_client"]
    assert records
    assert "status=404" in records[-1].getMessage()
    assert LogContext.snapshot()["session_id"] is None


@pytest.mark.asyncio
async def test_transport_binds_request_id_for_the_attempt_only():
    bound: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bound.append(LogContext.snapshot()["request_id"])
        assert bound[-1] == request.headers[RequestHeaders.REQUEST_ID.value]
        return httpx.Response(204)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://api.example.com")
    transport = RestTransport(http, InterceptorPipeline([HeaderInterceptor()]))
    context = ClientContext(session=WebHttpContext(), config=WebHttpConfig())

    await transport.send(RequestOptions(url="/ping"), context=context)
    await http.aclose()

    assert bound[0] is not None
    assert LogContext.snapshot()["request_id"] is None
