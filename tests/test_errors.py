from __future__ import annotations

from dataclasses import FrozenInstanceError

import httpx
import pytest

from webhttp.client.errors import (
    TransportRequestError,
    TransportResponseError,
    key_missing_public_key,
    normalize_error,
)
from webhttp.exceptions import (
    KeyExchangeError,
    NetworkError,
    ServerError,
    UnknownError,
    WebHttpError,
)
from webhttp.utils.constant import KEY_MISSING_ERROR_CODE, NETWORK_ERROR_CODE, UNKNOWN_ERROR_CODE

REQUEST = httpx.Request("POST", "https://api.example.com/resource")


def _response_error(status: int, **kwargs) -> TransportResponseError:
    return TransportResponseError(httpx.Response(status, request=REQUEST, **kwargs))


EXCEPTION_DEFAULTS = [
    (NetworkError, -1, NETWORK_ERROR_CODE),
    (UnknownError, -2, UNKNOWN_ERROR_CODE),
]


@pytest.mark.parametrize("cls,status_code,error_code", EXCEPTION_DEFAULTS)
def test_sentinel_defaults(cls, status_code, error_code):
    error = cls()

    assert isinstance(error, WebHttpError)
    assert error.status_code == status_code
    assert error.error_code == error_code
    assert str(error) == error.message


def test_errors_are_frozen():
    error = ServerError(status_code=400, message="bad")

    with pytest.raises(FrozenInstanceError):
        error.status_code = 500  # type: ignore[misc]


def test_key_exchange_error_is_a_server_error():
    error = KeyExchangeError(status_code=400, message="exhausted")

    assert isinstance(error, ServerError)
    assert error.error_code == KEY_MISSING_ERROR_CODE


def test_cause_is_chained():
    cause = ValueError("boom")

    error = UnknownError(cause=cause)

    assert error.__cause__ is cause


def test_response_error_uses_body_fields():
    error = normalize_error(_response_error(422, json={"statusCode": 4221, "message": "Invalid", "errorCode": "Form::INVALID"}))

    assert isinstance(error, ServerError)
    assert error.to_error_map() == {"statusCode": 4221, "message": "Invalid", "errorCode": "Form::INVALID"}


def test_response_error_falls_back_to_status_line():
    error = normalize_error(_response_error(503, json={"message": ""}))

    assert error.to_error_map() == {"statusCode": 503, "message": "Service Unavailable", "errorCode": None}
    assert error.body == {"message": ""}


def test_response_error_with_empty_body():
    error = normalize_error(_response_error(502))

    assert error.status_code == 502
    assert error.body is None


def test_request_error_is_network_error():
    cause = httpx.ReadTimeout("timed out", request=REQUEST)

    error = normalize_error(TransportRequestError(REQUEST, cause))

    assert isinstance(error, NetworkError)
    assert error.to_error_map() == {
        "statusCode": -1,
        "message": "Network communication error",
        "errorCode": NETWORK_ERROR_CODE,
    }
    assert error.body is cause


def test_anything_else_is_unknown():
    cause = TypeError("bad operand")

    error = normalize_error(cause)

    assert isinstance(error, UnknownError)
    assert error.status_code == -2
    assert error.message == "bad operand"
    assert error.body is cause


def test_normalized_errors_pass_through():
    error = ServerError(status_code=400)

    assert normalize_error(error) is error


def test_key_missing_detection():
    body = {"errorCode": KEY_MISSING_ERROR_CODE, "error": {"publicKey": "PK1"}}

    assert key_missing_public_key(_response_error(400, json=body)) == "PK1"
    assert key_missing_public_key(_response_error(400, json={**body, "errorCode": "Other"})) is None
    assert key_missing_public_key(_response_error(400, json={"errorCode": KEY_MISSING_ERROR_CODE, "error": {}})) is None
    assert key_missing_public_key(_response_error(400, text="plain")) is None
    assert key_missing_public_key(TransportRequestError(REQUEST, OSError())) is None
