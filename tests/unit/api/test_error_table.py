import pytest

from libs.result import Error
from src.api.error import ERROR_TABLE, ClientError, ServerError, raise_for_error
from src.domain.errors import ErrorCode


def test_every_code_is_mapped():
    assert set(ERROR_TABLE) == set(ErrorCode)


@pytest.mark.parametrize(
    "code, status_code, public_code, public_message",
    [
        ("INVALID_CREDENTIALS", 401, "INVALID_CREDENTIALS", "Invalid email or password"),
        ("NOT_FOUND", 401, "INVALID_CREDENTIALS", "Invalid email or password"),
        ("TOKEN_EXPIRED", 401, "TOKEN_INVALID", "Invalid or expired token"),
        ("TOKEN_INVALID", 401, "TOKEN_INVALID", "Invalid or expired token"),
        ("REFRESH_FAILED", 401, "TOKEN_INVALID", "Invalid or expired token"),
        ("ALREADY_EXISTS", 409, "ALREADY_EXISTS", "An account with this email already exists"),
    ],
)
def test_internal_details_are_replaced(code, status_code, public_code, public_message):
    with pytest.raises(ClientError) as exc_info:
        raise_for_error(Error(code, "internal detail that must not leak"))

    assert exc_info.value.status_code == status_code
    assert exc_info.value.base_error.code == public_code
    assert exc_info.value.base_error.message == public_message


def test_validation_error_keeps_message_and_details():
    with pytest.raises(ClientError) as exc_info:
        raise_for_error(
            Error(ErrorCode.VALIDATION_ERROR, "Password does not meet requirements", ["too short"])
        )

    assert exc_info.value.status_code == 400
    assert exc_info.value.base_error.message == "Password does not meet requirements"
    assert exc_info.value.base_error.details == ["too short"]


def test_unauthorized_keeps_reason():
    with pytest.raises(ClientError) as exc_info:
        raise_for_error(Error(ErrorCode.UNAUTHORIZED, "Authorization header is required"))

    assert exc_info.value.base_error.message == "Authorization header is required"


@pytest.mark.parametrize("code", ["SERVER_ERROR", "SOMETHING_UNEXPECTED"])
def test_server_errors(code):
    with pytest.raises(ServerError):
        raise_for_error(Error(code, "boom"))
