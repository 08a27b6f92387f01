import logging
from typing import Dict, NamedTuple, NoReturn, Optional

from fastapi import status
from libs.result import Error

from src.domain.errors import ErrorCode

logger = logging.getLogger(__name__)


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


class PublicError(NamedTuple):
    status_code: int
    code: ErrorCode
    message: Optional[str]  # None: pass the error's own message through


INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
INVALID_TOKEN_MESSAGE = "Invalid or expired token"

# Every error code a use case can return, and how clients get to see it.
ERROR_TABLE: Dict[ErrorCode, PublicError] = {
    ErrorCode.INVALID_CREDENTIALS: PublicError(
        status.HTTP_401_UNAUTHORIZED, ErrorCode.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE
    ),
    ErrorCode.NOT_FOUND: PublicError(
        status.HTTP_401_UNAUTHORIZED, ErrorCode.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE
    ),
    ErrorCode.TOKEN_EXPIRED: PublicError(
        status.HTTP_401_UNAUTHORIZED, ErrorCode.TOKEN_INVALID, INVALID_TOKEN_MESSAGE
    ),
    ErrorCode.TOKEN_INVALID: PublicError(
        status.HTTP_401_UNAUTHORIZED, ErrorCode.TOKEN_INVALID, INVALID_TOKEN_MESSAGE
    ),
    ErrorCode.REFRESH_FAILED: PublicError(
        status.HTTP_401_UNAUTHORIZED, ErrorCode.TOKEN_INVALID, INVALID_TOKEN_MESSAGE
    ),
    ErrorCode.UNAUTHORIZED: PublicError(
        status.HTTP_401_UNAUTHORIZED, ErrorCode.UNAUTHORIZED, None
    ),
    ErrorCode.VALIDATION_ERROR: PublicError(
        status.HTTP_400_BAD_REQUEST, ErrorCode.VALIDATION_ERROR, None
    ),
    ErrorCode.ALREADY_EXISTS: PublicError(
        status.HTTP_409_CONFLICT,
        ErrorCode.ALREADY_EXISTS,
        "An account with this email already exists",
    ),
    ErrorCode.SERVER_ERROR: PublicError(
        status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.SERVER_ERROR, "Internal server error"
    ),
}


def raise_for_error(error: Error) -> NoReturn:
    """
    Translate a use case error into the exception the app handlers render.

    Unknown codes are treated as server errors.
    """
    try:
        public = ERROR_TABLE[ErrorCode(error.code)]
    except ValueError:
        raise ServerError(error)

    if public.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        raise ServerError(error)

    if public.message is not None and public.message != error.message:
        logger.info(f"{error.code}: {error.message}")

    raise ClientError(
        Error(public.code.value, public.message or error.message, list(error.details)),
        status_code=public.status_code,
    )
