"""
Client-side authentication errors.

Codes mirror the server's error codes; `user_message` gives a stable text that
is safe to show to an end user.
"""

from enum import Enum
from typing import List, Optional

import httpx


class AuthErrorCode(str, Enum):
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    REFRESH_FAILED = "REFRESH_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    SERVER_ERROR = "SERVER_ERROR"


USER_MESSAGES = {
    AuthErrorCode.INVALID_CREDENTIALS: "Invalid email or password. Please try again.",
    AuthErrorCode.TOKEN_EXPIRED: "Your session has expired. Please log in again.",
    AuthErrorCode.TOKEN_INVALID: "Your session has expired. Please log in again.",
    AuthErrorCode.REFRESH_FAILED: "Your session has expired. Please log in again.",
    AuthErrorCode.NETWORK_ERROR: "Unable to connect. Please check your internet connection.",
    AuthErrorCode.UNAUTHORIZED: "Please log in to continue.",
    AuthErrorCode.ALREADY_EXISTS: "An account with this email already exists.",
}
DEFAULT_USER_MESSAGE = "Something went wrong. Please try again."

_STATUS_CODES = {
    400: AuthErrorCode.VALIDATION_ERROR,
    401: AuthErrorCode.UNAUTHORIZED,
    409: AuthErrorCode.ALREADY_EXISTS,
    422: AuthErrorCode.VALIDATION_ERROR,
}


class AuthError(Exception):
    def __init__(
        self,
        code: AuthErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[List[str]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = list(details or [])
        super().__init__(message)

    @property
    def user_message(self) -> str:
        if self.code == AuthErrorCode.VALIDATION_ERROR:
            return self.message
        return USER_MESSAGES.get(self.code, DEFAULT_USER_MESSAGE)

    @classmethod
    def from_response(cls, response: httpx.Response) -> "AuthError":
        """Build from an error response body `{"error": {code, message, details}}`"""
        try:
            body = response.json()
        except ValueError:
            body = None

        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            error = {}

        try:
            code = AuthErrorCode(error.get("code"))
        except ValueError:
            code = _STATUS_CODES.get(response.status_code, AuthErrorCode.SERVER_ERROR)

        return cls(
            code,
            error.get("message") or f"Request failed with status {response.status_code}",
            status_code=response.status_code,
            details=error.get("details"),
        )

    def __repr__(self) -> str:
        return f"AuthError(code={self.code.value!r}, message={self.message!r}, status_code={self.status_code!r})"
