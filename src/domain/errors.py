"""
Authentication error taxonomy.

Every failure a use case can report carries one of these codes. The API layer
maps each code to exactly one HTTP status and public message
(see src/api/error.py), and the session client reuses the same codes.
"""

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    REFRESH_FAILED = "REFRESH_FAILED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    SERVER_ERROR = "SERVER_ERROR"
