"""
Auth Gate

Turns an Authorization header into an Identity, or rejects the request.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Request
from libs.result import Error

from src.api.error import raise_for_error
from src.app.services.token_codec import TokenCodec, TokenError
from src.domain.errors import ErrorCode

MISSING_HEADER_MESSAGE = "Authorization header is required"
INVALID_HEADER_MESSAGE = "Invalid authorization header format. Use: Bearer <token>"
AUTHENTICATION_REQUIRED_MESSAGE = "Authentication required"


@dataclass(frozen=True)
class Identity:
    """Who is calling, as asserted by a valid access token"""

    account_id: UUID
    email: str
    token_id: str


def parse_bearer(authorization: Optional[str]) -> str:
    """Return the token from a `Bearer <token>` header"""
    if not authorization:
        raise_for_error(Error(ErrorCode.UNAUTHORIZED, MISSING_HEADER_MESSAGE))

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise_for_error(Error(ErrorCode.UNAUTHORIZED, INVALID_HEADER_MESSAGE))

    return parts[1]


def authenticate(authorization: Optional[str], codec: TokenCodec) -> Identity:
    token = parse_bearer(authorization)

    try:
        claims = codec.validate_access(token)
    except TokenError as exc:
        raise_for_error(Error(ErrorCode.TOKEN_INVALID, str(exc)))

    return Identity(account_id=claims.account_id, email=claims.email, token_id=claims.token_id)


def require_identity(request: Request) -> Identity:
    """Identity attached by get_current_identity; rejects if there is none"""
    identity = getattr(request.state, "identity", None)
    if not isinstance(identity, Identity):
        raise_for_error(Error(ErrorCode.UNAUTHORIZED, AUTHENTICATION_REQUIRED_MESSAGE))
    return identity
