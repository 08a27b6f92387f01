"""
Token Codec

Mints and validates HS256-signed access and refresh tokens. The codec is pure:
it never reads or writes the session store, so validation can run from any
number of concurrent requests.
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Callable, Optional, Tuple
from uuid import UUID

from jose import JWTError, jwt

ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

DEFAULT_ACCESS_TTL = timedelta(minutes=15)
DEFAULT_REFRESH_TTL = timedelta(days=7)


class TokenError(Exception):
    """Base class for every token rejection"""


class TokenInvalidError(TokenError):
    """Bad signature, algorithm, issuer, audience, type or claim shape"""


class TokenExpiredError(TokenError):
    """Signature fine but the token is past its expiry"""


@dataclass(frozen=True)
class AccessClaims:
    account_id: UUID
    email: str
    token_id: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class RefreshClaims:
    account_id: UUID
    token_id: str
    issued_at: datetime
    expires_at: datetime


def _utc_clock() -> datetime:
    return datetime.now(UTC)


def _from_timestamp(value: int) -> datetime:
    return datetime.fromtimestamp(value, UTC)


class TokenCodec:
    """
    Signed-token issuer/validator.

    Business Rules:
    - Only HS256 is accepted; "none" and every other algorithm is rejected
    - Access tokens live 15 minutes, refresh tokens 7 days (configurable)
    - Every token carries a random jti
    - Validation checks signature, expiry, not-before, issuer, audience, type
    """

    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        access_ttl: timedelta = DEFAULT_ACCESS_TTL,
        refresh_ttl: timedelta = DEFAULT_REFRESH_TTL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self._issuer = issuer
        self._audience = audience
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._clock = clock or _utc_clock

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        return now.replace(microsecond=0)

    def _issue(self, claims: dict, ttl: timedelta) -> Tuple[str, datetime]:
        now = self._now()
        expires_at = now + ttl
        payload = {
            **claims,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": int(now.timestamp()),
            "nbf": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": str(uuid.uuid4()),
        }
        token = jwt.encode(payload, self._secret, algorithm=ALGORITHM)
        return token, expires_at

    def issue_access(self, account_id: UUID, email: str) -> Tuple[str, datetime]:
        """
        Mint an access token.

        Returns:
            (token, expires_at) with expires_at timezone-aware UTC
        """
        return self._issue(
            {"sub": str(account_id), "email": email, "type": ACCESS_TOKEN_TYPE},
            self.access_ttl,
        )

    def issue_refresh(self, account_id: UUID) -> Tuple[str, datetime]:
        """Mint a refresh token. Persisting its hash is the caller's job."""
        return self._issue(
            {"sub": str(account_id), "type": REFRESH_TOKEN_TYPE},
            self.refresh_ttl,
        )

    def _decode(self, token: str, expected_type: str) -> dict:
        if not isinstance(token, str) or not token:
            raise TokenInvalidError("empty token")

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise TokenInvalidError("malformed token header") from exc

        if header.get("alg") != ALGORITHM:
            raise TokenInvalidError(f"unexpected signing algorithm: {header.get('alg')}")

        # exp/nbf/iat are checked below against the injected clock
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                options={
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                    "require_aud": True,
                    "require_iss": True,
                    "require_sub": True,
                    "require_jti": True,
                },
            )
        except JWTError as exc:
            raise TokenInvalidError(str(exc)) from exc

        for claim in ("iat", "nbf", "exp"):
            if not isinstance(payload.get(claim), int) or isinstance(payload.get(claim), bool):
                raise TokenInvalidError(f"missing or invalid {claim} claim")

        if payload.get("type") != expected_type:
            raise TokenInvalidError("unexpected token type")

        now = int(self._now().timestamp())
        if now < payload["nbf"]:
            raise TokenInvalidError("token not yet valid")
        if now >= payload["exp"]:
            raise TokenExpiredError("token has expired")

        try:
            payload["sub"] = UUID(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise TokenInvalidError("invalid subject") from exc

        return payload

    def validate_access(self, token: str) -> AccessClaims:
        """
        Validate an access token.

        Raises:
            TokenExpiredError: token expired
            TokenInvalidError: any other failure
        """
        payload = self._decode(token, ACCESS_TOKEN_TYPE)
        email = payload.get("email")
        if not isinstance(email, str) or not email:
            raise TokenInvalidError("missing email claim")
        return AccessClaims(
            account_id=payload["sub"],
            email=email,
            token_id=payload["jti"],
            issued_at=_from_timestamp(payload["iat"]),
            expires_at=_from_timestamp(payload["exp"]),
        )

    def validate_refresh(self, token: str) -> RefreshClaims:
        """Validate a refresh token. Raises TokenError subclasses like validate_access."""
        payload = self._decode(token, REFRESH_TOKEN_TYPE)
        return RefreshClaims(
            account_id=payload["sub"],
            token_id=payload["jti"],
            issued_at=_from_timestamp(payload["iat"]),
            expires_at=_from_timestamp(payload["exp"]),
        )

    def extract_account_id(self, refresh_token: str) -> UUID:
        return self.validate_refresh(refresh_token).account_id
