"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for the auth domain.

Field names are snake_case in Python and camelCase on the wire; WireModel is
the single place that conversion happens.
"""

import ipaddress
from datetime import UTC, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from src.domain.entities import Account, SessionRecord

USER_AGENT_MAX_LENGTH = 512


class WireModel(BaseModel):
    """Serializes camelCase, accepts camelCase or snake_case"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


# ============================================================================
# Commands
# ============================================================================


class ClientInfo(BaseModel):
    """Device metadata recorded on a session"""

    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    @field_validator("user_agent")
    @classmethod
    def truncate_user_agent(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return value[:USER_AGENT_MAX_LENGTH]

    @field_validator("ip_address")
    @classmethod
    def drop_invalid_ip(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            return str(ipaddress.ip_address(value))
        except ValueError:
            return None


class CredentialsCommand(BaseModel):
    """Email/password pair used by register and login"""

    email: str
    password: str
    client: ClientInfo = ClientInfo()


# ============================================================================
# Response DTOs
# ============================================================================


class AccountInfo(WireModel):
    """Public view of an account"""

    id: str
    email: str
    is_active: bool
    email_verified: bool
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, account: Account) -> "AccountInfo":
        return cls(
            id=str(account.id),
            email=account.email,
            is_active=account.is_active,
            email_verified=account.email_verified,
            created_at=_as_utc(account.created_at),
            updated_at=_as_utc(account.updated_at),
            last_login_at=_as_utc(account.last_login_at),
        )


class TokenPairResponse(WireModel):
    """Response for refresh token use case"""

    access_token: str
    refresh_token: str
    expires_at: datetime


class AuthResponse(TokenPairResponse):
    """Response for register and login use cases"""

    account: AccountInfo


class LogoutResponse(WireModel):
    message: str


class ChangePasswordResponse(WireModel):
    message: str
    revoked_sessions: int


class SessionInfo(WireModel):
    """Public view of a session record (never includes the token hash)"""

    id: str
    created_at: datetime
    expires_at: datetime
    last_used_at: Optional[datetime] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    @classmethod
    def from_entity(cls, record: SessionRecord) -> "SessionInfo":
        return cls(
            id=str(record.id),
            created_at=_as_utc(record.created_at),
            expires_at=_as_utc(record.expires_at),
            last_used_at=_as_utc(record.last_used_at),
            user_agent=record.user_agent,
            ip_address=record.ip_address,
        )


class SessionListResponse(WireModel):
    sessions: List[SessionInfo]


class RevokeSessionsResponse(WireModel):
    message: str
    revoked_count: int


class PurgeSessionsResponse(WireModel):
    purged_count: int
