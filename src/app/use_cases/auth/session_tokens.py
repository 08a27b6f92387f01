"""
Session token issuance shared by register, login and refresh.
"""

import hashlib
from dataclasses import dataclass
from datetime import datetime

from src.app.repositories.session_repository import ISessionRepository
from src.app.services.token_codec import TokenCodec
from src.domain.entities import Account, SessionRecord

from .dtos import ClientInfo


def hash_refresh_token(refresh_token: str) -> str:
    """SHA-256 hex digest; the only form of a refresh token that is stored"""
    return hashlib.sha256(refresh_token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str
    expires_at: datetime
    record: SessionRecord


async def open_session(
    sessions: ISessionRepository,
    codec: TokenCodec,
    account: Account,
    client: ClientInfo,
) -> IssuedTokens:
    """Mint an access/refresh pair and persist the refresh token's record"""
    access_token, access_expires_at = codec.issue_access(account.id, account.email)
    refresh_token, refresh_expires_at = codec.issue_refresh(account.id)

    record = await sessions.create(
        account_id=account.id,
        token_hash=hash_refresh_token(refresh_token),
        expires_at=refresh_expires_at,
        user_agent=client.user_agent,
        ip_address=client.ip_address,
    )

    return IssuedTokens(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=access_expires_at,
        record=record,
    )
