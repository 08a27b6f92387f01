"""
Session Record Entity

One logged-in device/session, holding the hash of its refresh token.
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import ForeignKey, Uuid
from sqlmodel import Column, DateTime, Field, Index, Relationship, SQLModel

from src.domain.base import utc_now

if TYPE_CHECKING:
    from .account import Account


class SessionRecord(SQLModel, table=True):
    """
    Session record - persisted side of a refresh credential.

    Business Rules:
    - Only the SHA-256 hash of the refresh token is stored
    - Tokens rotate on each refresh; the used record is revoked
    - Revoked or expired records are never returned by lookups
    - Expired and revoked records are deleted by the periodic sweep
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    account_id: UUID = Field(
        sa_column=Column(
            Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )

    token_hash: str = Field(max_length=64, unique=True, index=True)  # SHA-256 hex
    revoked: bool = Field(default=False)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Device metadata
    user_agent: Optional[str] = Field(default=None, max_length=512)
    ip_address: Optional[str] = Field(default=None, max_length=45)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    last_used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Relationships
    account: Optional["Account"] = Relationship(back_populates="sessions")

    __table_args__ = (
        Index("idx_session_expires_at", "expires_at"),
        Index("idx_session_account_revoked", "account_id", "revoked"),
    )
