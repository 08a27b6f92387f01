"""
Account Entity

Identity anchor for authentication.
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, Relationship, SQLModel

from src.domain.base import utc_now

if TYPE_CHECKING:
    from .session import SessionRecord


class Account(SQLModel, table=True):
    """
    Account entity - one person who can sign in.

    Business Rules:
    - Email is unique and stored lower-cased (case-insensitive uniqueness)
    - Password stored only as an Argon2id digest, never serialized
    - Deleting an account deletes its session records
    """

    __tablename__ = "accounts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=255, repr=False)

    is_active: bool = Field(default=True)
    email_verified: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Relationships
    sessions: list["SessionRecord"] = Relationship(
        back_populates="account",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "passive_deletes": True},
    )

    __table_args__ = (Index("idx_account_is_active", "is_active"),)


def normalize_email(email: str) -> str:
    return email.strip().lower()
