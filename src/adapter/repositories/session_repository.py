from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, or_
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository
from src.domain.base import to_naive_utc, utc_now
from src.domain.entities import SessionRecord


class SessionRepository(ISessionRepository):
    """Session store implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        account_id: UUID,
        token_hash: str,
        expires_at: datetime,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> SessionRecord:
        """Create a new session record"""
        record = SessionRecord(
            account_id=account_id,
            token_hash=token_hash,
            expires_at=to_naive_utc(expires_at),
            user_agent=user_agent,
            ip_address=ip_address,
        )
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def find(self, token_hash: str) -> Optional[SessionRecord]:
        """Get a usable session by token hash"""
        stmt = select(SessionRecord).where(
            SessionRecord.token_hash == token_hash,
            SessionRecord.revoked == False,
            SessionRecord.expires_at > utc_now(),
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def find_any(self, token_hash: str) -> Optional[SessionRecord]:
        """Get a session by token hash, whatever its state"""
        stmt = select(SessionRecord).where(SessionRecord.token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def touch(self, session_id: UUID) -> None:
        stmt = (
            update(SessionRecord)
            .where(SessionRecord.id == session_id)
            .values(last_used_at=utc_now())
        )
        await self.session.execute(stmt)
        await self.session.flush()

    async def revoke(self, token_hash: str) -> bool:
        """
        Revoke one session.

        Conditional on the record still being active, so of two concurrent
        callers holding the same token only one sees True.
        """
        stmt = (
            update(SessionRecord)
            .where(
                SessionRecord.token_hash == token_hash,
                SessionRecord.revoked == False,
            )
            .values(revoked=True, revoked_at=utc_now())
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_all(self, account_id: UUID) -> int:
        """Revoke all active sessions for an account"""
        stmt = (
            update(SessionRecord)
            .where(
                SessionRecord.account_id == account_id,
                SessionRecord.revoked == False,
            )
            .values(revoked=True, revoked_at=utc_now())
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def list_active(self, account_id: UUID) -> List[SessionRecord]:
        """Get usable sessions for an account, newest first"""
        stmt = (
            select(SessionRecord)
            .where(
                SessionRecord.account_id == account_id,
                SessionRecord.revoked == False,
                SessionRecord.expires_at > utc_now(),
            )
            .order_by(SessionRecord.created_at.desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def purge_expired_or_revoked(self) -> int:
        stmt = delete(SessionRecord).where(
            or_(
                SessionRecord.expires_at <= utc_now(),
                SessionRecord.revoked == True,
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
