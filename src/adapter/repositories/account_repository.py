from typing import Optional
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.account_repository import (
    AccountAlreadyExistsError,
    IAccountRepository,
)
from src.domain.entities import Account, SessionRecord, normalize_email


class AccountRepository(IAccountRepository):
    """Account repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by email address"""
        stmt = select(Account).where(Account.email == normalize_email(email))
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_id(self, account_id: UUID) -> Optional[Account]:
        """Get account by ID"""
        stmt = select(Account).where(Account.id == account_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, account: Account) -> Account:
        """Create a new account"""
        account.email = normalize_email(account.email)
        self.session.add(account)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise AccountAlreadyExistsError(account.email) from exc
        await self.session.refresh(account)
        return account

    async def update(self, account: Account) -> Account:
        """Update existing account"""
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def delete(self, account_id: UUID) -> bool:
        """Delete account together with its session records"""
        await self.session.execute(
            delete(SessionRecord).where(SessionRecord.account_id == account_id)
        )
        result = await self.session.execute(delete(Account).where(Account.id == account_id))
        await self.session.flush()
        return result.rowcount > 0
