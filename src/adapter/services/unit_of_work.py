import asyncio
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.account_repository import AccountRepository
from src.adapter.repositories.session_repository import SessionRepository
from src.app.services.unit_of_work import UnitOfWork, UnitOfWorkTimeoutError


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    SQLAlchemy implementation of UnitOfWork pattern.

    Everything done inside `async with uow:` shares one deadline of
    `timeout_seconds`; when it passes, the pending work is cancelled, rolled
    back, and UnitOfWorkTimeoutError is raised.
    """

    def __init__(self, session: AsyncSession, timeout_seconds: Optional[float] = None):
        self.session = session
        self.timeout_seconds = timeout_seconds

    async def __aenter__(self):
        self.accounts = AccountRepository(self.session)
        self.sessions = SessionRepository(self.session)
        self._deadline = asyncio.timeout(self.timeout_seconds)
        await self._deadline.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        try:
            await self._deadline.__aexit__(exc_type, exc, tb)
        except TimeoutError as timeout:
            await self.rollback()
            raise UnitOfWorkTimeoutError(
                f"Store operation exceeded {self.timeout_seconds}s"
            ) from timeout
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
