"""
Revoke Sessions Use Case

Lets an account see and end its own sessions.
"""

import logging
from uuid import UUID

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth.dtos import (
    RevokeSessionsResponse,
    SessionInfo,
    SessionListResponse,
)

logger = logging.getLogger(__name__)


class RevokeSessionsUseCase:
    """
    Use case for an account's own sessions.

    Business Rules:
    - Only active (not revoked, not expired) sessions are listed
    - Token hashes are never exposed
    - Revoke-all ends every session, including the caller's
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def list_sessions(self, account_id: UUID) -> Result[SessionListResponse]:
        async with self.uow:
            records = await self.uow.sessions.list_active(account_id)
            return Return.ok(
                SessionListResponse(
                    sessions=[SessionInfo.from_entity(record) for record in records]
                )
            )

    async def revoke_all_sessions(self, account_id: UUID) -> Result[RevokeSessionsResponse]:
        async with self.uow:
            count = await self.uow.sessions.revoke_all(account_id)
            await self.uow.commit()

        logger.info(f"Revoked {count} session(s) for account {account_id}")

        return Return.ok(
            RevokeSessionsResponse(
                message=f"Revoked {count} session(s)", revoked_count=count
            )
        )
