"""
Use Case: Purge Sessions

Deletes session records that are expired or revoked. Run periodically by the
app lifespan and on demand from the admin API.
"""

import logging

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth.dtos import PurgeSessionsResponse

logger = logging.getLogger(__name__)


class PurgeSessionsUseCase:
    """
    Remove dead session records.

    Business Logic:
    1. Delete every record whose expiry has passed or that was revoked
    2. Return the number of deleted records

    Idempotent: a second run right after the first deletes nothing.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self) -> Result[PurgeSessionsResponse]:
        async with self.uow:
            purged = await self.uow.sessions.purge_expired_or_revoked()
            await self.uow.commit()

        if purged:
            logger.info(f"Purged {purged} expired or revoked session(s)")

        return Return.ok(PurgeSessionsResponse(purged_count=purged))
