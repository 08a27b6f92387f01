"""
Logout Use Case
"""

import logging

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork

from .dtos import LogoutResponse
from .session_tokens import hash_refresh_token

logger = logging.getLogger(__name__)


class LogoutUseCase:
    """
    Use case for ending a session.

    Business Rules:
    - Revokes the session holding the given refresh token, if any
    - Always succeeds: an unknown token, an already revoked token or a
      storage failure still logs the caller out
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, refresh_token: str) -> Result[LogoutResponse]:
        try:
            async with self.uow:
                revoked = await self.uow.sessions.revoke(hash_refresh_token(refresh_token))
                await self.uow.commit()
            if revoked:
                logger.info("Session revoked on logout")
        except Exception:
            logger.exception("Failed to revoke session during logout")

        return Return.ok(LogoutResponse(message="Logged out successfully"))
