"""
Change Password Use Case
"""

import asyncio
import logging
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.password_hasher import MalformedDigestError, PasswordHasher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.errors import ErrorCode

from .dtos import ChangePasswordResponse

logger = logging.getLogger(__name__)


class ChangePasswordUseCase:
    """
    Use case for changing the password of a signed-in account.

    Business Rules:
    - Current password must verify
    - New password must satisfy every strength rule
    - Every session of the account is revoked; the caller must log in again
    """

    def __init__(self, uow: UnitOfWork, hasher: PasswordHasher):
        self.uow = uow
        self.hasher = hasher

    async def execute(
        self, account_id: UUID, current_password: str, new_password: str
    ) -> Result[ChangePasswordResponse]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None or not account.is_active:
                return Return.err(Error(ErrorCode.NOT_FOUND, "Account not found"))

            try:
                current_valid = await asyncio.to_thread(
                    self.hasher.verify, current_password, account.password_hash
                )
            except MalformedDigestError:
                logger.error(f"Stored password digest is malformed for account {account.id}")
                current_valid = False

            if not current_valid:
                return Return.err(
                    Error(ErrorCode.INVALID_CREDENTIALS, "Current password is incorrect")
                )

            violations = self.hasher.check_strength(new_password)
            if violations:
                return Return.err(
                    Error(
                        ErrorCode.VALIDATION_ERROR,
                        "Password does not meet requirements",
                        violations,
                    )
                )

            account.password_hash = await asyncio.to_thread(self.hasher.hash, new_password)
            account.updated_at = utc_now()
            await self.uow.accounts.update(account)

            revoked = await self.uow.sessions.revoke_all(account.id)

            await self.uow.commit()

            logger.info(f"Password changed for account {account.id}; revoked {revoked} session(s)")

            return Return.ok(
                ChangePasswordResponse(
                    message="Password changed successfully. Please log in again.",
                    revoked_sessions=revoked,
                )
            )
