"""
Register Use Case

Creates an account and signs it in.
"""

import asyncio
import logging

from libs.result import Error, Result, Return
from src.app.repositories.account_repository import AccountAlreadyExistsError
from src.app.services.password_hasher import PasswordHasher
from src.app.services.token_codec import TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import Account, normalize_email
from src.domain.errors import ErrorCode

from .dtos import AccountInfo, AuthResponse, CredentialsCommand
from .session_tokens import open_session

logger = logging.getLogger(__name__)


class RegisterUseCase:
    """
    Use case for account registration.

    Business Rules:
    - Email is lower-cased and must be unique
    - Password must satisfy every strength rule; all violations are reported
    - Only the Argon2id digest of the password is stored
    - A successful registration opens a session (same response as login)
    """

    def __init__(self, uow: UnitOfWork, hasher: PasswordHasher, codec: TokenCodec):
        self.uow = uow
        self.hasher = hasher
        self.codec = codec

    async def execute(self, command: CredentialsCommand) -> Result[AuthResponse]:
        email = normalize_email(command.email)

        violations = self.hasher.check_strength(command.password)
        if violations:
            return Return.err(
                Error(
                    ErrorCode.VALIDATION_ERROR,
                    "Password does not meet requirements",
                    violations,
                )
            )

        async with self.uow:
            if await self.uow.accounts.get_by_email(email) is not None:
                return Return.err(
                    Error(ErrorCode.ALREADY_EXISTS, "Email already registered")
                )

            password_hash = await asyncio.to_thread(self.hasher.hash, command.password)

            try:
                account = await self.uow.accounts.create(
                    Account(email=email, password_hash=password_hash, last_login_at=utc_now())
                )
            except AccountAlreadyExistsError:
                # Lost a race with a concurrent registration
                return Return.err(
                    Error(ErrorCode.ALREADY_EXISTS, "Email already registered")
                )

            tokens = await open_session(
                self.uow.sessions, self.codec, account, command.client
            )

            await self.uow.commit()

            logger.info(f"Account registered: {account.id}")

            return Return.ok(
                AuthResponse(
                    access_token=tokens.access_token,
                    refresh_token=tokens.refresh_token,
                    expires_at=tokens.expires_at,
                    account=AccountInfo.from_entity(account),
                )
            )
