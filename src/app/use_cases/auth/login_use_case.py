"""
Login Use Case

Handles credential checks and opens a new session.
"""

import asyncio
import logging

from libs.result import Error, Result, Return
from src.app.services.password_hasher import MalformedDigestError, PasswordHasher
from src.app.services.token_codec import TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import normalize_email
from src.domain.errors import ErrorCode

from .dtos import AccountInfo, AuthResponse, CredentialsCommand
from .session_tokens import open_session

logger = logging.getLogger(__name__)


def _invalid_credentials() -> Result:
    return Return.err(Error(ErrorCode.INVALID_CREDENTIALS, "Invalid email or password"))


class LoginUseCase:
    """
    Use case for login and token issuance.

    Business Rules:
    - Unknown email, wrong password and inactive account give the same error
    - A password check runs even when the email is unknown (timing parity)
    - A corrupted stored digest fails closed as invalid credentials
    - Digests minted with outdated parameters are re-hashed on success
    - Creates a new session record and updates last_login_at
    """

    def __init__(self, uow: UnitOfWork, hasher: PasswordHasher, codec: TokenCodec):
        self.uow = uow
        self.hasher = hasher
        self.codec = codec

    async def execute(self, command: CredentialsCommand) -> Result[AuthResponse]:
        async with self.uow:
            account = await self.uow.accounts.get_by_email(normalize_email(command.email))

            if account is None:
                await asyncio.to_thread(self.hasher.dummy_verify, command.password)
                return _invalid_credentials()

            try:
                password_valid = await asyncio.to_thread(
                    self.hasher.verify, command.password, account.password_hash
                )
            except MalformedDigestError:
                logger.error(f"Stored password digest is malformed for account {account.id}")
                return _invalid_credentials()

            if not password_valid or not account.is_active:
                return _invalid_credentials()

            if self.hasher.needs_rehash(account.password_hash):
                account.password_hash = await asyncio.to_thread(
                    self.hasher.hash, command.password
                )
                account.updated_at = utc_now()

            account.last_login_at = utc_now()
            account = await self.uow.accounts.update(account)

            tokens = await open_session(
                self.uow.sessions, self.codec, account, command.client
            )

            await self.uow.commit()

            logger.info(f"Account logged in: {account.id}")

            return Return.ok(
                AuthResponse(
                    access_token=tokens.access_token,
                    refresh_token=tokens.refresh_token,
                    expires_at=tokens.expires_at,
                    account=AccountInfo.from_entity(account),
                )
            )
