"""
Refresh Token Use Case

Exchanges a refresh token for a new token pair, rotating the refresh token.
"""

import logging

from libs.result import Error, Result, Return
from src.app.services.token_codec import TokenCodec, TokenError
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import ErrorCode

from .dtos import ClientInfo, TokenPairResponse
from .session_tokens import hash_refresh_token, open_session

logger = logging.getLogger(__name__)


def _invalid_token() -> Result:
    return Return.err(Error(ErrorCode.TOKEN_INVALID, "Invalid or expired refresh token"))


class RefreshTokenUseCase:
    """
    Use case for refresh token rotation.

    Business Rules:
    - Token must pass cryptographic validation first
    - Its hash must match a session that is neither revoked nor expired
    - Not found, revoked, expired and malformed all give the same error
    - The presented token is revoked before the new pair is issued; when two
      requests race with one token, only the first revoke succeeds
    - Optionally, presenting an already revoked token revokes every session
      of that account (reuse detection)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        codec: TokenCodec,
        revoke_all_on_reuse: bool = False,
    ):
        self.uow = uow
        self.codec = codec
        self.revoke_all_on_reuse = revoke_all_on_reuse

    async def execute(
        self, refresh_token: str, client: ClientInfo = ClientInfo()
    ) -> Result[TokenPairResponse]:
        try:
            claims = self.codec.validate_refresh(refresh_token)
        except TokenError as exc:
            logger.info(f"Refresh token rejected: {exc}")
            return _invalid_token()

        token_hash = hash_refresh_token(refresh_token)

        async with self.uow:
            record = await self.uow.sessions.find(token_hash)

            if record is None:
                if self.revoke_all_on_reuse:
                    await self._handle_reuse(token_hash)
                return _invalid_token()

            if record.account_id != claims.account_id:
                logger.warning(f"Refresh token subject mismatch for session {record.id}")
                return _invalid_token()

            account = await self.uow.accounts.get_by_id(record.account_id)
            if account is None or not account.is_active:
                return _invalid_token()

            await self.uow.sessions.touch(record.id)

            if not await self.uow.sessions.revoke(token_hash):
                logger.info(f"Session {record.id} was rotated by a concurrent request")
                return _invalid_token()

            tokens = await open_session(self.uow.sessions, self.codec, account, client)

            await self.uow.commit()

            return Return.ok(
                TokenPairResponse(
                    access_token=tokens.access_token,
                    refresh_token=tokens.refresh_token,
                    expires_at=tokens.expires_at,
                )
            )

    async def _handle_reuse(self, token_hash: str) -> None:
        stale = await self.uow.sessions.find_any(token_hash)
        if stale is None or not stale.revoked:
            return

        count = await self.uow.sessions.revoke_all(stale.account_id)
        await self.uow.commit()
        logger.warning(
            f"Revoked refresh token reused for account {stale.account_id}; "
            f"revoked {count} active session(s)"
        )
