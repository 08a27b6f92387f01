"""
Load Profile Use Case

Loads the signed-in account from the identity in its access token.
"""

from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth.dtos import AccountInfo
from src.domain.errors import ErrorCode


class LoadProfileUseCase:
    """
    Use case for loading the current account.

    Business Rules:
    - Account must exist and be active; a token that outlived its account
      is treated like bad credentials
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, account_id: UUID) -> Result[AccountInfo]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None or not account.is_active:
                return Return.err(Error(ErrorCode.NOT_FOUND, "Account not found"))

            return Return.ok(AccountInfo.from_entity(account))
