import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.accounts = MagicMock()
    uow.accounts.get_by_email = AsyncMock(return_value=None)
    uow.accounts.get_by_id = AsyncMock(return_value=None)
    uow.accounts.create = AsyncMock(side_effect=lambda account: account)
    uow.accounts.update = AsyncMock(side_effect=lambda account: account)
    uow.accounts.delete = AsyncMock(return_value=True)

    uow.sessions = MagicMock()
    uow.sessions.create = AsyncMock()
    uow.sessions.find = AsyncMock(return_value=None)
    uow.sessions.find_any = AsyncMock(return_value=None)
    uow.sessions.touch = AsyncMock()
    uow.sessions.revoke = AsyncMock(return_value=True)
    uow.sessions.revoke_all = AsyncMock(return_value=0)
    uow.sessions.list_active = AsyncMock(return_value=[])
    uow.sessions.purge_expired_or_revoked = AsyncMock(return_value=0)
    return uow
