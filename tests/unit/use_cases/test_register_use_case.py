import hashlib

import pytest

from src.app.repositories.account_repository import AccountAlreadyExistsError
from src.app.use_cases.auth import ClientInfo, CredentialsCommand, RegisterUseCase
from src.domain.errors import ErrorCode
from tests.fixtures.auth import VALID_PASSWORD


@pytest.mark.asyncio
async def test_successful_registration(mock_uow, hasher, codec):
    """
    Given no account exists for the email
    When I register with a strong password
    Then an account is created with a hashed password
    And a session is opened for it
    """
    # Arrange
    command = CredentialsCommand(
        email="  New.User@Example.COM ",
        password=VALID_PASSWORD,
        client=ClientInfo(user_agent="pytest", ip_address="127.0.0.1"),
    )
    use_case = RegisterUseCase(mock_uow, hasher, codec)

    # Act
    result = await use_case.execute(command)

    # Assert
    assert result.is_ok()
    response = result.value
    assert response.account.email == "new.user@example.com"
    assert response.account.last_login_at is not None

    created = mock_uow.accounts.create.call_args.args[0]
    assert created.email == "new.user@example.com"
    assert created.password_hash != VALID_PASSWORD
    assert hasher.verify(VALID_PASSWORD, created.password_hash)

    session_kwargs = mock_uow.sessions.create.call_args.kwargs
    assert session_kwargs["account_id"] == created.id
    assert session_kwargs["token_hash"] == hashlib.sha256(
        response.refresh_token.encode()
    ).hexdigest()
    assert session_kwargs["user_agent"] == "pytest"
    assert session_kwargs["ip_address"] == "127.0.0.1"

    assert codec.validate_access(response.access_token).account_id == created.id
    assert codec.validate_refresh(response.refresh_token).account_id == created.id
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_weak_password_reports_every_rule(mock_uow, hasher, codec):
    use_case = RegisterUseCase(mock_uow, hasher, codec)

    result = await use_case.execute(CredentialsCommand(email="a@example.com", password="weak"))

    assert result.is_err()
    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert len(result.error.details) == 4
    mock_uow.accounts.create.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_duplicate_email(mock_uow, hasher, codec):
    mock_uow.accounts.get_by_email.return_value = object()
    use_case = RegisterUseCase(mock_uow, hasher, codec)

    result = await use_case.execute(
        CredentialsCommand(email="taken@example.com", password=VALID_PASSWORD)
    )

    assert result.is_err()
    assert result.error.code == ErrorCode.ALREADY_EXISTS
    mock_uow.accounts.create.assert_not_called()


@pytest.mark.asyncio
async def test_duplicate_email_race(mock_uow, hasher, codec):
    """Unique index catches a registration that slipped past the lookup"""
    mock_uow.accounts.create.side_effect = AccountAlreadyExistsError("taken@example.com")
    use_case = RegisterUseCase(mock_uow, hasher, codec)

    result = await use_case.execute(
        CredentialsCommand(email="taken@example.com", password=VALID_PASSWORD)
    )

    assert result.is_err()
    assert result.error.code == ErrorCode.ALREADY_EXISTS
    mock_uow.sessions.create.assert_not_called()
    mock_uow.commit.assert_not_called()
