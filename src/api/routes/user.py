from fastapi import APIRouter, Depends, Request, status
from pydantic import Field

from src.api.error import raise_for_error
from src.api.utils.auth_gate import require_identity
from src.app.services.password_hasher import PasswordHasher
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import AccountInfo, ChangePasswordResponse, ChangePasswordUseCase, WireModel
from src.app.use_cases.users import LoadProfileUseCase
from src.depends import get_current_identity, get_password_hasher, get_unit_of_work

router = APIRouter(
    prefix="/api/v1/auth",
    tags=["User"],
    dependencies=[Depends(get_current_identity)],
)


class ChangePasswordRequest(WireModel):
    current_password: str = Field(..., description="Password currently in use")
    new_password: str = Field(..., description="Replacement password")


@router.get("/profile", status_code=status.HTTP_200_OK, response_model=AccountInfo)
async def get_profile(request: Request, uow: UnitOfWork = Depends(get_unit_of_work)):
    """
    Get Profile

    Returns the account the access token belongs to.
    """
    identity = require_identity(request)

    result = await LoadProfileUseCase(uow).execute(identity.account_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/change-password",
    status_code=status.HTTP_200_OK,
    response_model=ChangePasswordResponse,
)
async def change_password(
    body: ChangePasswordRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    """
    Change Password

    Every session of the account is revoked, including the caller's.

    Raises:
        - 401 Unauthorized: Current password is wrong
        - 400 Bad Request: New password fails the strength rules
    """
    identity = require_identity(request)

    result = await ChangePasswordUseCase(uow, hasher).execute(
        identity.account_id, body.current_password, body.new_password
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value
