from fastapi import APIRouter, Depends, status

from src.api.error import raise_for_error
from src.api.utils.auth_gate import Identity
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth.dtos import RevokeSessionsResponse, SessionListResponse
from src.app.use_cases.users import RevokeSessionsUseCase
from src.depends import get_current_identity, get_unit_of_work

router = APIRouter(prefix="/api/v1/sessions", tags=["Sessions"])


@router.get("", status_code=status.HTTP_200_OK, response_model=SessionListResponse)
async def list_sessions(
    identity: Identity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """List the caller's active sessions (newest first)"""
    result = await RevokeSessionsUseCase(uow).list_sessions(identity.account_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/revoke-all",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionsResponse,
)
async def revoke_all_sessions(
    identity: Identity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Revoke All Sessions

    Signs the account out everywhere. Useful after a suspected compromise.
    The access token used for this call stays valid until it expires.
    """
    result = await RevokeSessionsUseCase(uow).revoke_all_sessions(identity.account_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
