"""
Admin API Routes

Maintenance endpoints, authenticated with X-Admin-API-Key.
"""

from fastapi import APIRouter, Depends, status

from src.api.error import raise_for_error
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.admin import PurgeSessionsUseCase
from src.app.use_cases.auth.dtos import PurgeSessionsResponse
from src.depends import get_unit_of_work

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/sessions/purge",
    status_code=status.HTTP_200_OK,
    response_model=PurgeSessionsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def purge_sessions(uow: UnitOfWork = Depends(get_unit_of_work)):
    """
    Purge Sessions

    Deletes expired and revoked session records. The same job runs
    periodically in the background; this triggers it on demand.
    """
    result = await PurgeSessionsUseCase(uow).execute()

    if result.is_err():
        raise_for_error(result.error)

    return result.value
