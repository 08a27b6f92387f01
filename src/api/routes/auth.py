from fastapi import APIRouter, Depends, Request, status
from pydantic import EmailStr, Field

from config import ApplicationConfig
from src.api.error import raise_for_error
from src.app.services.password_hasher import PasswordHasher
from src.app.services.token_codec import TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    AuthResponse,
    ClientInfo,
    CredentialsCommand,
    LoginUseCase,
    LogoutResponse,
    LogoutUseCase,
    RefreshTokenUseCase,
    RegisterUseCase,
    TokenPairResponse,
    WireModel,
)
from src.depends import get_password_hasher, get_token_codec, get_unit_of_work

router = APIRouter(prefix="/auth", tags=["Authentication"])


class CredentialsRequest(WireModel):
    """
    Register/login HTTP request payload

    Password rules are checked by the use case so every violation is reported
    at once.
    """

    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., description="Account password")


class RefreshTokenRequest(WireModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token from login")


def client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
async def register(
    body: CredentialsRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    codec: TokenCodec = Depends(get_token_codec),
):
    """
    Register

    Creates an account and returns a token pair for it.

    Raises:
        - 400 Bad Request: Invalid email or weak password (every rule listed)
        - 409 Conflict: Email already registered
    """
    command = CredentialsCommand(
        email=body.email, password=body.password, client=client_info(request)
    )

    result = await RegisterUseCase(uow, hasher, codec).execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/login", status_code=status.HTTP_200_OK, response_model=AuthResponse)
async def login(
    body: CredentialsRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: PasswordHasher = Depends(get_password_hasher),
    codec: TokenCodec = Depends(get_token_codec),
):
    """
    Login

    Raises:
        - 401 Unauthorized: Unknown email, wrong password or inactive account
          (indistinguishable on purpose)
    """
    command = CredentialsCommand(
        email=body.email, password=body.password, client=client_info(request)
    )

    result = await LoginUseCase(uow, hasher, codec).execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=TokenPairResponse)
async def refresh_token(
    body: RefreshTokenRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    codec: TokenCodec = Depends(get_token_codec),
):
    """
    Refresh Token

    Rotates the refresh token: the presented one stops working and a new pair
    is returned.

    Raises:
        - 401 Unauthorized: Token invalid, expired, revoked or already used
    """
    use_case = RefreshTokenUseCase(
        uow, codec, revoke_all_on_reuse=ApplicationConfig.REFRESH_REUSE_REVOKES_ALL
    )
    result = await use_case.execute(body.refresh_token, client_info(request))

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(body: RefreshTokenRequest, uow: UnitOfWork = Depends(get_unit_of_work)):
    """Logout - revokes the session of the given refresh token. Always 200."""
    result = await LogoutUseCase(uow).execute(body.refresh_token)
    return result.value
