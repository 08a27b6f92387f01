"""
Authentication Use Cases

All authentication-related business logic.
"""

from .register_use_case import RegisterUseCase
from .login_use_case import LoginUseCase
from .refresh_token_use_case import RefreshTokenUseCase
from .logout_use_case import LogoutUseCase
from .change_password_use_case import ChangePasswordUseCase
from .session_tokens import IssuedTokens, hash_refresh_token, open_session
from .dtos import (
    AccountInfo,
    AuthResponse,
    ChangePasswordResponse,
    ClientInfo,
    CredentialsCommand,
    LogoutResponse,
    TokenPairResponse,
    WireModel,
)

__all__ = [
    # Use Cases
    "RegisterUseCase",
    "LoginUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    "ChangePasswordUseCase",
    # Session issuance
    "IssuedTokens",
    "hash_refresh_token",
    "open_session",
    # DTOs - Commands
    "ClientInfo",
    "CredentialsCommand",
    # DTOs - Responses
    "AccountInfo",
    "AuthResponse",
    "ChangePasswordResponse",
    "LogoutResponse",
    "TokenPairResponse",
    "WireModel",
]
