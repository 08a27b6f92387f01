"""
Use Cases

Organized into domain folders:
- auth/: Registration, login, refresh, logout, password change
- users/: The signed-in account and its sessions
- admin/: Maintenance operations
"""

from .auth import (
    ChangePasswordUseCase,
    LoginUseCase,
    LogoutUseCase,
    RefreshTokenUseCase,
    RegisterUseCase,
)
from .users import (
    LoadProfileUseCase,
    RevokeSessionsUseCase,
)
from .admin import (
    PurgeSessionsUseCase,
)

__all__ = [
    # Auth
    "RegisterUseCase",
    "LoginUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    "ChangePasswordUseCase",
    # Users
    "LoadProfileUseCase",
    "RevokeSessionsUseCase",
    # Admin
    "PurgeSessionsUseCase",
]
