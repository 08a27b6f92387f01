"""
Account Use Cases

Business logic for the signed-in account.
"""

from .load_profile_use_case import LoadProfileUseCase
from .revoke_sessions_use_case import RevokeSessionsUseCase

__all__ = [
    "LoadProfileUseCase",
    "RevokeSessionsUseCase",
]
