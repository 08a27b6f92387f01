"""Admin use cases for system administration operations."""

from .purge_sessions_use_case import PurgeSessionsUseCase

__all__ = [
    "PurgeSessionsUseCase",
]
