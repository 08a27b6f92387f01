from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import SessionRecord


class ISessionRepository(ABC):
    """Session store interface - application layer"""

    @abstractmethod
    async def create(
        self,
        account_id: UUID,
        token_hash: str,
        expires_at: datetime,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> SessionRecord:
        """Persist a new session record for a refresh token hash"""
        pass

    @abstractmethod
    async def find(self, token_hash: str) -> Optional[SessionRecord]:
        """Find a usable session: not revoked and not expired"""
        pass

    @abstractmethod
    async def find_any(self, token_hash: str) -> Optional[SessionRecord]:
        """Find a session by hash regardless of revocation or expiry"""
        pass

    @abstractmethod
    async def touch(self, session_id: UUID) -> None:
        """Record that a session was just used"""
        pass

    @abstractmethod
    async def revoke(self, token_hash: str) -> bool:
        """Revoke a session by hash. Returns True only if this call revoked it."""
        pass

    @abstractmethod
    async def revoke_all(self, account_id: UUID) -> int:
        """Revoke every active session of an account. Returns count revoked."""
        pass

    @abstractmethod
    async def list_active(self, account_id: UUID) -> List[SessionRecord]:
        """Usable sessions of an account, newest first"""
        pass

    @abstractmethod
    async def purge_expired_or_revoked(self) -> int:
        """Delete expired or revoked sessions. Returns count deleted."""
        pass
