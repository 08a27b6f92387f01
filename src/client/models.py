from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Optional


@dataclass(frozen=True)
class StoredTokens:
    """Credentials held by the client between calls"""

    access_token: str
    refresh_token: str
    expires_at: datetime  # access token expiry, timezone-aware UTC

    def expires_within(self, buffer: timedelta, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(UTC)
        return self.expires_at - buffer <= now
