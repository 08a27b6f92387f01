"""
Session Client

Async HTTP client for the auth API that keeps its own session fresh.
"""

from .errors import AuthError, AuthErrorCode
from .models import StoredTokens
from .session_client import SessionClient, SessionState, SingleFlight
from .token_storage import FileTokenStorage, InMemoryTokenStorage, TokenStorage

__all__ = [
    "AuthError",
    "AuthErrorCode",
    "FileTokenStorage",
    "InMemoryTokenStorage",
    "SessionClient",
    "SessionState",
    "SingleFlight",
    "StoredTokens",
    "TokenStorage",
]
