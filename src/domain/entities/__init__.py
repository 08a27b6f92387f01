"""
Domain Entities

Each entity in its own file.
"""

from .account import Account, normalize_email
from .session import SessionRecord

__all__ = [
    "Account",
    "normalize_email",
    "SessionRecord",
]
