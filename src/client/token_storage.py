"""
Token storage backends for the session client.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from .models import StoredTokens
from .serialization import tokens_from_wire, tokens_to_wire

logger = logging.getLogger(__name__)


class TokenStorage(ABC):
    """Where a client keeps its credentials"""

    @abstractmethod
    def get(self) -> Optional[StoredTokens]:
        pass

    @abstractmethod
    def set(self, tokens: StoredTokens) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    def has_valid(self) -> bool:
        """Both tokens present; says nothing about expiry"""
        tokens = self.get()
        return bool(tokens and tokens.access_token and tokens.refresh_token)


class InMemoryTokenStorage(TokenStorage):
    def __init__(self, tokens: Optional[StoredTokens] = None):
        self._tokens = tokens

    def get(self) -> Optional[StoredTokens]:
        return self._tokens

    def set(self, tokens: StoredTokens) -> None:
        self._tokens = tokens

    def clear(self) -> None:
        self._tokens = None


class FileTokenStorage(TokenStorage):
    """
    JSON file readable only by the current user.

    The file is read on every get() so several processes can share it; an
    unreadable or corrupted file counts as "no session".
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def get(self) -> Optional[StoredTokens]:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning(f"Ignoring unreadable token file {self.path}: {exc}")
            return None

        try:
            return tokens_from_wire(payload)
        except ValueError as exc:
            logger.warning(f"Ignoring malformed token file {self.path}: {exc}")
            return None

    def set(self, tokens: StoredTokens) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(tokens_to_wire(tokens), fh)
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
