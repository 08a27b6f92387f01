"""
Password Hasher

Argon2id password digests in the self-describing PHC format:

    $argon2id$v=19$m=65536,t=3,p=4$<salt>$<hash>

Parameters travel with every digest, so they can be raised over time without
invalidating digests created under older settings.
"""

import base64
import re
import string
from typing import List, Optional

from argon2 import PasswordHasher as Argon2Hasher
from argon2 import Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

ALGORITHM = "argon2id"
ARGON2_VERSION = 19

DEFAULT_MEMORY_KIB = 65536
DEFAULT_ITERATIONS = 3
DEFAULT_PARALLELISM = 4
SALT_LENGTH = 16
HASH_LENGTH = 32

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
SYMBOLS = frozenset(string.punctuation)

# Upper bounds for parameters read back from a stored digest.
_MAX_MEMORY_KIB = 4 * 1024 * 1024
_MAX_ITERATIONS = 64
_MAX_PARALLELISM = 255

_PARAMS_RE = re.compile(r"m=(\d+),t=(\d+),p=(\d+)")
_B64_RE = re.compile(r"[A-Za-z0-9+/]+")


class MalformedDigestError(ValueError):
    """Stored digest cannot be parsed; distinct from a wrong password"""


def _b64decode(value: str) -> bytes:
    if not _B64_RE.fullmatch(value):
        raise MalformedDigestError("digest contains invalid base64")
    return base64.b64decode(value + "=" * (-len(value) % 4))


def parse_digest(digest: str) -> dict:
    """
    Validate and split an encoded digest.

    Returns:
        dict with memory_kib, iterations, parallelism, salt, hash

    Raises:
        MalformedDigestError: on any deviation from the expected layout
    """
    if not isinstance(digest, str):
        raise MalformedDigestError("digest must be a string")

    parts = digest.split("$")
    if len(parts) != 6 or parts[0] != "":
        raise MalformedDigestError("invalid digest format")

    _, algorithm, version, params, salt_b64, hash_b64 = parts

    if algorithm != ALGORITHM:
        raise MalformedDigestError("incompatible hash algorithm")

    if version != f"v={ARGON2_VERSION}":
        raise MalformedDigestError("incompatible argon2 version")

    match = _PARAMS_RE.fullmatch(params)
    if match is None:
        raise MalformedDigestError("invalid digest parameters")
    memory_kib, iterations, parallelism = (int(g) for g in match.groups())

    if not (1 <= memory_kib <= _MAX_MEMORY_KIB):
        raise MalformedDigestError("memory parameter out of range")
    if not (1 <= iterations <= _MAX_ITERATIONS):
        raise MalformedDigestError("iteration parameter out of range")
    if not (1 <= parallelism <= _MAX_PARALLELISM):
        raise MalformedDigestError("parallelism parameter out of range")

    salt = _b64decode(salt_b64)
    raw_hash = _b64decode(hash_b64)
    if len(salt) < 8 or len(raw_hash) < 16:
        raise MalformedDigestError("salt or hash too short")

    return {
        "memory_kib": memory_kib,
        "iterations": iterations,
        "parallelism": parallelism,
        "salt": salt,
        "hash": raw_hash,
    }


class PasswordHasher:
    """
    Hashes and verifies passwords, and enforces the strength policy.

    Business Rules:
    - Fresh random salt on every hash call
    - verify() uses the parameters stored in the digest, not current defaults
    - Malformed digests raise MalformedDigestError, never return True
    - Strength check reports every failing rule
    """

    def __init__(
        self,
        memory_kib: int = DEFAULT_MEMORY_KIB,
        iterations: int = DEFAULT_ITERATIONS,
        parallelism: int = DEFAULT_PARALLELISM,
    ):
        self._hasher = Argon2Hasher(
            time_cost=iterations,
            memory_cost=memory_kib,
            parallelism=parallelism,
            hash_len=HASH_LENGTH,
            salt_len=SALT_LENGTH,
            type=Type.ID,
        )
        self._dummy_digest: Optional[str] = None

    def hash(self, password: str) -> str:
        return self._hasher.hash(password)

    def verify(self, password: str, digest: str) -> bool:
        """
        Check a password against a stored digest.

        Returns:
            True on match, False on mismatch

        Raises:
            MalformedDigestError: digest is corrupted or uses another algorithm
        """
        parse_digest(digest)
        try:
            return self._hasher.verify(digest, password)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError) as exc:
            raise MalformedDigestError("digest rejected by argon2") from exc

    def needs_rehash(self, digest: str) -> bool:
        """True when the digest was created with different parameters"""
        return self._hasher.check_needs_rehash(digest)

    def dummy_verify(self, password: str) -> None:
        """Spend the same work as a real verification (unknown account path)"""
        if self._dummy_digest is None:
            self._dummy_digest = self.hash("dummy-password-for-timing")
        self.verify(password, self._dummy_digest)

    @staticmethod
    def check_strength(password: str) -> List[str]:
        violations = []

        if len(password) < MIN_PASSWORD_LENGTH:
            violations.append(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        if len(password) > MAX_PASSWORD_LENGTH:
            violations.append(
                f"Password must be no more than {MAX_PASSWORD_LENGTH} characters long"
            )
        if not any(c in string.ascii_uppercase for c in password):
            violations.append("Password must contain at least one uppercase letter")
        if not any(c in string.ascii_lowercase for c in password):
            violations.append("Password must contain at least one lowercase letter")
        if not any(c in string.digits for c in password):
            violations.append("Password must contain at least one number")
        if not any(c in SYMBOLS for c in password):
            violations.append("Password must contain at least one special character")

        return violations
