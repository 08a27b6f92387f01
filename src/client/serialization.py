"""
Wire format for the session client.

The API speaks camelCase JSON; the client works in snake_case. Every request
body and response body crosses this module and nowhere else.
"""

from datetime import UTC, datetime
from typing import Any, Mapping

from pydantic.alias_generators import to_camel, to_snake

from .models import StoredTokens


def _convert_keys(value: Any, convert) -> Any:
    if isinstance(value, Mapping):
        return {convert(key): _convert_keys(item, convert) for key, item in value.items()}
    if isinstance(value, list):
        return [_convert_keys(item, convert) for item in value]
    return value


def to_wire(data: Mapping[str, Any]) -> dict:
    return _convert_keys(data, to_camel)


def from_wire(data: Any) -> Any:
    return _convert_keys(data, to_snake)


def parse_timestamp(value: str) -> datetime:
    """ISO-8601 timestamp to an aware UTC datetime (naive values are UTC)"""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def tokens_from_wire(payload: Mapping[str, Any]) -> StoredTokens:
    data = from_wire(payload)
    try:
        return StoredTokens(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_at=parse_timestamp(data["expires_at"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("response does not contain a token pair") from exc


def tokens_to_wire(tokens: StoredTokens) -> dict:
    return to_wire(
        {
            "access_token": tokens.access_token,
            "refresh_token": tokens.refresh_token,
            "expires_at": tokens.expires_at.isoformat(),
        }
    )
