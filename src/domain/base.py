from datetime import UTC, datetime


def utc_now() -> datetime:
    """Naive UTC timestamp, the form every persisted datetime uses"""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
