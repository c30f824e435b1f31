"""Aware-UTC datetimes only. Naive values are rejected, never guessed at."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Current aware time in UTC. Used in place of datetime.now()."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Normalize an aware datetime to UTC.

    Raises:
        ValueError: If dt is naive
    """
    if dt.tzinfo is None:
        raise ValueError("Refusing naive datetime; attach a timezone first.")
    return dt.astimezone(timezone.utc)


def parse_iso(iso_string: str) -> datetime:
    """
    Parse an ISO 8601 timestamp (as Mollie reports paidAt) into UTC.

    Raises:
        ValueError: If the string is malformed or has no offset
    """
    dt = datetime.fromisoformat(iso_string)
    if dt.tzinfo is None:
        raise ValueError(f"Refusing naive timestamp {iso_string!r}; an offset such as 'Z' is required.")
    return to_utc(dt)
