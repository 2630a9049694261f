# Localsync Timestamps
# Canonical UTC timestamps for storage, comparison and the wire

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_RESOLUTION = timedelta(microseconds=1)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Convert to aware UTC. Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """
    Format a datetime for storage.

    The fixed width format keeps stored timestamps ordered lexicographically,
    so SQL comparisons between timestamp columns stay correct.
    """
    return ensure_utc(value).isoformat(timespec="microseconds")


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (``Z`` suffix accepted) into aware UTC.

    Args:
        value: String, datetime, or None.

    Returns:
        Aware UTC datetime, or None for empty input.

    Raises:
        ValueError: If the string is not ISO-8601.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """Current time, bumped past ``previous`` when the clock has not advanced."""
    now = utc_now()
    if previous is not None and now <= ensure_utc(previous):
        return ensure_utc(previous) + _RESOLUTION
    return now
