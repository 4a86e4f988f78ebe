"""
Timezone-aware datetime helpers.
- Store and compute in UTC in DB.
- API responses expose datetimes as ISO-8601 UTC with a trailing Z.
"""
from datetime import date, datetime, time, timezone
from typing import Optional, Tuple, Union

UTC = timezone.utc


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware). Use for check_in_time, created_at, reviewed_at, etc."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def iso_8601_utc(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with Z for UTC. Used for all API response datetime fields."""
    if dt is None:
        return None
    utc = ensure_utc(dt)
    s = utc.isoformat()
    if s.endswith("+00:00"):
        s = s[:-6] + "Z"
    return s


def parse_timestamp(value: Union[str, int, float, datetime]) -> datetime:
    """
    Parse a client-supplied instant into an aware UTC datetime.

    Accepts datetimes (naive = UTC), ISO-8601 strings (a trailing Z is allowed)
    and numbers, which are epoch milliseconds as sent by JavaScript clients.

    Raises:
        ValueError: If the value cannot be interpreted as an instant
    """
    if isinstance(value, bool):
        raise ValueError("boolean is not a timestamp")
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=UTC)
        except (OverflowError, OSError) as e:
            raise ValueError(str(e))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty timestamp")
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return ensure_utc(datetime.fromisoformat(text))
    raise ValueError(f"unsupported timestamp type {type(value).__name__}")


def day_bounds_utc(day: date) -> Tuple[datetime, datetime]:
    """Inclusive [00:00:00, 23:59:59.999999] bounds of a UTC calendar day."""
    start = datetime.combine(day, time.min, tzinfo=UTC)
    end = datetime.combine(day, time.max, tzinfo=UTC)
    return start, end
