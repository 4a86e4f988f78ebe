"""
Report service - read-side composition over attendance listings.

Adds the date-window contract callers rely on: a missing start defaults to
REPORT_DEFAULT_WINDOW_DAYS before now, a missing end to now, and a date-only
end covers the whole day.
"""
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import InvalidDateRange, InvalidSubmission
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.services import attendance_service
from app.utils.datetime_utils import day_bounds_utc, ensure_utc, now_utc, parse_timestamp
from app.utils.enums import require_enum_value

WindowBound = Union[str, date, datetime, None]


def _parse_bound(value: WindowBound, field: str, is_end: bool) -> Optional[datetime]:
    """Turn a query bound into a UTC instant; plain dates expand to start/end of day."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        start, end = day_bounds_utc(value)
        return end if is_end else start
    text = str(value).strip()
    try:
        day = date.fromisoformat(text)
    except ValueError:
        pass
    else:
        start, end = day_bounds_utc(day)
        return end if is_end else start
    try:
        return parse_timestamp(text)
    except ValueError:
        raise InvalidSubmission(field, "must be an ISO-8601 date or datetime")


def resolve_window(
    start_date: WindowBound = None,
    end_date: WindowBound = None,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """
    Resolve a report window.

    Raises:
        InvalidSubmission: If a bound cannot be parsed
        InvalidDateRange: If start is after end
    """
    current = ensure_utc(now) if now else now_utc()
    end = _parse_bound(end_date, "endDate", is_end=True) or current
    start = _parse_bound(start_date, "startDate", is_end=False) or (
        end - timedelta(days=settings.REPORT_DEFAULT_WINDOW_DAYS)
    )
    if start > end:
        raise InvalidDateRange(start.isoformat(), end.isoformat())
    return start, end


def attendance_report(
    db: Session,
    start_date: WindowBound = None,
    end_date: WindowBound = None,
    status_filter: Optional[str] = None,
    user_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Tuple[List[AttendanceRecord], datetime, datetime]:
    """Records received in the window (server receipt time), newest first, plus the resolved window."""
    if status_filter:
        require_enum_value(status_filter, AttendanceStatus, "status")
    start, end = resolve_window(start_date, end_date, now)
    records = attendance_service.list_by_date_range(
        db, start, end, status_filter=status_filter, user_id=user_id
    )
    return records, start, end


def subject_history(
    db: Session,
    user_id: int,
    limit: Optional[int] = None,
    offset: int = 0,
    start_date: WindowBound = None,
    end_date: WindowBound = None,
) -> List[AttendanceRecord]:
    """Paged history of one subject by event time; bounds are optional and independent."""
    start = _parse_bound(start_date, "startDate", is_end=False)
    end = _parse_bound(end_date, "endDate", is_end=True)
    if start is not None and end is not None and start > end:
        raise InvalidDateRange(start.isoformat(), end.isoformat())
    date_range = (start, end) if start is not None or end is not None else None
    return attendance_service.list_by_subject(
        db, user_id, limit=limit, offset=offset, date_range=date_range
    )


def today_for_subject(db: Session, user_id: int, now: Optional[datetime] = None) -> Tuple[List[AttendanceRecord], date]:
    """Submissions whose event time falls on the current UTC day, newest first, at most HISTORY_MAX_LIMIT of them."""
    current = ensure_utc(now) if now else now_utc()
    today = current.date()
    records = attendance_service.list_by_subject(
        db, user_id, limit=settings.HISTORY_MAX_LIMIT, date_range=day_bounds_utc(today)
    )
    return records, today
