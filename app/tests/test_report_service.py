"""
Tests for report windows and subject history queries
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from app.core.exceptions import InvalidDateRange, InvalidSubmission
from app.services import attendance_service, report_service

NOW = datetime(2026, 3, 31, 12, 0, tzinfo=timezone.utc)


def test_default_window_is_last_thirty_days():
    start, end = report_service.resolve_window(now=NOW)
    assert end == NOW
    assert start == NOW - timedelta(days=30)


def test_date_only_bounds_cover_whole_days():
    start, end = report_service.resolve_window("2026-03-01", "2026-03-02", now=NOW)
    assert start == datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert end.date() == date(2026, 3, 2)
    assert end.hour == 23 and end.minute == 59


def test_missing_start_counts_back_from_given_end():
    start, end = report_service.resolve_window(end_date="2026-02-28T00:00:00Z", now=NOW)
    assert end == datetime(2026, 2, 28, tzinfo=timezone.utc)
    assert start == end - timedelta(days=30)


def test_start_after_end_is_rejected():
    with pytest.raises(InvalidDateRange):
        report_service.resolve_window("2026-03-10", "2026-03-01", now=NOW)


def test_unparsable_bound_is_rejected():
    with pytest.raises(InvalidSubmission) as exc_info:
        report_service.resolve_window("last tuesday", None, now=NOW)
    assert exc_info.value.field == "startDate"


def test_attendance_report_filters_window_status_and_user(db, test_user, other_user, test_admin):
    mine = attendance_service.create_attendance(db, test_user.id, None, 1.5, 103.8, now=NOW - timedelta(days=1))
    attendance_service.create_attendance(db, other_user.id, None, 1.5, 103.8, now=NOW - timedelta(days=2))
    attendance_service.create_attendance(db, test_user.id, None, 1.5, 103.8, now=NOW - timedelta(days=45))

    records, start, end = report_service.attendance_report(db, now=NOW)
    assert len(records) == 2
    assert end == NOW

    records, _, _ = report_service.attendance_report(db, user_id=test_user.id, now=NOW)
    assert [r.id for r in records] == [mine.id]

    records, _, _ = report_service.attendance_report(db, status_filter="approved", now=NOW)
    assert records == []

    with pytest.raises(InvalidSubmission):
        report_service.attendance_report(db, status_filter="archived", now=NOW)


def test_subject_history_with_bounds(db, test_user):
    early = attendance_service.create_attendance(db, test_user.id, None, 1.5, 103.8, now=NOW - timedelta(days=5))
    late = attendance_service.create_attendance(db, test_user.id, None, 1.5, 103.8, now=NOW)

    records = report_service.subject_history(db, test_user.id, start_date=(NOW - timedelta(days=1)).date().isoformat())
    assert [r.id for r in records] == [late.id]

    records = report_service.subject_history(db, test_user.id, end_date=(NOW - timedelta(days=1)).date().isoformat())
    assert [r.id for r in records] == [early.id]

    with pytest.raises(InvalidDateRange):
        report_service.subject_history(db, test_user.id, start_date="2026-03-10", end_date="2026-03-01")


def test_today_uses_event_day(db, test_user):
    today = attendance_service.create_attendance(db, test_user.id, None, 1.5, 103.8, now=NOW - timedelta(hours=2))
    attendance_service.create_attendance(db, test_user.id, None, 1.5, 103.8, now=NOW - timedelta(days=1))

    records, day = report_service.today_for_subject(db, test_user.id, now=NOW)
    assert day == NOW.date()
    assert [r.id for r in records] == [today.id]


def test_today_is_capped_at_history_max_limit(db, test_user, monkeypatch):
    monkeypatch.setattr(report_service.settings, "HISTORY_MAX_LIMIT", 2)
    for minutes in (10, 20, 30):
        attendance_service.create_attendance(db, test_user.id, None, 1.5, 103.8, now=NOW - timedelta(minutes=minutes))

    records, _ = report_service.today_for_subject(db, test_user.id, now=NOW)
    assert len(records) == 2
    assert records[0].check_in_time > records[1].check_in_time
