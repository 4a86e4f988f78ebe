"""
Tests for attendance record creation and queries
"""
from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import InvalidCoordinates, InvalidSubmission, InvalidTimestamp, NotFound
from app.models.attendance import AttendancePhoto, AttendanceRecord
from app.models.audit_log import AuditLog
from app.services import attendance_service, photo_service
from app.utils.datetime_utils import ensure_utc

BASE = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


def _submit(db, user, **kwargs):
    params = {"submission_type": None, "lat": 1.5, "lng": 103.8, "now": BASE}
    params.update(kwargs)
    return attendance_service.create_attendance(db, user.id, **params)


@pytest.mark.parametrize(
    "lat,lng,field",
    [
        (91, 0, "check_in_lat"),
        (-90.0001, 0, "check_in_lat"),
        (0, 180.5, "check_in_lng"),
        (0, -181, "check_in_lng"),
        (float("nan"), 0, "check_in_lat"),
    ],
)
def test_out_of_range_coordinates_persist_nothing(db, test_user, lat, lng, field):
    with pytest.raises(InvalidCoordinates) as exc_info:
        _submit(db, test_user, lat=lat, lng=lng)
    assert exc_info.value.field == field
    assert db.query(AttendanceRecord).count() == 0


def test_boundary_coordinates_are_accepted(db, test_user):
    record = _submit(db, test_user, lat=-90, lng=180)
    assert float(record.check_in_lat) == -90
    assert float(record.check_in_lng) == 180


def test_online_submission_is_pending_at_receipt_time(db, test_user):
    record = _submit(db, test_user)

    assert record.status == "pending"
    assert record.submission_type == "check_in"
    assert record.is_offline_submission is False
    assert record.offline_timestamp is None
    assert ensure_utc(record.check_in_time) == BASE
    assert ensure_utc(record.created_at) == BASE
    assert float(record.check_in_lat) == 1.5
    assert float(record.check_in_lng) == 103.8

    audit = db.query(AuditLog).filter(AuditLog.action == "ATTENDANCE_SUBMIT").one()
    assert audit.entity_id == record.id
    assert audit.actor_id == test_user.id


def test_offline_submission_uses_client_time(db, test_user):
    captured = BASE - timedelta(hours=6)
    record = _submit(db, test_user, is_offline_submission=True, offline_timestamp=captured.isoformat())

    assert record.is_offline_submission is True
    assert ensure_utc(record.check_in_time) == captured
    assert ensure_utc(record.offline_timestamp) == captured
    # receipt time is kept separately
    assert ensure_utc(record.created_at) == BASE


def test_future_offline_timestamp_is_rejected(db, test_user):
    with pytest.raises(InvalidTimestamp):
        _submit(db, test_user, is_offline_submission=True, offline_timestamp=(BASE + timedelta(days=1)).isoformat())
    assert db.query(AttendanceRecord).count() == 0


def test_check_out_fills_check_out_slot(db, test_user):
    record = _submit(db, test_user, submission_type="check_out", address="Gate 2")
    assert record.submission_type == "check_out"
    assert ensure_utc(record.check_out_time) == BASE
    assert float(record.check_out_lat) == 1.5
    assert record.check_out_address == "Gate 2"


def test_unknown_submission_type_is_rejected(db, test_user):
    with pytest.raises(InvalidSubmission) as exc_info:
        _submit(db, test_user, submission_type="lunch")
    assert exc_info.value.field == "submission_type"


def test_bssid_is_normalized(db, test_user):
    record = _submit(db, test_user, bssid="aa-bb-cc-dd-ee-ff")
    assert record.bssid == "AA:BB:CC:DD:EE:FF"


def test_malformed_bssid_is_rejected(db, test_user):
    with pytest.raises(InvalidSubmission):
        _submit(db, test_user, bssid="not-a-mac")


def test_history_is_ordered_by_event_time(db, test_user):
    online = _submit(db, test_user, now=BASE)
    # received later, but captured earlier
    offline = _submit(
        db, test_user,
        now=BASE + timedelta(hours=1),
        is_offline_submission=True,
        offline_timestamp=(BASE - timedelta(hours=3)).isoformat(),
    )
    latest = _submit(db, test_user, now=BASE + timedelta(hours=2))

    ids = [r.id for r in attendance_service.list_by_subject(db, test_user.id)]
    assert ids == [latest.id, online.id, offline.id]


def test_history_pages_are_stable(db, test_user, other_user):
    for i in range(7):
        _submit(db, test_user, now=BASE + timedelta(minutes=i))
    _submit(db, other_user)

    first = [r.id for r in attendance_service.list_by_subject(db, test_user.id, limit=3, offset=2)]
    second = [r.id for r in attendance_service.list_by_subject(db, test_user.id, limit=3, offset=2)]
    assert first == second
    assert len(first) == 3

    everything = attendance_service.list_by_subject(db, test_user.id)
    assert len(everything) == 7
    assert all(r.user_id == test_user.id for r in everything)


def test_history_limit_is_clamped(db, test_user):
    _submit(db, test_user)
    assert len(attendance_service.list_by_subject(db, test_user.id, limit=10_000)) == 1


def test_list_by_date_range_filters_on_receipt_time(db, test_user):
    inside = _submit(db, test_user, now=BASE)
    _submit(db, test_user, now=BASE - timedelta(days=3))

    records = attendance_service.list_by_date_range(db, BASE - timedelta(hours=1), BASE + timedelta(hours=1))
    assert [r.id for r in records] == [inside.id]


def test_list_pending_and_offline(db, test_user):
    online = _submit(db, test_user, now=BASE)
    older = _submit(db, test_user, is_offline_submission=True, offline_timestamp="2026-03-01T06:00:00Z")
    newer = _submit(db, test_user, is_offline_submission=True, offline_timestamp="2026-03-01T10:00:00Z")

    pending_ids = {r.id for r in attendance_service.list_pending(db)}
    assert pending_ids == {online.id, older.id, newer.id}

    offline_ids = [r.id for r in attendance_service.list_offline(db, test_user.id)]
    assert offline_ids == [newer.id, older.id]


def test_delete_attendance_cascades_to_photos(db, test_user, test_admin):
    record = _submit(db, test_user)
    photo_service.attach_photo(db, record.id, "check_in", b"\xff\xd8jpeg", file_name="a.jpg", mime_type="image/jpeg")
    assert db.query(AttendancePhoto).count() == 1

    attendance_service.delete_attendance(db, record.id, test_admin.id)

    assert db.query(AttendanceRecord).count() == 0
    assert db.query(AttendancePhoto).count() == 0
    assert db.query(AuditLog).filter(AuditLog.action == "ATTENDANCE_DELETE").count() == 1


def test_delete_missing_attendance(db, test_admin):
    with pytest.raises(NotFound):
        attendance_service.delete_attendance(db, 999, test_admin.id)


def test_offline_check_in_from_three_days_ago(db, test_user):
    captured = BASE - timedelta(days=3)
    yesterday = _submit(db, test_user, now=BASE - timedelta(days=1))
    offline = _submit(
        db, test_user,
        now=BASE,
        is_offline_submission=True,
        offline_timestamp=captured.isoformat(),
    )

    assert ensure_utc(offline.check_in_time) == captured
    assert [r.id for r in attendance_service.list_offline(db, test_user.id)] == [offline.id]
    # received last, but it is the oldest event
    assert [r.id for r in attendance_service.list_by_subject(db, test_user.id)] == [yesterday.id, offline.id]
