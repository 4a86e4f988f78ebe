"""
Attendance service - creation and queries of attendance records
"""
import logging
import math
import re
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload, selectinload

from app.core.config import settings
from app.core.exceptions import InvalidCoordinates, InvalidSubmission, NotFound
from app.models.attendance import AttendanceRecord, AttendanceStatus, SubmissionType
from app.services.audit_service import log_audit
from app.services.time_reconciler import TimestampInput, reconcile_event_time
from app.utils.datetime_utils import ensure_utc, now_utc
from app.utils.enums import require_enum_value

_log = logging.getLogger(__name__)

BSSID_PATTERN = re.compile(r"^([0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}$")
MAX_ADDRESS_LENGTH = 255
MAX_CELL_ID_LENGTH = 50

DateRange = Tuple[Optional[datetime], Optional[datetime]]


def _with_details(query):
    return query.options(
        joinedload(AttendanceRecord.user),
        selectinload(AttendanceRecord.photos),
    )


def validate_coordinates(lat: float, lng: float, prefix: str = "check_in") -> None:
    """
    Raise InvalidCoordinates naming the offending field when lat/lng are outside
    [-90, 90] / [-180, 180] or not finite.
    """
    for field, value, bound in ((f"{prefix}_lat", lat, 90), (f"{prefix}_lng", lng, 180)):
        if value is None:
            raise InvalidCoordinates(field, value, "is required")
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            raise InvalidCoordinates(field, str(value), "must be a number")
        if not math.isfinite(float(value)):
            raise InvalidCoordinates(field, str(value), "must be a finite number")
        if not -bound <= value <= bound:
            raise InvalidCoordinates(field, value, f"must be between -{bound} and {bound}")


def _normalize_bssid(bssid: Optional[str]) -> Optional[str]:
    if not bssid:
        return None
    if not BSSID_PATTERN.match(bssid):
        raise InvalidSubmission("bssid", "must be a MAC address (XX:XX:XX:XX:XX:XX)")
    return bssid.replace("-", ":").upper()


def _normalize_submission_type(submission_type: Optional[str]) -> str:
    if not submission_type:
        return SubmissionType.CHECK_IN.value
    return require_enum_value(submission_type, SubmissionType, "submission_type")


def create_attendance(
    db: Session,
    user_id: int,
    submission_type: Optional[str],
    lat: float,
    lng: float,
    address: Optional[str] = None,
    bssid: Optional[str] = None,
    cell_id: Optional[str] = None,
    is_offline_submission: bool = False,
    offline_timestamp: Optional[TimestampInput] = None,
    now: Optional[datetime] = None,
) -> AttendanceRecord:
    """
    Record an attendance submission in pending status.

    All validation happens before the insert, so a rejected submission leaves
    no row behind. Photos are attached separately (see photo_service).

    Args:
        db: Database session
        user_id: Owning subject (already resolved by the caller)
        submission_type: check_in, check_out, break_start or break_end (default check_in)
        lat: Latitude of the event [-90, 90]
        lng: Longitude of the event [-180, 180]
        address: Optional resolved address
        bssid: Optional Wi-Fi access point MAC address
        cell_id: Optional cell tower identifier
        is_offline_submission: True when the client captured the event offline
        offline_timestamp: Client-asserted event time for offline submissions
        now: Server receipt time (default: current UTC time)

    Returns:
        Created AttendanceRecord

    Raises:
        InvalidCoordinates: If lat/lng are out of bounds
        InvalidTimestamp: If the offline timestamp is unparsable or in the future
        InvalidSubmission: If another field is malformed
    """
    received_at = ensure_utc(now) if now else now_utc()

    validate_coordinates(lat, lng)
    submission_type = _normalize_submission_type(submission_type)
    bssid = _normalize_bssid(bssid)
    if address and len(address) > MAX_ADDRESS_LENGTH:
        raise InvalidSubmission("address", f"must be at most {MAX_ADDRESS_LENGTH} characters")
    if cell_id and len(cell_id) > MAX_CELL_ID_LENGTH:
        raise InvalidSubmission("cell_id", f"must be at most {MAX_CELL_ID_LENGTH} characters")

    reconciled = reconcile_event_time(bool(is_offline_submission), offline_timestamp, received_at)

    lat_value = Decimal(str(lat))
    lng_value = Decimal(str(lng))
    record = AttendanceRecord(
        user_id=user_id,
        submission_type=submission_type,
        check_in_time=reconciled.event_time,
        check_in_lat=lat_value,
        check_in_lng=lng_value,
        check_in_address=address or None,
        bssid=bssid,
        cell_id=cell_id or None,
        status=AttendanceStatus.PENDING.value,
        is_offline_submission=bool(is_offline_submission),
        offline_timestamp=reconciled.offline_timestamp,
        created_at=received_at,
        updated_at=received_at,
    )
    # A check-out is its own record; it also fills the check-out slot
    if submission_type == SubmissionType.CHECK_OUT.value:
        record.check_out_time = reconciled.event_time
        record.check_out_lat = lat_value
        record.check_out_lng = lng_value
        record.check_out_address = address or None

    db.add(record)
    db.flush()
    log_audit(
        db=db,
        actor_id=user_id,
        action="ATTENDANCE_SUBMIT",
        entity_type="attendances",
        entity_id=record.id,
        meta={
            "submission_type": submission_type,
            "check_in_time": reconciled.event_time,
            "is_offline_submission": record.is_offline_submission,
            "received_at": received_at,
        },
    )
    db.commit()
    db.refresh(record)

    _log.info(
        "attendance submitted: id=%s user_id=%s type=%s offline=%s",
        record.id, user_id, submission_type, record.is_offline_submission,
    )
    return record


def get_attendance(db: Session, record_id: int) -> Optional[AttendanceRecord]:
    """Return the record with its subject and photos, or None if it does not exist."""
    return _with_details(db.query(AttendanceRecord)).filter(AttendanceRecord.id == record_id).first()


def list_by_subject(
    db: Session,
    user_id: int,
    limit: Optional[int] = None,
    offset: int = 0,
    date_range: Optional[DateRange] = None,
) -> List[AttendanceRecord]:
    """
    History of one subject, newest event first.

    Ordered by check_in_time desc with id as tie-breaker so repeated calls with
    the same limit/offset return the same page.
    """
    if limit is None:
        limit = settings.HISTORY_DEFAULT_LIMIT
    limit = max(1, min(int(limit), settings.HISTORY_MAX_LIMIT))
    offset = max(0, int(offset or 0))

    query = _with_details(db.query(AttendanceRecord)).filter(AttendanceRecord.user_id == user_id)
    if date_range is not None:
        start, end = date_range
        if start is not None:
            query = query.filter(AttendanceRecord.check_in_time >= ensure_utc(start))
        if end is not None:
            query = query.filter(AttendanceRecord.check_in_time <= ensure_utc(end))

    return (
        query.order_by(AttendanceRecord.check_in_time.desc(), AttendanceRecord.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def list_by_date_range(
    db: Session,
    start: datetime,
    end: datetime,
    status_filter: Optional[str] = None,
    user_id: Optional[int] = None,
) -> List[AttendanceRecord]:
    """
    Records received between start and end inclusive (created_at, i.e. server
    receipt time), newest first. Reporting/audit view.
    """
    query = _with_details(db.query(AttendanceRecord)).filter(
        AttendanceRecord.created_at >= ensure_utc(start),
        AttendanceRecord.created_at <= ensure_utc(end),
    )
    if status_filter:
        query = query.filter(AttendanceRecord.status == status_filter)
    if user_id is not None:
        query = query.filter(AttendanceRecord.user_id == user_id)
    return query.order_by(AttendanceRecord.created_at.desc(), AttendanceRecord.id.desc()).all()


def list_pending(db: Session) -> List[AttendanceRecord]:
    """The admin review queue, most recently received first."""
    return (
        _with_details(db.query(AttendanceRecord))
        .filter(AttendanceRecord.status == AttendanceStatus.PENDING.value)
        .order_by(AttendanceRecord.created_at.desc(), AttendanceRecord.id.desc())
        .all()
    )


def list_offline(db: Session, user_id: int) -> List[AttendanceRecord]:
    """Offline submissions of a subject ordered by client-asserted time, newest first."""
    return (
        _with_details(db.query(AttendanceRecord))
        .filter(
            AttendanceRecord.user_id == user_id,
            AttendanceRecord.is_offline_submission.is_(True),
        )
        .order_by(AttendanceRecord.offline_timestamp.desc(), AttendanceRecord.id.desc())
        .all()
    )


def delete_attendance(db: Session, record_id: int, actor_id: int) -> None:
    """
    Hard-delete a record. Photo rows go with it (ON DELETE CASCADE); stored
    files are left for external storage cleanup.

    Raises:
        NotFound: If the record does not exist
    """
    record = db.query(AttendanceRecord).filter(AttendanceRecord.id == record_id).first()
    if record is None:
        raise NotFound("Attendance", record_id)

    user_id = record.user_id
    status = record.status
    db.delete(record)
    log_audit(
        db=db,
        actor_id=actor_id,
        action="ATTENDANCE_DELETE",
        entity_type="attendances",
        entity_id=record_id,
        meta={"user_id": user_id, "status": status},
    )
    db.commit()

    _log.info("attendance deleted: id=%s by=%s", record_id, actor_id)
