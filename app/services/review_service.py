"""
Review service: pending -> approved | rejected, admin only, one way.

The transition is a single conditional UPDATE (WHERE status = 'pending'), so
two admins reviewing the same record concurrently cannot both succeed: the
second update matches no row and is reported as AlreadyReviewed.
"""
import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.orm import Session

from app.core.exceptions import AlreadyReviewed, InvalidSubmission, NotFound, Unauthorized
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.user import User
from app.services.attendance_service import get_attendance
from app.services.audit_service import log_audit
from app.utils.datetime_utils import ensure_utc, now_utc
from app.utils.enums import enum_to_str

_log = logging.getLogger(__name__)

REVIEW_DECISIONS = (AttendanceStatus.APPROVED.value, AttendanceStatus.REJECTED.value)


def review_attendance(
    db: Session,
    record_id: int,
    decision: Union[AttendanceStatus, str],
    actor: User,
    admin_notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AttendanceRecord:
    """
    Approve or reject a pending attendance record.

    Args:
        db: Database session
        record_id: Attendance record ID
        decision: "approved" or "rejected"
        actor: Reviewing user; must hold the admin role
        admin_notes: Optional note stored with the decision
        now: Review time (default: current UTC time)

    Returns:
        The updated AttendanceRecord with subject and photos

    Raises:
        Unauthorized: If actor is not an admin
        InvalidSubmission: If decision is not approved/rejected
        NotFound: If the record does not exist
        AlreadyReviewed: If the record is no longer pending
    """
    if actor is None or not actor.is_admin:
        raise Unauthorized("review attendance")

    decision_value = enum_to_str(decision)
    if decision_value not in REVIEW_DECISIONS:
        raise InvalidSubmission("decision", f"must be one of {list(REVIEW_DECISIONS)}")

    reviewed_at = ensure_utc(now) if now else now_utc()

    updated_rows = (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.id == record_id,
            AttendanceRecord.status == AttendanceStatus.PENDING.value,
        )
        .update(
            {
                AttendanceRecord.status: decision_value,
                AttendanceRecord.admin_notes: admin_notes,
                AttendanceRecord.reviewed_by: actor.id,
                AttendanceRecord.reviewed_at: reviewed_at,
                AttendanceRecord.updated_at: reviewed_at,
            },
            synchronize_session=False,
        )
    )
    if updated_rows == 0:
        db.rollback()
        current = db.query(AttendanceRecord.status).filter(AttendanceRecord.id == record_id).first()
        if current is None:
            raise NotFound("Attendance", record_id)
        _log.info("review rejected: id=%s already %s (by=%s)", record_id, current.status, actor.id)
        raise AlreadyReviewed(record_id, current.status)

    log_audit(
        db=db,
        actor_id=actor.id,
        action="ATTENDANCE_REVIEW",
        entity_type="attendances",
        entity_id=record_id,
        meta={
            "decision": decision_value,
            "admin_notes": admin_notes,
            "reviewed_at": reviewed_at,
        },
    )
    db.commit()

    _log.info("attendance reviewed: id=%s decision=%s by=%s", record_id, decision_value, actor.id)
    return get_attendance(db, record_id)
