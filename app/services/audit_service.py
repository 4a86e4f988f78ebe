"""
Audit trail for attendance changes.

log_audit only stages the row; the caller commits it together with the change
it describes, so an audited change and its audit row land or fail together.
"""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog
from app.utils.datetime_utils import now_utc
from app.utils.json_serializer import sanitize_for_json


def log_audit(
    db: Session,
    actor_id: int,
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Stage an audit row (ATTENDANCE_SUBMIT, ATTENDANCE_REVIEW, ATTENDANCE_DELETE,
    ATTENDANCE_PHOTO_SOFT_DELETE) in the current transaction.
    """
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_json=sanitize_for_json(meta) if meta is not None else None,
        created_at=now_utc(),
    )
    db.add(entry)
    db.flush()
    return entry
