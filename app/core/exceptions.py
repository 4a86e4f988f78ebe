"""
Domain errors raised by the attendance services.

Each error carries a stable ``code``, an HTTP-equivalent ``status_code`` and a
``context`` dict (record id, slot, offending field) that the API layer renders
verbatim. Context never contains storage paths.
"""
from typing import Any, Dict, Optional


class AttendanceError(Exception):
    code = "ATTENDANCE_ERROR"
    status_code = 400

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class InvalidCoordinates(AttendanceError):
    code = "INVALID_COORDINATES"
    status_code = 422

    def __init__(self, field: str, value: Any, reason: str = "out of range"):
        super().__init__(
            f"Invalid {field}: {reason}",
            {"field": field, "value": value if value is None or isinstance(value, (int, float)) else str(value)},
        )
        self.field = field


class InvalidTimestamp(AttendanceError):
    code = "INVALID_TIMESTAMP"
    status_code = 422

    def __init__(self, value: Any, reason: str):
        super().__init__(
            f"Invalid offline timestamp: {reason}",
            {"field": "offline_timestamp", "value": None if value is None else str(value)},
        )
        self.reason = reason


class InvalidSubmission(AttendanceError):
    code = "INVALID_SUBMISSION"
    status_code = 422

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid {field}: {reason}", {"field": field})
        self.field = field


class InvalidDateRange(AttendanceError):
    code = "INVALID_DATE_RANGE"
    status_code = 400

    def __init__(self, start: Any, end: Any):
        super().__init__(
            "startDate must be less than or equal to endDate",
            {"start_date": str(start), "end_date": str(end)},
        )


class NotFound(AttendanceError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} not found", {"entity": entity, "id": entity_id})


class AlreadyReviewed(AttendanceError):
    code = "ALREADY_REVIEWED"
    status_code = 409

    def __init__(self, record_id: int, current_status: str):
        super().__init__(
            f"Attendance has already been reviewed (status: {current_status})",
            {"record_id": record_id, "status": current_status},
        )
        self.current_status = current_status


class PhotoAttachFailure(AttendanceError):
    """Storage or metadata write failed on our side."""
    code = "PHOTO_ATTACH_FAILED"
    status_code = 500

    def __init__(self, record_id: int, slot: str, reason: str):
        super().__init__(
            f"Failed to attach {slot} photo: {reason}",
            {"record_id": record_id, "slot": slot},
        )
        self.slot = slot
        self.reason = reason


class InvalidPhotoUpload(AttendanceError):
    """The uploaded file itself was refused; nothing was stored."""
    code = "INVALID_PHOTO_UPLOAD"
    status_code = 422

    def __init__(self, record_id: int, slot: str, reason: str):
        super().__init__(
            f"Rejected {slot} photo: {reason}",
            {"record_id": record_id, "slot": slot},
        )
        self.slot = slot
        self.reason = reason


class UnsupportedPhotoType(InvalidPhotoUpload):
    code = "UNSUPPORTED_PHOTO_TYPE"
    status_code = 415


class PhotoTooLarge(InvalidPhotoUpload):
    code = "PHOTO_TOO_LARGE"
    status_code = 413


class DuplicatePhotoSlot(AttendanceError):
    code = "DUPLICATE_PHOTO_SLOT"
    status_code = 409

    def __init__(self, record_id: int, slot: str):
        super().__init__(
            f"A {slot} photo is already attached to this attendance",
            {"record_id": record_id, "slot": slot},
        )
        self.slot = slot


class Unauthorized(AttendanceError):
    code = "UNAUTHORIZED"
    status_code = 403

    def __init__(self, action: str):
        super().__init__(f"Admin role required to {action}", {"action": action})
