"""
Database models
"""
from app.models.user import User, UserRole
from app.models.audit_log import AuditLog
from app.models.attendance import (
    AttendanceRecord,
    AttendancePhoto,
    AttendanceStatus,
    SubmissionType,
    PhotoType,
)

__all__ = [
    "User",
    "UserRole",
    "AuditLog",
    "AttendanceRecord",
    "AttendancePhoto",
    "AttendanceStatus",
    "SubmissionType",
    "PhotoType",
]
