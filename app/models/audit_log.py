"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from app.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    action = Column(String, nullable=False)  # e.g., "ATTENDANCE_SUBMIT", "ATTENDANCE_REVIEW"
    entity_type = Column(String, nullable=False)  # e.g., "attendances", "attendance_photos"
    entity_id = Column(Integer, nullable=True)  # Not a FK: audit rows outlive deleted records
    meta_json = Column(JSON, nullable=True)
    # Note: set explicitly by log_audit (SQLite server_default has second resolution)
    created_at = Column(DateTime(timezone=True), nullable=False)
