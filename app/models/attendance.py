"""
Attendance record and photo evidence models
"""
from sqlalchemy import (
    Column,
    Integer,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class SubmissionType(str, enum.Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    BREAK_START = "break_start"
    BREAK_END = "break_end"


class AttendanceStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PhotoType(str, enum.Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"


class AttendanceRecord(Base):
    __tablename__ = "attendances"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    check_in_time = Column(DateTime(timezone=True), nullable=False)  # Reconciled canonical event time (UTC)
    check_in_lat = Column(Numeric(10, 8), nullable=True)
    check_in_lng = Column(Numeric(11, 8), nullable=True)
    check_in_address = Column(String(255), nullable=True)
    bssid = Column(String(17), nullable=True)  # MAC address format: XX:XX:XX:XX:XX:XX
    cell_id = Column(String(50), nullable=True)
    check_out_time = Column(DateTime(timezone=True), nullable=True)
    check_out_lat = Column(Numeric(10, 8), nullable=True)
    check_out_lng = Column(Numeric(11, 8), nullable=True)
    check_out_address = Column(String(255), nullable=True)
    submission_type = Column(String(20), nullable=False, default=SubmissionType.CHECK_IN.value)
    status = Column(String(20), nullable=False, default=AttendanceStatus.PENDING.value)
    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    is_offline_submission = Column(Boolean, nullable=False, default=False)
    offline_timestamp = Column(DateTime(timezone=True), nullable=True)  # Client-asserted time, kept verbatim
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)  # Server receipt time
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    __table_args__ = (
        Index("idx_attendances_user_status", "user_id", "status"),
        Index("idx_attendances_status_created", "status", "created_at"),
        Index("idx_attendances_user_check_in", "user_id", "check_in_time"),
        Index("idx_attendances_offline", "is_offline_submission", "offline_timestamp"),
    )

    # Relationships
    user = relationship("User", foreign_keys=[user_id], back_populates="attendances")
    reviewer = relationship("User", foreign_keys=[reviewed_by])
    photos = relationship(
        "AttendancePhoto",
        back_populates="attendance",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AttendancePhoto.id",
    )

    @property
    def active_photos(self):
        return [p for p in self.photos if p.deleted_at is None]


class AttendancePhoto(Base):
    __tablename__ = "attendance_photos"

    id = Column(Integer, primary_key=True, index=True)
    attendance_id = Column(
        Integer,
        ForeignKey("attendances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    photo_type = Column(String(20), nullable=False)
    file_name = Column(String(255), nullable=False, unique=True)
    file_path = Column(String(500), nullable=False)
    file_size = Column(BigInteger, nullable=True)
    mime_type = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    __table_args__ = (
        # One active photo per evidentiary slot
        Index(
            "uq_attendance_photos_active_slot",
            "attendance_id",
            "photo_type",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    attendance = relationship("AttendanceRecord", back_populates="photos")
