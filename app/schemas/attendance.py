"""
Attendance schemas: the typed submission accepted at the API boundary and the
record/photo projections returned to clients.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from app.utils.datetime_utils import iso_8601_utc

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def _serialize_dt(dt: Optional[datetime]) -> Optional[str]:
    """Serialize datetime as ISO-8601 UTC (Z) for API responses."""
    return iso_8601_utc(dt)


class MobileAttendanceSubmission(BaseModel):
    """
    One attendance submission as sent by the mobile (multipart) or web (JSON) client.

    Coercion happens here once: latitude/longitude may be numbers or numeric
    strings, the offline flag may be a boolean or a string, and empty strings
    mean "absent". Range checks are left to the attendance service.
    """
    check_in_lat: float
    check_in_lng: float
    check_in_address: Optional[str] = None
    bssid: Optional[str] = None
    cell_id: Optional[str] = None
    submission_type: Optional[str] = None
    is_offline_submission: bool = False
    # strict: a JSON boolean must not pass as epoch 1 ms
    offline_timestamp: Optional[Union[StrictStr, StrictInt, StrictFloat]] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("check_in_lat", "check_in_lng", mode="before")
    @classmethod
    def coerce_coordinate(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("coordinate is required")
            return float(v)
        return v

    @field_validator("is_offline_submission", mode="before")
    @classmethod
    def coerce_flag(cls, v):
        if v is None:
            return False
        if isinstance(v, str):
            normalized = v.strip().lower()
            if normalized in _TRUE_STRINGS:
                return True
            if normalized in _FALSE_STRINGS:
                return False
            raise ValueError("must be a boolean")
        return v

    @field_validator("check_in_address", "bssid", "cell_id", "submission_type", "offline_timestamp", mode="before")
    @classmethod
    def blank_as_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class ReviewRequest(BaseModel):
    """Body of approve/reject. `reason` is accepted for older reject clients."""
    admin_notes: Optional[str] = Field(
        None,
        max_length=2000,
        validation_alias=AliasChoices("adminNotes", "admin_notes", "reason"),
    )


class SubjectSummary(BaseModel):
    """Owning user projection; credential fields are never exposed."""
    id: int
    username: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: str

    model_config = ConfigDict(from_attributes=True)


class PhotoOut(BaseModel):
    """Photo metadata; the storage path stays server-side."""
    id: int
    attendance_id: int
    photo_type: str
    file_name: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", when_used="always")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return _serialize_dt(dt)


class AttendanceOut(BaseModel):
    """Attendance record with its subject and active photos. Datetimes in UTC (Z)."""
    id: int
    user_id: int
    submission_type: str
    status: str
    check_in_time: datetime
    check_in_lat: Optional[Decimal] = None
    check_in_lng: Optional[Decimal] = None
    check_in_address: Optional[str] = None
    check_out_time: Optional[datetime] = None
    check_out_lat: Optional[Decimal] = None
    check_out_lng: Optional[Decimal] = None
    check_out_address: Optional[str] = None
    bssid: Optional[str] = None
    cell_id: Optional[str] = None
    admin_notes: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    is_offline_submission: bool
    offline_timestamp: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[SubjectSummary] = None
    photos: List[PhotoOut] = Field(default_factory=list, validation_alias=AliasChoices("active_photos", "photos"))

    model_config = ConfigDict(from_attributes=True)

    @field_serializer(
        "check_in_time", "check_out_time", "reviewed_at", "offline_timestamp", "created_at", "updated_at",
        when_used="always",
    )
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return _serialize_dt(dt)

    @field_serializer("check_in_lat", "check_in_lng", "check_out_lat", "check_out_lng", when_used="always")
    def _ser_coordinate(self, v: Optional[Decimal]) -> Optional[float]:
        return float(v) if v is not None else None


class PhotoSlotFailure(BaseModel):
    slot: Optional[str] = None
    code: str
    detail: str


class AttendanceSubmissionResponse(BaseModel):
    message: str
    attendance: AttendanceOut
    submission_type: str
    is_offline_submission: bool
    attached_photo_slots: List[str]
    failed_photo_slots: List[PhotoSlotFailure]


class AttendanceReviewResponse(BaseModel):
    message: str
    attendance: AttendanceOut


class AttendanceListResponse(BaseModel):
    attendances: List[AttendanceOut]
    count: int


class AttendanceTodayResponse(AttendanceListResponse):
    date: str


class AttendanceReportResponse(AttendanceListResponse):
    start_date: str
    end_date: str
