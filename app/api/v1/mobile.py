"""
Mobile attendance endpoints: submit (JSON or multipart with photos), attach a
missing photo, and the caller's own history/today/offline lists.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.core.deps import get_db, get_current_user
from app.core.exceptions import AlreadyReviewed, NotFound
from app.models.attendance import AttendanceStatus, PhotoType
from app.models.user import User
from app.schemas.attendance import (
    AttendanceListResponse,
    AttendanceOut,
    AttendanceSubmissionResponse,
    AttendanceTodayResponse,
    MobileAttendanceSubmission,
    PhotoOut,
    PhotoSlotFailure,
)
from app.services import attendance_service, photo_service, report_service
from app.services.photo_service import PhotoUpload

router = APIRouter()
_log = logging.getLogger(__name__)

# multipart field -> evidentiary slot
PHOTO_FIELDS = (
    (("checkInPhoto", "check_in_photo"), PhotoType.CHECK_IN.value),
    (("checkOutPhoto", "check_out_photo"), PhotoType.CHECK_OUT.value),
)


async def _read_submission(request: Request) -> Tuple[MobileAttendanceSubmission, List[PhotoUpload]]:
    """Parse a JSON or multipart body into the typed submission plus photo uploads."""
    content_type = request.headers.get("content-type", "").lower()
    uploads: List[PhotoUpload] = []

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        fields: Dict[str, Any] = {
            key: value for key, value in form.items() if not isinstance(value, StarletteUploadFile)
        }
        for names, slot in PHOTO_FIELDS:
            upload = next(
                (form.get(n) for n in names if isinstance(form.get(n), StarletteUploadFile)),
                None,
            )
            if upload is None:
                continue
            content = await upload.read()
            if not content and not upload.filename:
                continue
            uploads.append(PhotoUpload(
                photo_type=slot,
                content=content,
                file_name=upload.filename,
                mime_type=upload.content_type,
            ))
    else:
        try:
            fields = await request.json()
        except ValueError:
            raise RequestValidationError(
                [{"type": "json_invalid", "loc": ("body",), "msg": "Request body must be JSON or multipart form data", "input": None}]
            )
        if not isinstance(fields, dict):
            raise RequestValidationError(
                [{"type": "dict_type", "loc": ("body",), "msg": "Request body must be an object", "input": None}]
            )

    try:
        submission = MobileAttendanceSubmission.model_validate(fields)
    except ValidationError as e:
        raise RequestValidationError(e.errors())
    return submission, uploads


@router.post("/attendance", response_model=AttendanceSubmissionResponse, status_code=201)
async def submit_attendance(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Submit attendance with GPS coordinates, optional photos and offline support.

    The record is created first; photos are attached afterwards and a failed
    slot is reported in failed_photo_slots without undoing the record.
    """
    submission, uploads = await _read_submission(request)

    record = attendance_service.create_attendance(
        db=db,
        user_id=current_user.id,
        submission_type=submission.submission_type,
        lat=submission.check_in_lat,
        lng=submission.check_in_lng,
        address=submission.check_in_address,
        bssid=submission.bssid,
        cell_id=submission.cell_id,
        is_offline_submission=submission.is_offline_submission,
        offline_timestamp=submission.offline_timestamp,
    )

    report = photo_service.attach_submission_photos(db, record.id, uploads)
    if report.failed:
        _log.warning(
            "submission %s stored with failed photo slots: %s",
            record.id, [f["slot"] for f in report.failed_slots],
        )
    record = attendance_service.get_attendance(db, record.id)

    return AttendanceSubmissionResponse(
        message=(
            "Offline attendance submitted successfully"
            if record.is_offline_submission
            else "Attendance submitted successfully"
        ),
        attendance=AttendanceOut.model_validate(record),
        submission_type=record.submission_type,
        is_offline_submission=record.is_offline_submission,
        attached_photo_slots=report.attached_slots,
        failed_photo_slots=[PhotoSlotFailure(**f) for f in report.failed_slots],
    )


@router.post("/attendance/{record_id}/photos", response_model=PhotoOut, status_code=201)
async def attach_attendance_photo(
    record_id: int,
    photo_type: str = Form(...),
    photo: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Attach a photo to an empty slot of a pending submission (owner or admin)."""
    record = attendance_service.get_attendance(db, record_id)
    if record is None:
        raise NotFound("Attendance", record_id)
    if record.user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. You can only add photos to your own attendance."
        )
    if record.status != AttendanceStatus.PENDING.value:
        raise AlreadyReviewed(record.id, record.status)

    content = await photo.read()
    attached = photo_service.attach_photo(
        db,
        record_id,
        photo_type,
        content,
        file_name=photo.filename,
        mime_type=photo.content_type,
    )
    return PhotoOut.model_validate(attached)


@router.get("/attendance/history", response_model=AttendanceListResponse)
async def attendance_history(
    limit: Optional[int] = Query(None, ge=1, description="Page size (default 30)"),
    offset: int = Query(0, ge=0),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Own attendance history, newest event first."""
    records = report_service.subject_history(
        db, current_user.id, limit=limit, offset=offset, start_date=start_date, end_date=end_date
    )
    return AttendanceListResponse(
        attendances=[AttendanceOut.model_validate(r) for r in records],
        count=len(records),
    )


@router.get("/attendance/today", response_model=AttendanceTodayResponse)
async def attendance_today(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All of today's submissions (UTC day) for the caller."""
    records, today = report_service.today_for_subject(db, current_user.id)
    return AttendanceTodayResponse(
        attendances=[AttendanceOut.model_validate(r) for r in records],
        count=len(records),
        date=today.isoformat(),
    )


@router.get("/attendance/offline", response_model=AttendanceListResponse)
async def attendance_offline(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """The caller's offline submissions, newest client time first."""
    records = attendance_service.list_offline(db, current_user.id)
    return AttendanceListResponse(
        attendances=[AttendanceOut.model_validate(r) for r in records],
        count=len(records),
    )
