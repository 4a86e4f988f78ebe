"""
Admin attendance endpoints: review queue, approve/reject, reports, deletes.
All routes require the admin role (see require_admin).
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_admin
from app.models.attendance import AttendanceStatus
from app.models.user import User
from app.schemas.attendance import (
    AttendanceListResponse,
    AttendanceOut,
    AttendanceReportResponse,
    AttendanceReviewResponse,
    PhotoOut,
    ReviewRequest,
)
from app.services import attendance_service, photo_service, report_service, review_service
from app.utils.datetime_utils import iso_8601_utc

router = APIRouter()


def _review(db: Session, record_id: int, decision: str, body: Optional[ReviewRequest], actor: User):
    record = review_service.review_attendance(
        db,
        record_id,
        decision,
        actor,
        admin_notes=body.admin_notes if body else None,
    )
    return AttendanceReviewResponse(
        message=f"Attendance {decision} successfully",
        attendance=AttendanceOut.model_validate(record),
    )


@router.get("/pending", response_model=AttendanceListResponse)
async def list_pending(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """GET /api/v1/admin/attendance/pending - the review queue, newest first."""
    records = attendance_service.list_pending(db)
    return AttendanceListResponse(
        attendances=[AttendanceOut.model_validate(r) for r in records],
        count=len(records),
    )


@router.post("/{record_id}/approve", response_model=AttendanceReviewResponse)
async def approve_attendance(
    record_id: int,
    body: Optional[ReviewRequest] = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return _review(db, record_id, AttendanceStatus.APPROVED.value, body, current_user)


@router.post("/{record_id}/reject", response_model=AttendanceReviewResponse)
async def reject_attendance(
    record_id: int,
    body: Optional[ReviewRequest] = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return _review(db, record_id, AttendanceStatus.REJECTED.value, body, current_user)


@router.get("/reports", response_model=AttendanceReportResponse)
async def attendance_reports(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """GET /api/v1/admin/attendance/reports?startDate=&endDate= (default last 30 days)."""
    records, start, end = report_service.attendance_report(db, start_date=start_date, end_date=end_date)
    return AttendanceReportResponse(
        attendances=[AttendanceOut.model_validate(r) for r in records],
        count=len(records),
        start_date=iso_8601_utc(start),
        end_date=iso_8601_utc(end),
    )


@router.delete("/photos/{photo_id}", response_model=PhotoOut)
async def delete_photo(
    photo_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Soft delete: the photo disappears from records, the stored file stays."""
    photo = photo_service.soft_delete_photo(db, photo_id, current_user.id)
    return PhotoOut.model_validate(photo)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attendance(
    record_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    attendance_service.delete_attendance(db, record_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
