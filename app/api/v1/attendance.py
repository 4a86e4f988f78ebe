"""
Attendance read endpoints (web dashboard).
ADMIN lists all records by date window; a user may read their own history and records.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_user, require_admin
from app.core.exceptions import NotFound
from app.models.user import User
from app.schemas.attendance import AttendanceListResponse, AttendanceOut, AttendanceReportResponse
from app.services import attendance_service, report_service
from app.utils.datetime_utils import iso_8601_utc

router = APIRouter()


@router.get("", response_model=AttendanceReportResponse)
async def list_attendance(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    status_filter: Optional[str] = Query(None, alias="status"),
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """GET /api/v1/attendance?startDate=&endDate=&status=&employeeId= (received-at window, default last 30 days)."""
    records, start, end = report_service.attendance_report(
        db,
        start_date=start_date,
        end_date=end_date,
        status_filter=status_filter,
        user_id=employee_id,
    )
    return AttendanceReportResponse(
        attendances=[AttendanceOut.model_validate(r) for r in records],
        count=len(records),
        start_date=iso_8601_utc(start),
        end_date=iso_8601_utc(end),
    )


@router.get("/employee/{user_id}", response_model=AttendanceListResponse)
async def list_employee_attendance(
    user_id: int,
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """History of one user by event time. Admin, or the user themself."""
    if user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. You can only view your own attendance."
        )
    records = report_service.subject_history(
        db, user_id, limit=limit, offset=offset, start_date=start_date, end_date=end_date
    )
    return AttendanceListResponse(
        attendances=[AttendanceOut.model_validate(r) for r in records],
        count=len(records),
    )


@router.get("/{record_id}", response_model=AttendanceOut)
async def get_attendance(
    record_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    record = attendance_service.get_attendance(db, record_id)
    if record is None:
        raise NotFound("Attendance", record_id)
    if record.user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. You can only view your own attendance."
        )
    return AttendanceOut.model_validate(record)
