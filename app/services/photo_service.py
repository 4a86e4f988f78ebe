"""
Photo evidence storage for attendance records.

Bytes are written to UPLOAD_PATH before the metadata row is inserted, so a
row never points at a missing file. A file without a row (insert failed after
the write) is tolerated and left to storage cleanup.

A slot (check_in / check_out) holds at most one active photo. A second attach
to an occupied slot is rejected with DuplicatePhotoSlot; soft-deleting the
active photo frees the slot.
"""
import logging
import os
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    AttendanceError,
    DuplicatePhotoSlot,
    InvalidPhotoUpload,
    NotFound,
    PhotoAttachFailure,
    PhotoTooLarge,
    UnsupportedPhotoType,
)
from app.models.attendance import AttendancePhoto, AttendanceRecord, PhotoType
from app.services.audit_service import log_audit
from app.utils.datetime_utils import ensure_utc, now_utc
from app.utils.enums import require_enum_value

_log = logging.getLogger(__name__)

DEFAULT_EXTENSION = "jpg"
_EXTENSION_PATTERN = re.compile(r"^[a-z0-9]{1,10}$")


@dataclass
class PhotoUpload:
    """One evidentiary photo as received from the client."""
    photo_type: str
    content: bytes
    file_name: Optional[str] = None
    mime_type: Optional[str] = None


@dataclass
class PhotoAttachReport:
    attached: List[AttendancePhoto] = field(default_factory=list)
    failed: List[AttendanceError] = field(default_factory=list)

    @property
    def attached_slots(self) -> List[str]:
        return [p.photo_type for p in self.attached]

    @property
    def failed_slots(self) -> List[dict]:
        return [
            {
                "slot": e.context.get("slot"),
                "code": e.code,
                "detail": e.message,
            }
            for e in self.failed
        ]


def _extension_for(file_name: Optional[str]) -> str:
    if file_name:
        ext = os.path.splitext(file_name)[1].lstrip(".").lower()
        if _EXTENSION_PATTERN.match(ext):
            return ext
    return DEFAULT_EXTENSION


def generate_storage_name(photo_type: str, file_name: Optional[str], now: Optional[datetime] = None) -> str:
    """Unique storage name: {slot}_{uuid}_{epoch ms}.{ext}; the client file name only contributes its extension."""
    moment = ensure_utc(now) if now else now_utc()
    return f"{photo_type}_{uuid.uuid4().hex}_{int(moment.timestamp() * 1000)}.{_extension_for(file_name)}"


def _write_file(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # "x" never overwrites an existing file
    with open(path, "xb") as out_file:
        out_file.write(content)


def _remove_file(path: Path) -> None:
    try:
        path.unlink()
    except OSError as e:
        _log.warning("could not remove orphan photo file %s: %s", path, e)


def _validate_slot(photo_type: str) -> str:
    return require_enum_value(photo_type, PhotoType, "photo_type")


def _active_photo(db: Session, record_id: int, photo_type: str) -> Optional[AttendancePhoto]:
    return (
        db.query(AttendancePhoto)
        .filter(
            AttendancePhoto.attendance_id == record_id,
            AttendancePhoto.photo_type == photo_type,
            AttendancePhoto.deleted_at.is_(None),
        )
        .first()
    )


def attach_photo(
    db: Session,
    record_id: int,
    photo_type: str,
    content: bytes,
    file_name: Optional[str] = None,
    mime_type: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AttendancePhoto:
    """
    Store one photo and record its metadata.

    Raises:
        InvalidSubmission: Unknown photo type
        NotFound: The attendance record does not exist
        DuplicatePhotoSlot: The slot already holds an active photo
        UnsupportedPhotoType, PhotoTooLarge, InvalidPhotoUpload: The file was refused
        PhotoAttachFailure: The file or its metadata row could not be written
    """
    photo_type = _validate_slot(photo_type)
    moment = ensure_utc(now) if now else now_utc()

    exists = db.query(AttendanceRecord.id).filter(AttendanceRecord.id == record_id).first()
    if exists is None:
        raise NotFound("Attendance", record_id)

    if _active_photo(db, record_id, photo_type) is not None:
        raise DuplicatePhotoSlot(record_id, photo_type)

    declared_type = (mime_type or "").split(";")[0].strip().lower()
    if declared_type not in settings.get_allowed_upload_types():
        raise UnsupportedPhotoType(record_id, photo_type, f"unsupported file type '{declared_type or 'unknown'}'")
    size = len(content or b"")
    if size == 0:
        raise InvalidPhotoUpload(record_id, photo_type, "file is empty")
    if size > settings.UPLOAD_MAX_SIZE:
        raise PhotoTooLarge(record_id, photo_type, f"file exceeds {settings.UPLOAD_MAX_SIZE} bytes")

    storage_name = generate_storage_name(photo_type, file_name, moment)
    storage_path = Path(settings.UPLOAD_PATH) / storage_name

    try:
        _write_file(storage_path, content)
    except OSError as e:
        _log.error("photo write failed: record_id=%s slot=%s path=%s error=%s", record_id, photo_type, storage_path, e)
        raise PhotoAttachFailure(record_id, photo_type, "storage write failed")

    photo = AttendancePhoto(
        attendance_id=record_id,
        photo_type=photo_type,
        file_name=storage_name,
        file_path=str(storage_path),
        file_size=size,
        mime_type=declared_type,
        created_at=moment,
        updated_at=moment,
    )
    db.add(photo)
    try:
        db.commit()
    except IntegrityError:
        # Another request filled the slot between our check and insert
        db.rollback()
        _remove_file(storage_path)
        raise DuplicatePhotoSlot(record_id, photo_type)
    except SQLAlchemyError as e:
        db.rollback()
        _log.error("photo metadata write failed: record_id=%s slot=%s error=%s", record_id, photo_type, e)
        _remove_file(storage_path)
        raise PhotoAttachFailure(record_id, photo_type, "metadata write failed")
    db.refresh(photo)

    _log.info("photo attached: record_id=%s slot=%s photo_id=%s size=%s", record_id, photo_type, photo.id, size)
    return photo


def attach_submission_photos(
    db: Session,
    record_id: int,
    uploads: List[PhotoUpload],
    now: Optional[datetime] = None,
) -> PhotoAttachReport:
    """
    Attach every provided slot of one submission.

    Each slot is attempted even if another fails; failures are collected per
    slot and the attendance record itself is never rolled back.
    """
    report = PhotoAttachReport()
    for upload in uploads:
        try:
            photo = attach_photo(
                db,
                record_id,
                upload.photo_type,
                upload.content,
                file_name=upload.file_name,
                mime_type=upload.mime_type,
                now=now,
            )
        except AttendanceError as e:
            if "slot" not in e.context:
                e.context["slot"] = str(upload.photo_type)
            _log.warning("photo slot failed: record_id=%s slot=%s code=%s", record_id, upload.photo_type, e.code)
            report.failed.append(e)
        else:
            report.attached.append(photo)
    return report


def soft_delete_photo(
    db: Session,
    photo_id: int,
    actor_id: int,
    now: Optional[datetime] = None,
) -> AttendancePhoto:
    """
    Hide a photo from normal reads. The row and the stored file are kept.

    Raises:
        NotFound: If the photo does not exist or is already deleted
    """
    photo = (
        db.query(AttendancePhoto)
        .filter(AttendancePhoto.id == photo_id, AttendancePhoto.deleted_at.is_(None))
        .first()
    )
    if photo is None:
        raise NotFound("Photo", photo_id)

    moment = ensure_utc(now) if now else now_utc()
    photo.deleted_at = moment
    photo.updated_at = moment
    log_audit(
        db=db,
        actor_id=actor_id,
        action="ATTENDANCE_PHOTO_SOFT_DELETE",
        entity_type="attendance_photos",
        entity_id=photo.id,
        meta={"attendance_id": photo.attendance_id, "photo_type": photo.photo_type},
    )
    db.commit()
    db.refresh(photo)

    _log.info("photo soft-deleted: photo_id=%s record_id=%s by=%s", photo.id, photo.attendance_id, actor_id)
    return photo
