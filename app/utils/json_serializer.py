"""
Conversion of audit metadata to values a JSON column accepts
"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

from app.utils.datetime_utils import iso_8601_utc


def sanitize_for_json(value: Any) -> Any:
    """
    Recursively convert value for storage in audit_logs.meta_json.

    Datetimes become ISO-8601 UTC with Z (same as API responses), Decimals
    become floats, Enums their value; unknown objects fall back to str().
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return iso_8601_utc(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): sanitize_for_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [sanitize_for_json(item) for item in value]
    if isinstance(value, BaseModel):
        return sanitize_for_json(value.model_dump())
    return str(value)
