"""Coercion of enum-or-string request values to their stored string form."""
from enum import Enum
from typing import Optional, Type, Union

from app.core.exceptions import InvalidSubmission


def enum_to_str(v: Union[Enum, str, None]) -> Optional[str]:
    """
    Enum member -> its value; anything else -> str; None stays None.

    Examples:
        >>> enum_to_str(AttendanceStatus.PENDING)
        'pending'
        >>> enum_to_str('pending')
        'pending'
    """
    if v is None:
        return None
    if isinstance(v, Enum):
        return v.value
    return str(v)


def allowed_values(enum_cls: Type[Enum]) -> list:
    return [member.value for member in enum_cls]


def require_enum_value(v: Union[Enum, str, None], enum_cls: Type[Enum], field: str) -> str:
    """
    Return the stored value for v, or raise InvalidSubmission naming the field.

    Raises:
        InvalidSubmission: If v is empty or not a member of enum_cls
    """
    value = enum_to_str(v)
    allowed = allowed_values(enum_cls)
    if value not in allowed:
        raise InvalidSubmission(field, f"must be one of {allowed}")
    return value
