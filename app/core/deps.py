"""
Request dependencies: DB session, authenticated user, admin guard.
"""
from typing import Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.exceptions import Unauthorized
from app.core.security import decode_token
from app.db.session import SessionLocal
from app.models.user import User, UserRole

security = HTTPBearer()


def get_db() -> Generator:
    """One session per request, closed when the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_id_from_token(token: str) -> int:
    """The authentication service issues sub as the user id in string form."""
    try:
        payload = decode_token(token)
        return int(payload["sub"])
    except (KeyError, ValueError, TypeError):
        raise _unauthenticated("Invalid authentication credentials")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to an active user (401 unknown, 403 inactive)."""
    user_id = _user_id_from_token(credentials.credentials)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _unauthenticated("User not found")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Allow only users holding the admin role.

    Usage:
        @router.get("/pending")
        async def pending(user: User = Depends(require_admin)):
            ...
    """
    if current_user.role != UserRole.ADMIN.value:
        raise Unauthorized("access admin attendance endpoints")
    return current_user
