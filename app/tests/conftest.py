"""
Pytest configuration and fixtures
"""
import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_ENV", "local")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.core.config import settings
from app.core.deps import get_db

# Import all models to ensure they're registered with Base.metadata
from app.models import AttendancePhoto, AttendanceRecord, AuditLog, User, UserRole  # noqa


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def enable_sqlite_foreign_keys(target_engine) -> None:
    """Photo rows rely on ON DELETE CASCADE, which SQLite only honours with this pragma."""
    @event.listens_for(target_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Photos go to a per-test directory"""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_PATH", str(path))
    return path


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db: Session, username: str, role: str = UserRole.USER.value, active: bool = True) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        name=username.title(),
        role=role,
        is_active=active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def issue_token(subject: str, expires_minutes: int = 60) -> str:
    """Sign a token the way the authentication service does"""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    return jwt.encode({"sub": subject, "exp": expire}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def auth_headers(user: User) -> dict:
    """Bearer header as issued by the authentication service"""
    token = issue_token(str(user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_user(db: Session) -> User:
    return make_user(db, "fieldworker")


@pytest.fixture
def other_user(db: Session) -> User:
    return make_user(db, "otherworker")


@pytest.fixture
def test_admin(db: Session) -> User:
    return make_user(db, "supervisor", role=UserRole.ADMIN.value)


@pytest.fixture
def user_headers(test_user) -> dict:
    return auth_headers(test_user)


@pytest.fixture
def admin_headers(test_admin) -> dict:
    return auth_headers(test_admin)


@pytest.fixture
def other_headers(other_user) -> dict:
    return auth_headers(other_user)
