"""
Tests for bearer token verification
"""
from fastapi import status

from app.models.user import User
from app.tests.conftest import issue_token


def test_valid_token_is_accepted(client, user_headers):
    response = client.get("/api/v1/mobile/attendance/history", headers=user_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"attendances": [], "count": 0}


def test_garbage_token_is_rejected(client, db):
    response = client.get(
        "/api/v1/mobile/attendance/history",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.headers.get("www-authenticate") == "Bearer"


def test_expired_token_is_rejected(client, test_user):
    token = issue_token(str(test_user.id), expires_minutes=-1)
    response = client.get(
        "/api/v1/mobile/attendance/history",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_token_for_unknown_user_is_rejected(client, db):
    token = issue_token("4242")
    response = client.get(
        "/api/v1/mobile/attendance/history",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_inactive_user_is_forbidden(client, db):
    user = User(username="retired", role="user", is_active=False)
    db.add(user)
    db.commit()
    db.refresh(user)

    token = issue_token(str(user.id))
    response = client.get(
        "/api/v1/mobile/attendance/history",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
