"""
Tests for Authentication

- Registration and login issue a bearer token
- Every protected endpoint shares one credential verifier: missing, invalid
  and expired tokens are 401, banned accounts are 403
- Account self-service: profile, password change
"""

from datetime import timedelta

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from bookreviewer.models import User, UserStatus
from bookreviewer.services.security import create_access_token, create_user_token, verify_password
from tests.conftest import PASSWORD


def get_auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


# =============================================================================
# Registration
# =============================================================================


class TestRegister:
    """Tests for POST /api/v1/auth/register"""

    def test_register_success(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "New.Reader@example.com", "username": "newreader", "password": "Password1"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["success"] is True
        assert body["data"]["token"]
        assert body["data"]["user"]["email"] == "new.reader@example.com"
        assert body["data"]["user"]["role"] == "user"
        assert "hashed_password" not in body["data"]["user"]

    def test_register_duplicate_email(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": sample_user.email, "username": "someoneelse", "password": "Password1"},
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "EMAIL_EXISTS"

    def test_register_duplicate_username(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "other@example.com", "username": sample_user.username, "password": "Password1"},
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "USERNAME_EXISTS"

    def test_register_weak_password(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "weak@example.com", "username": "weak", "password": "onlyletters"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "VALIDATION_ERROR"

    def test_register_bad_username(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "x@example.com", "username": "a", "password": "Password1"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Login
# =============================================================================


class TestLogin:
    """Tests for POST /api/v1/auth/login and /auth/token"""

    def test_login_success(self, client: TestClient, sample_user: User, db_session: Session):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": sample_user.email, "password": PASSWORD},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["token_type"] == "bearer"
        assert data["user"]["id"] == sample_user.id

        db_session.refresh(sample_user)
        assert sample_user.last_login_at is not None

    def test_login_wrong_password(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": sample_user.email, "password": "WrongPass999"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    def test_login_unknown_email(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": "Whatever123"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    def test_login_banned_user(self, client: TestClient, sample_user: User, db_session: Session):
        sample_user.status = UserStatus.BANNED.value
        db_session.commit()

        response = client.post(
            "/api/v1/auth/login",
            json={"email": sample_user.email, "password": PASSWORD},
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "ACCOUNT_DISABLED"

    def test_token_form_endpoint(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/token",
            data={"username": sample_user.email, "password": PASSWORD},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["token_type"] == "bearer"
        assert response.json()["access_token"]


# =============================================================================
# Credential Verification
# =============================================================================


class TestCredentialVerifier:
    """All protected routes resolve the caller the same way."""

    def test_missing_token(self, client: TestClient):
        response = client.get("/api/v1/auth/profile")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "NOT_AUTHENTICATED"

    def test_garbage_token(self, client: TestClient):
        response = client.get(
            "/api/v1/auth/profile", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "INVALID_TOKEN"

    def test_expired_token(self, client: TestClient, sample_user: User):
        token = create_access_token({"sub": str(sample_user.id)}, expires_delta=timedelta(seconds=-10))
        response = client.get(
            "/api/v1/auth/profile", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "TOKEN_EXPIRED"

    def test_token_for_deleted_user(self, client: TestClient):
        token = create_access_token({"sub": "99999"})
        response = client.get(
            "/api/v1/auth/verify", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "INVALID_TOKEN"

    def test_banned_user_token(self, client: TestClient, sample_user: User, db_session: Session):
        headers = get_auth_header(sample_user)
        sample_user.status = UserStatus.BANNED.value
        db_session.commit()

        response = client.get("/api/v1/auth/verify", headers=headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "ACCOUNT_DISABLED"

    def test_verify(self, client: TestClient, sample_user: User):
        response = client.get("/api/v1/auth/verify", headers=get_auth_header(sample_user))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["username"] == sample_user.username


# =============================================================================
# Account Self-Service
# =============================================================================


class TestAccount:
    def test_get_profile_includes_totals(self, client: TestClient, sample_user: User):
        response = client.get("/api/v1/auth/profile", headers=get_auth_header(sample_user))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["email"] == sample_user.email
        assert data["favorites_count"] == 0
        assert data["likes_given_count"] == 0

    def test_update_profile(self, client: TestClient, sample_user: User):
        response = client.put(
            "/api/v1/auth/profile",
            json={"bio": "I read a lot."},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["bio"] == "I read a lot."

    def test_update_profile_empty(self, client: TestClient, sample_user: User):
        response = client.put(
            "/api/v1/auth/profile", json={}, headers=get_auth_header(sample_user)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "NO_UPDATE_FIELDS"

    def test_update_profile_username_taken(
        self, client: TestClient, sample_user: User, second_user: User
    ):
        response = client.put(
            "/api/v1/auth/profile",
            json={"username": second_user.username},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "USERNAME_EXISTS"

    def test_change_password(self, client: TestClient, sample_user: User, db_session: Session):
        response = client.put(
            "/api/v1/auth/password",
            json={"current_password": PASSWORD, "new_password": "BrandNew456"},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        db_session.refresh(sample_user)
        assert verify_password("BrandNew456", sample_user.hashed_password)

    def test_change_password_wrong_current(self, client: TestClient, sample_user: User):
        response = client.put(
            "/api/v1/auth/password",
            json={"current_password": "Nope12345", "new_password": "BrandNew456"},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "INVALID_PASSWORD"

    def test_change_password_same(self, client: TestClient, sample_user: User):
        response = client.put(
            "/api/v1/auth/password",
            json={"current_password": PASSWORD, "new_password": PASSWORD},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "SAME_PASSWORD"

    def test_logout(self, client: TestClient):
        response = client.post("/api/v1/auth/logout")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is True
