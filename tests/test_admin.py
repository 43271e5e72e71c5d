"""
Tests for Admin Tools, Tags and Health
"""

import logging

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from bookreviewer.main import app
from bookreviewer.models import Review, ReviewLike, SystemLog, Tag, User
from bookreviewer.services import likes
from bookreviewer.services.security import create_user_token
from bookreviewer.services.tags import ensure_default_tags
from tests.conftest import PASSWORD


def get_auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


# =============================================================================
# Users
# =============================================================================


class TestUserStatus:
    """Tests for PUT /api/v1/admin/users/{id}/status"""

    def test_ban_and_unban(
        self, client: TestClient, db_session: Session, admin_user: User, sample_user: User
    ):
        headers = get_auth_header(admin_user)
        url = f"/api/v1/admin/users/{sample_user.id}/status"

        banned = client.put(url, json={"status": "banned", "reason": "Spam"}, headers=headers)
        login = client.post(
            "/api/v1/auth/login", json={"email": sample_user.email, "password": PASSWORD}
        )
        unbanned = client.put(url, json={"status": "active"}, headers=headers)

        assert banned.status_code == status.HTTP_200_OK
        assert banned.json()["data"]["status"] == "banned"
        assert login.status_code == status.HTTP_403_FORBIDDEN
        assert unbanned.json()["data"]["status"] == "active"

        events = db_session.execute(
            select(func.count(SystemLog.id)).where(SystemLog.action == "change_user_status")
        ).scalar()
        assert events == 2

    def test_non_admin_forbidden(self, client: TestClient, sample_user: User, second_user: User):
        response = client.put(
            f"/api/v1/admin/users/{second_user.id}/status",
            json={"status": "banned"},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "INSUFFICIENT_PERMISSIONS"

    def test_admin_cannot_ban_self(self, client: TestClient, admin_user: User):
        response = client.put(
            f"/api/v1/admin/users/{admin_user.id}/status",
            json={"status": "banned"},
            headers=get_auth_header(admin_user),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_user(self, client: TestClient, admin_user: User):
        response = client.put(
            "/api/v1/admin/users/99999/status",
            json={"status": "banned"},
            headers=get_auth_header(admin_user),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Reviews
# =============================================================================


class TestAdminReviews:
    def test_hard_delete(
        self,
        client: TestClient,
        db_session: Session,
        admin_user: User,
        second_user: User,
        sample_review: Review,
    ):
        review_id = sample_review.id
        likes.like_review(db_session, second_user, review_id)

        response = client.delete(
            f"/api/v1/admin/reviews/{review_id}", headers=get_auth_header(admin_user)
        )

        assert response.status_code == status.HTTP_200_OK
        assert db_session.execute(select(Review.id).where(Review.id == review_id)).first() is None
        remaining = db_session.execute(
            select(func.count(ReviewLike.id)).where(ReviewLike.review_id == review_id)
        ).scalar()
        assert remaining == 0

    def test_hard_delete_by_author_forbidden(
        self, client: TestClient, sample_user: User, sample_review: Review
    ):
        response = client.delete(
            f"/api/v1/admin/reviews/{sample_review.id}", headers=get_auth_header(sample_user)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_feature_review(self, client: TestClient, admin_user: User, sample_review: Review):
        response = client.put(
            f"/api/v1/admin/reviews/{sample_review.id}/featured",
            json={"is_featured": True},
            headers=get_auth_header(admin_user),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["is_featured"] is True

    def test_reconcile(
        self, client: TestClient, db_session: Session, admin_user: User, sample_review: Review
    ):
        db_session.execute(update(Review).values(likes_count=10))
        db_session.commit()

        response = client.post(
            "/api/v1/admin/counters/reconcile", headers=get_auth_header(admin_user)
        )

        assert response.status_code == status.HTTP_200_OK
        assert set(response.json()["data"]) == {"reviews", "users", "books"}
        db_session.refresh(sample_review)
        assert sample_review.likes_count == 0


# =============================================================================
# Tags / Health
# =============================================================================


class TestTags:
    def test_default_tags_are_idempotent(self, db_session: Session):
        first = ensure_default_tags(db_session)
        second = ensure_default_tags(db_session)

        assert first > 0
        assert second == 0

    def test_list_tags(self, client: TestClient, db_session: Session, sample_tag: Tag):
        sample_tag.usage_count = 3
        db_session.add(Tag(name="Poetry", color="#6f42c1"))
        db_session.commit()

        response = client.get("/api/v1/tags")

        assert response.status_code == status.HTTP_200_OK
        names = [tag["name"] for tag in response.json()["data"]]
        assert names == ["Fiction", "Poetry"]


class TestHealth:
    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert body["data"]["database"] == "connected"

    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.json()["data"]["api"] == "/api/v1"

    def test_unknown_route_uses_envelope(self, client: TestClient):
        response = client.get("/api/v1/nothing-here")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["success"] is False

    def test_startup_is_quiet_without_schema(self, caplog):
        with caplog.at_level(logging.WARNING):
            with TestClient(app):
                pass

        assert not [r for r in caplog.records if "Could not create default tags" in r.getMessage()]
