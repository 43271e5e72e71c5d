"""
Tests for Reviews

Business Rules:
- One review per user per book
- Reviews are approved on creation and count towards the book's average
- Only the author (or an admin) can edit or delete
- Deleting hides the review; hidden reviews are 404 for everyone else
- Moderation is admin only
"""

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from bookreviewer.models import Book, Review, User
from bookreviewer.services import favorites, likes
from bookreviewer.services import reviews as review_service
from bookreviewer.services.security import create_user_token


def get_auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


# =============================================================================
# Create
# =============================================================================


class TestCreateReview:
    """Tests for POST /api/v1/reviews"""

    def test_create_review(
        self, client: TestClient, sample_user: User, sample_book: Book, db_session: Session
    ):
        response = client.post(
            "/api/v1/reviews",
            json={
                "book_id": sample_book.id,
                "title": "Chilling",
                "content": "Still relevant.",
                "rating": 5,
            },
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert data["status"] == "approved"
        assert data["user"]["username"] == "testuser"
        assert data["book"]["title"] == "1984"
        assert data["likes_count"] == 0

        db_session.refresh(sample_book)
        assert sample_book.total_reviews == 1
        assert float(sample_book.average_rating) == 5.0

    def test_requires_auth(self, client: TestClient, sample_book: Book):
        response = client.post(
            "/api/v1/reviews",
            json={"book_id": sample_book.id, "title": "x", "content": "y", "rating": 3},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "NOT_AUTHENTICATED"

    def test_second_review_of_same_book(
        self, client: TestClient, sample_user: User, sample_review: Review
    ):
        response = client.post(
            "/api/v1/reviews",
            json={"book_id": sample_review.book_id, "title": "Again", "content": "More", "rating": 2},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "REVIEW_EXISTS"

    def test_hidden_review_still_blocks_a_new_one(
        self, client: TestClient, sample_user: User, sample_review: Review
    ):
        client.delete(f"/api/v1/reviews/{sample_review.id}", headers=get_auth_header(sample_user))

        response = client.post(
            "/api/v1/reviews",
            json={"book_id": sample_review.book_id, "title": "Again", "content": "More", "rating": 2},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_book_not_found(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/reviews",
            json={"book_id": 99999, "title": "x", "content": "y", "rating": 3},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == "BOOK_NOT_FOUND"

    def test_rating_out_of_range(self, client: TestClient, sample_user: User, sample_book: Book):
        response = client.post(
            "/api/v1/reviews",
            json={"book_id": sample_book.id, "title": "x", "content": "y", "rating": 6},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"


# =============================================================================
# Read
# =============================================================================


class TestReadReviews:
    def test_list_only_approved(
        self,
        client: TestClient,
        db_session: Session,
        sample_review: Review,
        sample_book: Book,
        second_user: User,
    ):
        hidden = review_service.create_review(
            db_session, second_user, sample_book.id, "Skip", "Skip it", 1
        )
        review_service.delete_review(db_session, second_user, hidden.id)

        response = client.get("/api/v1/reviews")

        data = response.json()["data"]
        assert [item["id"] for item in data["items"]] == [sample_review.id]
        assert data["pagination"]["total"] == 1

    def test_list_by_book_and_sort(
        self,
        client: TestClient,
        db_session: Session,
        sample_review: Review,
        sample_book: Book,
        second_user: User,
    ):
        top = review_service.create_review(
            db_session, second_user, sample_book.id, "Best", "Loved it", 5
        )

        response = client.get(f"/api/v1/reviews?book_id={sample_book.id}&sort=rating_high")

        ids = [item["id"] for item in response.json()["data"]["items"]]
        assert ids == [top.id, sample_review.id]

    def test_stranger_cannot_list_hidden(self, client: TestClient, second_user: User):
        response = client.get(
            "/api/v1/reviews?status=hidden", headers=get_auth_header(second_user)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_author_lists_own_hidden(
        self, client: TestClient, sample_user: User, sample_review: Review
    ):
        headers = get_auth_header(sample_user)
        client.delete(f"/api/v1/reviews/{sample_review.id}", headers=headers)

        response = client.get(
            f"/api/v1/reviews?status=hidden&user_id={sample_user.id}", headers=headers
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["items"][0]["id"] == sample_review.id

    def test_detail_anonymous(self, client: TestClient, sample_review: Review):
        response = client.get(f"/api/v1/reviews/{sample_review.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["title"] == "Great book!"
        assert data["user_interaction"] is None

    def test_detail_with_user_interaction(
        self,
        client: TestClient,
        db_session: Session,
        sample_review: Review,
        second_user: User,
    ):
        likes.like_review(db_session, second_user, sample_review.id)
        favorites.favorite_review(db_session, second_user, sample_review.id)

        response = client.get(
            f"/api/v1/reviews/{sample_review.id}", headers=get_auth_header(second_user)
        )

        data = response.json()["data"]
        assert data["likes_count"] == 1
        assert data["user_interaction"] == {"is_liked": True, "is_favorited": True}

    def test_hidden_review_is_404_for_strangers(
        self,
        client: TestClient,
        sample_user: User,
        second_user: User,
        admin_user: User,
        sample_review: Review,
    ):
        client.delete(f"/api/v1/reviews/{sample_review.id}", headers=get_auth_header(sample_user))
        url = f"/api/v1/reviews/{sample_review.id}"

        assert client.get(url).status_code == status.HTTP_404_NOT_FOUND
        assert client.get(url, headers=get_auth_header(second_user)).status_code == 404
        assert client.get(url, headers=get_auth_header(sample_user)).status_code == 200
        assert client.get(url, headers=get_auth_header(admin_user)).status_code == 200

    def test_not_found(self, client: TestClient):
        response = client.get("/api/v1/reviews/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == "REVIEW_NOT_FOUND"


# =============================================================================
# Update / Delete
# =============================================================================


class TestUpdateReview:
    """Tests for PUT /api/v1/reviews/{id}"""

    def test_author_updates(
        self, client: TestClient, db_session: Session, sample_user: User, sample_review: Review
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 2, "title": "Second thoughts"},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["title"] == "Second thoughts"
        book = db_session.get(Book, sample_review.book_id)
        db_session.refresh(book)
        assert float(book.average_rating) == 2.0

    def test_other_user_denied(
        self, client: TestClient, second_user: User, sample_review: Review
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"title": "Hijacked"},
            headers=get_auth_header(second_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "ACCESS_DENIED"

    def test_admin_can_update(self, client: TestClient, admin_user: User, sample_review: Review):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"content": "Edited for spoilers."},
            headers=get_auth_header(admin_user),
        )

        assert response.status_code == status.HTTP_200_OK

    def test_empty_update(self, client: TestClient, sample_user: User, sample_review: Review):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}", json={}, headers=get_auth_header(sample_user)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "NO_UPDATE_FIELDS"


class TestDeleteReview:
    """Tests for DELETE /api/v1/reviews/{id}"""

    def test_delete_hides(
        self,
        client: TestClient,
        db_session: Session,
        sample_user: User,
        second_user: User,
        sample_review: Review,
    ):
        likes.like_review(db_session, second_user, sample_review.id)

        response = client.delete(
            f"/api/v1/reviews/{sample_review.id}", headers=get_auth_header(sample_user)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Review deleted"
        db_session.refresh(sample_review)
        assert sample_review.status == "hidden"
        # Likes on a hidden review are kept
        assert sample_review.likes_count == 1

    def test_other_user_denied(
        self, client: TestClient, second_user: User, sample_review: Review
    ):
        response = client.delete(
            f"/api/v1/reviews/{sample_review.id}", headers=get_auth_header(second_user)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Moderation
# =============================================================================


class TestModerateReview:
    """Tests for PUT /api/v1/reviews/{id}/status"""

    def test_admin_rejects(
        self,
        client: TestClient,
        db_session: Session,
        admin_user: User,
        sample_review: Review,
        sample_book: Book,
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}/status",
            json={"status": "rejected", "admin_note": "Spoilers"},
            headers=get_auth_header(admin_user),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["status"] == "rejected"
        db_session.refresh(sample_book)
        assert float(sample_book.average_rating) == 0.0

    def test_author_cannot_moderate(
        self, client: TestClient, sample_user: User, sample_review: Review
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}/status",
            json={"status": "approved"},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "INSUFFICIENT_PERMISSIONS"

    def test_unknown_status(self, client: TestClient, admin_user: User, sample_review: Review):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}/status",
            json={"status": "deleted"},
            headers=get_auth_header(admin_user),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
