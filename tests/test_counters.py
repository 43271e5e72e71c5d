"""
Tests for Counter Maintenance

Exercises the services directly and checks that every denormalized counter
matches the detail rows after each mutation.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from bookreviewer.exceptions import ConflictError
from bookreviewer.models import Book, Review, ReviewLike, User
from bookreviewer.services import comments, counters, favorites, likes, reviews
from bookreviewer.services.security import create_user_token
from tests.conftest import make_user


def likes_rows(db: Session, review_id: int) -> int:
    return db.execute(
        select(func.count(ReviewLike.id)).where(ReviewLike.review_id == review_id)
    ).scalar()


class TestLikeCounters:
    def test_like_and_unlike_keep_counts_in_step(
        self, db_session: Session, sample_review: Review, sample_user: User, second_user: User
    ):
        likes.like_review(db_session, second_user, sample_review.id)
        db_session.refresh(sample_review)
        db_session.refresh(sample_user)

        assert sample_review.likes_count == 1 == likes_rows(db_session, sample_review.id)
        assert sample_user.total_likes_received == 1

        likes.unlike_review(db_session, second_user, sample_review.id)
        db_session.refresh(sample_review)
        db_session.refresh(sample_user)

        assert sample_review.likes_count == 0 == likes_rows(db_session, sample_review.id)
        assert sample_user.total_likes_received == 0


class TestReviewCounters:
    def test_create_updates_book_and_user(
        self, db_session: Session, sample_review: Review, sample_book: Book, sample_user: User
    ):
        db_session.refresh(sample_book)
        db_session.refresh(sample_user)
        assert sample_book.total_reviews == 1
        assert sample_book.average_rating == Decimal("4.00")
        assert sample_user.total_reviews == 1

    def test_average_over_approved_reviews(
        self, db_session: Session, sample_review: Review, sample_book: Book, second_user: User
    ):
        low = reviews.create_review(db_session, second_user, sample_book.id, "Meh", "Not for me.", 1)
        db_session.refresh(sample_book)
        assert sample_book.total_reviews == 2
        assert sample_book.average_rating == Decimal("2.50")

        # Hiding a review keeps the row but drops it from the average
        reviews.delete_review(db_session, second_user, low.id)
        db_session.refresh(sample_book)
        assert sample_book.total_reviews == 2
        assert sample_book.average_rating == Decimal("4.00")

    def test_rerate_recomputes_average(
        self, db_session: Session, sample_review: Review, sample_book: Book, sample_user: User
    ):
        reviews.update_review(db_session, sample_user, sample_review.id, {"rating": 2})
        db_session.refresh(sample_book)
        assert sample_book.average_rating == Decimal("2.00")

    def test_average_is_zero_without_approved_reviews(
        self, db_session: Session, sample_review: Review, sample_book: Book, sample_user: User
    ):
        reviews.delete_review(db_session, sample_user, sample_review.id)
        db_session.refresh(sample_book)
        assert sample_book.average_rating == Decimal("0.00")

    def test_hard_delete_rolls_back_all_counters(
        self,
        db_session: Session,
        sample_review: Review,
        sample_book: Book,
        sample_user: User,
        second_user: User,
        admin_user: User,
    ):
        review_id = sample_review.id
        likes.like_review(db_session, second_user, review_id)
        comments.create_comment(db_session, second_user, review_id, "Nice one")

        reviews.hard_delete_review(db_session, admin_user, review_id)

        db_session.refresh(sample_book)
        db_session.refresh(sample_user)
        assert sample_book.total_reviews == 0
        assert sample_book.average_rating == Decimal("0.00")
        assert sample_user.total_reviews == 0
        assert sample_user.total_likes_received == 0
        assert likes_rows(db_session, review_id) == 0


class TestCommentCounters:
    def test_comments_and_replies_count(
        self, db_session: Session, sample_review: Review, second_user: User, sample_user: User
    ):
        top = comments.create_comment(db_session, second_user, sample_review.id, "First!")
        reply = comments.reply_to_comment(db_session, sample_user, top["id"], "Thanks")
        db_session.refresh(sample_review)
        assert sample_review.comments_count == 2

        comments.delete_comment(db_session, sample_user, reply["id"])
        db_session.refresh(sample_review)
        assert sample_review.comments_count == 1


class TestReconcile:
    def test_repairs_drifted_counters(
        self,
        db_session: Session,
        sample_review: Review,
        sample_book: Book,
        sample_user: User,
        second_user: User,
    ):
        likes.like_review(db_session, second_user, sample_review.id)

        # Simulate drift from a manual edit
        db_session.execute(update(Review).values(likes_count=42, comments_count=7))
        db_session.execute(update(User).values(total_reviews=9, total_likes_received=9))
        db_session.execute(update(Book).values(total_reviews=5, average_rating=Decimal("1.00")))

        touched = counters.reconcile_counters(db_session)
        db_session.commit()

        assert touched["reviews"] >= 1
        db_session.refresh(sample_review)
        db_session.refresh(sample_user)
        db_session.refresh(second_user)
        db_session.refresh(sample_book)
        assert sample_review.likes_count == 1
        assert sample_review.comments_count == 0
        assert sample_user.total_reviews == 1
        assert sample_user.total_likes_received == 1
        assert second_user.total_reviews == 0
        assert sample_book.total_reviews == 1
        assert sample_book.average_rating == Decimal("4.00")

    def test_new_user_counters_start_at_zero(self, db_session: Session):
        user = make_user(db_session, "fresh")
        assert user.total_reviews == 0
        assert user.total_likes_received == 0


# =============================================================================
# Store-Level Backstop
# =============================================================================


class TestUniqueConstraintBackstop:
    """
    The friendly pre-checks can lose a race. With them switched off, the
    unique constraints still turn a duplicate into 409 and leave counters alone.
    """

    def test_duplicate_like(
        self,
        monkeypatch,
        db_session: Session,
        sample_review: Review,
        second_user: User,
    ):
        likes.like_review(db_session, second_user, sample_review.id)
        monkeypatch.setattr(likes, "_find_like", lambda db, user_id, review_id: None)

        with pytest.raises(ConflictError) as exc_info:
            likes.like_review(db_session, second_user, sample_review.id)

        assert exc_info.value.code == "ALREADY_LIKED"
        assert likes_rows(db_session, sample_review.id) == 1
        db_session.refresh(sample_review)
        assert sample_review.likes_count == 1

    def test_duplicate_favorite(
        self,
        monkeypatch,
        db_session: Session,
        sample_review: Review,
        second_user: User,
    ):
        favorites.favorite_review(db_session, second_user, sample_review.id)
        monkeypatch.setattr(favorites, "_find_favorite", lambda db, user_id, review_id: None)

        with pytest.raises(ConflictError) as exc_info:
            favorites.favorite_review(db_session, second_user, sample_review.id)

        assert exc_info.value.code == "ALREADY_FAVORITED"
        assert favorites.favorites_count(db_session, sample_review.id) == 1

    def test_duplicate_review(
        self,
        monkeypatch,
        db_session: Session,
        sample_review: Review,
        sample_book: Book,
        sample_user: User,
    ):
        monkeypatch.setattr(reviews, "_find_existing_review", lambda db, user_id, book_id: None)

        with pytest.raises(ConflictError) as exc_info:
            reviews.create_review(db_session, sample_user, sample_book.id, "Again", "More", 1)

        assert exc_info.value.code == "REVIEW_EXISTS"
        db_session.refresh(sample_book)
        db_session.refresh(sample_user)
        assert sample_book.total_reviews == 1
        assert sample_book.average_rating == Decimal("4.00")
        assert sample_user.total_reviews == 1


class TestAtomicWrites:
    def test_failed_counter_update_discards_the_like(
        self,
        monkeypatch,
        db_session: Session,
        sample_review: Review,
        second_user: User,
    ):
        def broken_counter(db, review):
            raise OperationalError("UPDATE reviews", {}, Exception("disk I/O error"))

        monkeypatch.setattr(counters, "on_like_added", broken_counter)

        with pytest.raises(OperationalError):
            likes.like_review(db_session, second_user, sample_review.id)
        # What get_db does when a request fails
        db_session.rollback()

        assert likes_rows(db_session, sample_review.id) == 0
        db_session.refresh(sample_review)
        assert sample_review.likes_count == 0

    def test_failed_counter_update_discards_the_request(
        self,
        monkeypatch,
        client,
        db_session: Session,
        sample_review: Review,
        second_user: User,
    ):
        def broken_counter(db, review):
            raise OperationalError("UPDATE reviews", {}, Exception("disk I/O error"))

        monkeypatch.setattr(counters, "on_like_added", broken_counter)

        response = client.post(
            f"/api/v1/likes/reviews/{sample_review.id}",
            headers={"Authorization": f"Bearer {create_user_token(second_user)}"},
        )

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
        # Nothing was committed, so dropping the open work leaves no like behind
        db_session.rollback()
        assert likes_rows(db_session, sample_review.id) == 0
