"""
Tests for the Authorization Gate

can_perform() is pure, so these tests use lightweight stand-ins instead of
database rows. Book checks use real (transient) Book instances because the
gate recognises books by type.
"""

from types import SimpleNamespace

import pytest

from bookreviewer.exceptions import ForbiddenError, UnauthenticatedError
from bookreviewer.models import Book
from bookreviewer.services.permissions import (
    ACCESS_DENIED,
    INSUFFICIENT_PERMISSIONS,
    NOT_AUTHENTICATED,
    Action,
    can_perform,
    ensure_allowed,
)

OWNER = SimpleNamespace(id=1, role="user")
STRANGER = SimpleNamespace(id=2, role="user")
ADMIN = SimpleNamespace(id=3, role="admin")


def review(status: str = "approved", user_id: int = OWNER.id) -> SimpleNamespace:
    return SimpleNamespace(id=10, user_id=user_id, status=status)


# =============================================================================
# Owned Content
# =============================================================================


class TestOwnedContent:
    @pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
    def test_owner_allowed(self, action):
        assert can_perform(OWNER, action, review()).allowed

    @pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
    def test_admin_allowed(self, action):
        assert can_perform(ADMIN, action, review()).allowed

    @pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
    def test_stranger_denied(self, action):
        decision = can_perform(STRANGER, action, review())
        assert not decision.allowed
        assert decision.reason == ACCESS_DENIED

    def test_anonymous_denied_as_unauthenticated(self):
        decision = can_perform(None, Action.DELETE, review())
        assert decision.reason == NOT_AUTHENTICATED


# =============================================================================
# Reading
# =============================================================================


class TestReading:
    def test_anyone_reads_approved(self):
        assert can_perform(None, Action.READ, review()).allowed
        assert can_perform(STRANGER, Action.READ, review()).allowed

    @pytest.mark.parametrize("status", ["pending", "rejected", "hidden"])
    def test_non_approved_visible_to_owner_and_admin(self, status):
        assert can_perform(OWNER, Action.READ, review(status)).allowed
        assert can_perform(ADMIN, Action.READ, review(status)).allowed

    def test_non_approved_hidden_from_stranger(self):
        decision = can_perform(STRANGER, Action.READ, review("hidden"))
        assert decision.reason == ACCESS_DENIED

    def test_non_approved_hidden_from_anonymous(self):
        decision = can_perform(None, Action.READ, review("pending"))
        assert decision.reason == NOT_AUTHENTICATED


# =============================================================================
# Books
# =============================================================================


class TestBooks:
    def test_any_user_can_create(self):
        assert can_perform(STRANGER, Action.CREATE, Book).allowed

    def test_anonymous_cannot_create(self):
        assert can_perform(None, Action.CREATE, Book).reason == NOT_AUTHENTICATED

    def test_any_user_can_update(self):
        book = Book(title="Dune", author="Frank Herbert")
        assert can_perform(STRANGER, Action.UPDATE, book).allowed

    def test_only_admin_deletes(self):
        book = Book(title="Dune", author="Frank Herbert")
        assert can_perform(ADMIN, Action.DELETE, book).allowed
        decision = can_perform(STRANGER, Action.DELETE, book)
        assert decision.reason == INSUFFICIENT_PERMISSIONS

    def test_books_are_public(self):
        book = Book(title="Dune", author="Frank Herbert")
        assert can_perform(None, Action.READ, book).allowed


# =============================================================================
# Moderation and ensure_allowed
# =============================================================================


class TestModeration:
    def test_admin_only(self):
        assert can_perform(ADMIN, Action.MODERATE, review()).allowed
        # Owning the resource does not help
        assert can_perform(OWNER, Action.MODERATE, review()).reason == INSUFFICIENT_PERMISSIONS
        assert can_perform(None, Action.MODERATE, review()).reason == NOT_AUTHENTICATED

    def test_ensure_allowed_raises_401_for_anonymous(self):
        with pytest.raises(UnauthenticatedError) as exc_info:
            ensure_allowed(None, Action.UPDATE, review())
        assert exc_info.value.code == NOT_AUTHENTICATED
        assert exc_info.value.status_code == 401

    def test_ensure_allowed_raises_403_with_custom_message(self):
        with pytest.raises(ForbiddenError) as exc_info:
            ensure_allowed(STRANGER, Action.UPDATE, review(), "Not yours")
        assert exc_info.value.code == ACCESS_DENIED
        assert exc_info.value.message == "Not yours"

    def test_ensure_allowed_passes(self):
        ensure_allowed(OWNER, Action.UPDATE, review())
