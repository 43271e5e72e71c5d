"""
Test Suite for the Book Reviewer API

Test Organization:
- conftest.py: Shared fixtures (test database, client, sample data)
- test_permissions.py: authorization gate rules
- test_counters.py: counter maintenance and reconciliation
- test_auth.py, test_rate_limiter.py: credentials and throttling
- test_books.py, test_reviews.py: catalogue and reviews
- test_likes.py, test_favorites.py, test_comments.py, test_views.py: engagement
- test_profile.py: privacy resolver and profiles
- test_admin.py: moderation tools, tags and health

Running Tests:
    pytest
    pytest tests/test_likes.py
    pytest --cov=bookreviewer --cov-report=html
"""
