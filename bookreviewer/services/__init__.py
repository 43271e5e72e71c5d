"""
Services Package

Business rules live here, separate from HTTP handling. Services take a
Session and an actor, raise bookreviewer.exceptions errors, and commit once
per logical write.

Current services:
- permissions.py: authorization gate (can_perform / ensure_allowed)
- counters.py: denormalized counter hooks and reconciliation
- deletion.py: per-entity soft/hard delete policy
- audit.py: SystemLog writer
- security.py: password hashing and the credential verifier
- rate_limiter.py: slowapi route limits and the injectable RateLimiter
- auth.py: registration, login and account self-service
- books.py, reviews.py, tags.py: catalogue and reviews
- likes.py, favorites.py, comments.py, views.py: engagement
- privacy.py: privacy-resolved profiles
"""
