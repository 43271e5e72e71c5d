"""
API Routers Package

Each module groups the endpoints of one resource; all of them are mounted
under /api/v1 in main.py.

Router Structure:
- auth.py: /auth/* (registration, login, own account)
- books.py: /books/*
- reviews.py: /reviews/* (including moderation and view tracking)
- likes.py: /likes/*
- favorites.py: /favorites/*
- comments.py: /comments/*
- profile.py: /profile/* (privacy-filtered profiles)
- tags.py: /tags
- admin.py: /admin/* (moderation tools)
"""

from bookreviewer.routers.admin import router as admin_router
from bookreviewer.routers.auth import router as auth_router
from bookreviewer.routers.books import router as books_router
from bookreviewer.routers.comments import router as comments_router
from bookreviewer.routers.favorites import router as favorites_router
from bookreviewer.routers.likes import router as likes_router
from bookreviewer.routers.profile import router as profile_router
from bookreviewer.routers.reviews import router as reviews_router
from bookreviewer.routers.tags import router as tags_router

__all__ = [
    "auth_router",
    "books_router",
    "reviews_router",
    "likes_router",
    "favorites_router",
    "comments_router",
    "profile_router",
    "tags_router",
    "admin_router",
]
