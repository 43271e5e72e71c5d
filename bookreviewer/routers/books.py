"""
Books Router

Catalogue endpoints:
- GET    /books               list (paginated, optional ?q= filter)
- GET    /books/search        title/author search
- GET    /books/{id}          single book with its rating aggregates
- GET    /books/{id}/reviews  approved reviews of a book plus rating stats
- POST   /books               add a book (any signed-in user)
- PUT    /books/{id}          edit a book (any signed-in user)
- DELETE /books/{id}          hard delete with all reviews (admin)

Route order matters: /books/search is declared before /books/{book_id}.
"""

import logging

from fastapi import APIRouter, Query, Request, status

from bookreviewer.config import get_settings
from bookreviewer.dependencies import CurrentUser, DbSession, Pagination
from bookreviewer.schemas.book import BookCreate, BookDeleted, BookResponse, BookUpdate
from bookreviewer.schemas.common import APIResponse, Page, PaginationMeta, ok
from bookreviewer.schemas.review import ReviewResponse, ReviewSort
from bookreviewer.services import books as book_service
from bookreviewer.services import reviews as review_service
from bookreviewer.services.rate_limiter import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={404: {"description": "Book not found"}},
)


def _book_page(db, pagination, q: str | None) -> dict:
    books, total = book_service.list_books(db, skip=pagination.skip, limit=pagination.limit, q=q)
    return {
        "items": [BookResponse.model_validate(book) for book in books],
        "pagination": PaginationMeta.build(pagination.page, pagination.limit, total),
    }


@router.get(
    "",
    response_model=APIResponse[Page[BookResponse]],
    summary="List books",
)
def list_books(
    db: DbSession,
    pagination: Pagination,
    q: str | None = Query(default=None, max_length=100, description="Title or author filter"),
) -> dict:
    return ok(_book_page(db, pagination, q))


@router.get(
    "/search",
    response_model=APIResponse[Page[BookResponse]],
    summary="Search books",
    description="Case-insensitive substring match on title or author.",
)
def search_books(
    db: DbSession,
    pagination: Pagination,
    q: str = Query(..., min_length=1, max_length=100),
) -> dict:
    return ok(_book_page(db, pagination, q))


@router.get(
    "/{book_id}",
    response_model=APIResponse[BookResponse],
    summary="Get a book",
)
def get_book(book_id: int, db: DbSession) -> dict:
    return ok(BookResponse.model_validate(book_service.get_book(db, book_id)))


@router.get(
    "/{book_id}/reviews",
    summary="Approved reviews of a book",
    description="Paginated approved reviews plus the book's rating distribution.",
)
def list_book_reviews(
    book_id: int,
    db: DbSession,
    pagination: Pagination,
    sort: ReviewSort = Query(default="hot"),
) -> dict:
    book = book_service.get_book(db, book_id)
    reviews, total = review_service.list_reviews(
        db,
        None,
        skip=pagination.skip,
        limit=pagination.limit,
        book_id=book.id,
        sort=sort,
    )
    data = {
        "book": BookResponse.model_validate(book).model_dump(mode="json"),
        "stats": review_service.book_rating_stats(db, book.id),
        "items": [ReviewResponse.model_validate(review).model_dump(mode="json") for review in reviews],
        "pagination": PaginationMeta.build(pagination.page, pagination.limit, total).model_dump(),
    }
    return ok(data)


@router.post(
    "",
    response_model=APIResponse[BookResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add a book",
    responses={409: {"description": "Book already exists"}},
)
@limiter.limit(settings.rate_limit_write)
def create_book(
    request: Request,
    payload: BookCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    book = book_service.create_book(db, current_user, payload.model_dump())
    return ok(BookResponse.model_validate(book), "Book created")


@router.put(
    "/{book_id}",
    response_model=APIResponse[BookResponse],
    summary="Update a book",
)
def update_book(
    book_id: int,
    payload: BookUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    book = book_service.update_book(db, current_user, book_id, payload.model_dump())
    return ok(BookResponse.model_validate(book), "Book updated")


@router.delete(
    "/{book_id}",
    response_model=APIResponse[BookDeleted],
    summary="Delete a book",
    description="Removes the book with every review, like, favorite and comment under it.",
)
def delete_book(book_id: int, current_user: CurrentUser, db: DbSession) -> dict:
    deleted_reviews = book_service.delete_book(db, current_user, book_id)
    return ok({"book_id": book_id, "deleted_reviews": deleted_reviews}, "Book deleted")
