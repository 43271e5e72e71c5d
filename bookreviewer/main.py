"""
FastAPI Application Entry Point

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a configured app, tests build their own instance

2. Lifespan Events
   - startup: log configuration, make sure the default tags exist
   - shutdown: dispose of the connection pool

3. Middleware Stack
   - SlowAPI: per-route rate limits
   - CORS: allow the configured frontends

4. Exception Handlers
   Every error leaves the API in the same envelope as successful answers:

       {"success": false, "message": "...", "code": "REVIEW_NOT_FOUND", "data": null}

   - AppError (service errors)        -> its own status and code
   - RequestValidationError           -> 400 VALIDATION_ERROR
   - HTTPException (404 routes, 405)  -> same status, generic code
   - SQLAlchemyError / anything else  -> 500, details only in debug mode
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookreviewer.config import get_settings
from bookreviewer.database import SessionLocal, engine
from bookreviewer.dependencies import DbSession
from bookreviewer.exceptions import AppError
from bookreviewer.routers import (
    admin_router,
    auth_router,
    books_router,
    comments_router,
    favorites_router,
    likes_router,
    profile_router,
    reviews_router,
    tags_router,
)
from bookreviewer.services.rate_limiter import limiter, rate_limit_exceeded_handler
from bookreviewer.services.tags import ensure_default_tags

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "NOT_AUTHENTICATED",
    403: "ACCESS_DENIED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMIT_EXCEEDED",
}


def error_response(
    status_code: int,
    message: str,
    code: str,
    data=None,
    headers: dict | None = None,
) -> JSONResponse:
    """Render an error in the standard envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "code": code, "data": data},
        headers=headers,
    )


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Code before yield runs on startup, code after yield on shutdown.
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.environment}, debug mode: {settings.debug}")
    logger.info(f"Rate limiting enabled: {settings.rate_limit_enabled}")

    db = SessionLocal()
    try:
        if inspect(db.get_bind()).has_table("tags"):
            ensure_default_tags(db)
        else:
            logger.info("Schema not migrated yet; skipping default tags")
    except SQLAlchemyError as exc:
        logger.warning(f"Could not create default tags: {exc}")
        db.rollback()
    finally:
        db.close()

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    engine.dispose()


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Book Reviewer API

Community book reviews.

### Features
- **Books**: catalogue with rating aggregates
- **Reviews**: one review per user per book, moderation, view tracking
- **Likes & Favorites**: per-review engagement with batch status lookups
- **Comments**: two-level comment threads with moderation
- **Profiles**: public profiles filtered by each user's privacy settings

### Authentication
Bearer tokens from `/api/v1/auth/login` (or `/api/v1/auth/token` for OAuth2 forms).

### Rate Limiting
Login and registration are limited per client IP. Write endpoints carry a
per-route limit.
        """,
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Service errors carry their own status, code and optional data."""
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.code} on {request.method} {request.url.path}")
        return error_response(exc.status_code, exc.message, exc.code, exc.data)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Malformed bodies, query strings and path parameters are 400s."""
        errors = jsonable_encoder(exc.errors())
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", [])[1:])
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
        return error_response(400, message, "VALIDATION_ERROR", {"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        return error_response(
            exc.status_code,
            str(exc.detail),
            code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Database errors are logged in full and reported generically.
        """
        logger.error(f"Database error: {exc}")
        message = str(exc) if settings.debug else "A database error occurred. Please try again later."
        return error_response(500, message, "INTERNAL_ERROR")

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        message = str(exc) if settings.debug else "An internal error occurred."
        return error_response(500, message, "INTERNAL_ERROR")

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    api_prefix = f"/api/{settings.api_version}"

    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(books_router, prefix=api_prefix)
    app.include_router(reviews_router, prefix=api_prefix)
    app.include_router(likes_router, prefix=api_prefix)
    app.include_router(favorites_router, prefix=api_prefix)
    app.include_router(comments_router, prefix=api_prefix)
    app.include_router(profile_router, prefix=api_prefix)
    app.include_router(tags_router, prefix=api_prefix)
    app.include_router(admin_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and the database is reachable.",
    )
    def health_check(db: DbSession) -> JSONResponse:
        """
        Used by load balancers, container probes and monitoring.

        Answers 503 when the database cannot be reached.
        """
        try:
            db.execute(text("SELECT 1"))
            database = "connected"
        except SQLAlchemyError as exc:
            logger.error(f"Health check database error: {exc}")
            database = "unavailable"

        healthy = database == "connected"
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "success": healthy,
                "message": "healthy" if healthy else "unhealthy",
                "data": {
                    "app": settings.app_name,
                    "version": settings.api_version,
                    "environment": settings.environment,
                    "database": database,
                    "rate_limiting": {
                        "enabled": settings.rate_limit_enabled,
                        "default_limit": settings.rate_limit_default,
                        "auth_limit": settings.auth_rate_limit,
                    },
                },
            },
        )

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and API information.",
    )
    def root() -> dict:
        return {
            "success": True,
            "message": f"Welcome to {settings.app_name}",
            "data": {
                "version": settings.api_version,
                "docs": "/docs",
                "health": "/health",
                "api": f"/api/{settings.api_version}",
            },
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# uvicorn bookreviewer.main:app
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bookreviewer.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
