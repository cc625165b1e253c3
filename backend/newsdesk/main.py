from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional
from sqlalchemy.engine import Engine
from slowapi.middleware import SlowAPIMiddleware
import logging

import newsdesk.models  # noqa: F401  registers every table on Base.metadata
from newsdesk.core.access import AccessPolicy
from newsdesk.core.auth import TokenService
from newsdesk.core.config import Settings
from newsdesk.core.database import Base, build_engine, build_session_factory
from newsdesk.core.errors import register_exception_handlers
from newsdesk.core.logging_config import (
    setup_logging,
    CorrelationIdMiddleware,
    log_security_event,
)
from newsdesk.core.rate_limit import configure_limiter
from newsdesk.api.endpoints import articles, auth, categories, comments, media
from newsdesk.services.file_storage import FileStorage

logger = logging.getLogger(__name__)

APP_NAME = "Newsdesk"
APP_VERSION = "1.0.0"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        settings = self.settings

        # HTTP Strict Transport Security (HSTS)
        if settings.ENABLE_HSTS and settings.is_production:
            hsts_value = f"max-age={settings.HSTS_MAX_AGE}"
            if settings.HSTS_INCLUDE_SUBDOMAINS:
                hsts_value += "; includeSubDomains"
            if settings.HSTS_PRELOAD:
                hsts_value += "; preload"
            response.headers["Strict-Transport-Security"] = hsts_value

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # JSON API plus uploaded files; nothing here should run scripts
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; img-src 'self'; frame-ancestors 'none';"
        )
        response.headers["Permissions-Policy"] = (
            "geolocation=(), microphone=(), camera=(), payment=()"
        )

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    settings: Settings = app.state.settings

    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Starting {APP_NAME} application...")

    log_security_event(
        event_type="app.startup",
        message=f"{APP_NAME} application starting (production={settings.is_production})",
        event_category="system",
        production=settings.is_production,
        debug=settings.DEBUG,
        rate_limit_enabled=settings.RATE_LIMIT_ENABLED,
    )

    # Create database tables
    Base.metadata.create_all(bind=app.state.engine)
    logger.info("Database tables created")

    yield

    logger.info(f"Shutting down {APP_NAME} application...")
    if app.state.owns_engine:
        app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the application and everything it shares across requests.

    Args:
        settings: Configuration; read from the environment when omitted
        engine: Existing SQLAlchemy engine; built from settings when omitted

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title=f"{APP_NAME} - News Portal API",
        description="Articles, categories, threaded comments and media for a news site",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.owns_engine = engine is None
    app.state.engine = engine if engine is not None else build_engine(
        settings.SQLALCHEMY_DATABASE_URI
    )
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.token_service = TokenService(
        settings.SECRET_KEY,
        lifetime=timedelta(hours=settings.TOKEN_EXPIRE_HOURS),
        algorithm=settings.TOKEN_ALGORITHM,
    )
    app.state.access_policy = AccessPolicy()
    app.state.file_storage = FileStorage(
        settings.MEDIA_ROOT,
        url_prefix=settings.MEDIA_URL_PREFIX,
        max_size=settings.MAX_UPLOAD_SIZE,
        allowed_types=settings.ALLOWED_UPLOAD_TYPES,
    )

    # Add rate limiting
    app.state.limiter = configure_limiter(settings)
    app.add_middleware(SlowAPIMiddleware)

    # Add security headers middleware
    app.add_middleware(SecurityHeadersMiddleware, settings=settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Added last so it runs first and every log line carries the correlation ID
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(articles.router, prefix="/api/articles", tags=["articles"])
    app.include_router(comments.router, prefix="/api/comments", tags=["comments"])
    app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
    app.include_router(media.router, prefix="/api/media", tags=["media"])

    # Serve uploaded files
    app.mount(
        settings.MEDIA_URL_PREFIX.rstrip("/"),
        StaticFiles(directory=str(app.state.file_storage.root)),
        name="uploads",
    )

    @app.get("/")
    def root():
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "description": "News portal API",
        }

    @app.get("/health")
    def health_check():
        return {"status": "healthy"}

    return app
