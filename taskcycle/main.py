from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskcycle.core import settings, setup_logging, get_logger
from taskcycle.exceptions import AppException, app_exception_handler, general_exception_handler
from taskcycle.api.v1 import api_router
from taskcycle.db import Base, engine
from taskcycle import testing

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    logger.info(f"Starting up {settings.api_title} (timezone {settings.timezone})")

    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.api_title}")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description=settings.api_description,
        lifespan=lifespan
    )

    cors_origins = settings.cors_origins

    if settings.environment == "production" and "*" in cors_origins:
        logger.warning("Production environment allows every origin; set CORS_ORIGINS")

    logger.info(f"CORS allowed origins: {cors_origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include API routes
    app.include_router(api_router)

    # Test-mode dependency overrides: isolated database file
    if testing.is_test_mode():
        testing.configure_test_overrides(app)
        logger.info("Test mode: using isolated test database")

    @app.get("/")
    async def root():
        """Root endpoint for basic health check."""
        return {"status": "ok", "message": f"{settings.api_title} is running"}

    @app.get("/healthz")
    async def healthz():
        """Production health check endpoint."""
        return {"status": "ok"}

    return app


# Create the app instance
app = create_app()
