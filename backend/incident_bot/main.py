"""
Main Application Entry Point
============================

Responsibilities:
- Initialize the FastAPI application
- Build and tear down shared state (clients, throttle, pools)
- Register routers and exception handlers
- Provide health check endpoints

IMPORTANT:
    Database tables are managed via Alembic migrations.
    Do NOT use Base.metadata.create_all() in production.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from incident_bot.app_state import AppState, build_app_state
from incident_bot.core.config import get_settings
from incident_bot.core.exceptions import ConfigurationError, IncidentBotError
from incident_bot.core.logging import configure_logging, get_logger
from incident_bot.db.session import SessionLocal, check_database_connection
from incident_bot.middleware.request_context import RequestContextMiddleware

# Import models so they register with the metadata
from incident_bot import models  # noqa: F401
from incident_bot.routes import admin_routes, slack_routes

logger = get_logger(__name__)


def create_app(app_state: Optional[AppState] = None) -> FastAPI:
    """
    Build the application.

    Args:
        app_state: Prebuilt state; when omitted, state is built from
            settings at startup and startup fails on missing configuration.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()

        state = app_state
        if state is None:
            problems = settings.startup_problems()
            if problems:
                logger.critical("invalid_configuration", problems=problems)
                raise ConfigurationError(problems)
            state = build_app_state(settings, SessionLocal)

        app.state.incident_bot = state
        state.dispatcher.start()

        logger.info(
            "application_started",
            app_name=settings.APP_NAME,
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
            statuspage_enabled=state.statuspage is not None,
        )

        try:
            yield
        finally:
            state.shutdown()
            logger.info("application_stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Slack incident management bot.",
        version=settings.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
    )

    app.add_middleware(RequestContextMiddleware)

    # =====================================
    # Exception Handlers
    # =====================================

    @app.exception_handler(IncidentBotError)
    async def incident_bot_exception_handler(request: Request, exc: IncidentBotError):
        logger.warning(
            "request_failed",
            exception_type=type(exc).__name__,
            error=exc.message,
            status_code=exc.status_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "details": exc.details},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        logger.warning("request_validation_error", path=request.url.path, errors=errors)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "Validation error", "details": {"errors": errors}},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            exception_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
            exc_info=True,
        )
        if settings.ENVIRONMENT == "production":
            content = {"error": "An unexpected error occurred", "details": {}}
        else:
            content = {"error": str(exc), "details": {"type": type(exc).__name__}}
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)

    # =====================================
    # Routers
    # =====================================

    app.include_router(slack_routes.router)
    app.include_router(admin_routes.router)

    # =====================================
    # Health Check Endpoints
    # =====================================

    @app.get("/health", tags=["Health"], summary="Liveness check")
    def health_check():
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    @app.get("/ready", tags=["Health"], summary="Readiness check")
    def readiness_check():
        if not check_database_connection():
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "not_ready", "reason": "database_unavailable"},
            )
        return {"status": "ready"}

    return app


app = create_app()
