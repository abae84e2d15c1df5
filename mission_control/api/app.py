"""FastAPI server for Mission Control"""

from __future__ import annotations

import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mission_control.api.middleware.security_headers import SecurityHeadersMiddleware
from mission_control.api.middleware.user_auth import AuthProviderClient
from mission_control.api.routes.blockers import router as blockers_router
from mission_control.api.routes.change_requests import router as change_requests_router
from mission_control.api.routes.client_portal import router as client_portal_router
from mission_control.api.routes.clients import router as clients_router
from mission_control.api.routes.events import router as events_router
from mission_control.api.routes.health import router as health_router
from mission_control.api.routes.me import router as me_router
from mission_control.api.routes.modules import router as modules_router
from mission_control.api.routes.projects import router as projects_router
from mission_control.api.routes.summary import router as summary_router
from mission_control.api.routes.tasks import router as tasks_router
from mission_control.config import (
    ALLOWED_ORIGINS,
    API_HOST,
    API_PORT,
    APP_VERSION,
    DB_PATH,
    DEV_ORIGINS,
    is_development,
)
from mission_control.errors import MissionControlError
from mission_control.infrastructure.database import Database
from mission_control.llm.gemini import (
    GeminiInitializationError,
    SummaryGenerator,
    create_summary_generator,
)
from mission_control.llm.prompts import get_health_system_prompt
from mission_control.observability.logging import get_logger
from mission_control.observability.telemetry import counter, log_event
from mission_control.projects.summary import SummaryService
from mission_control.utils.redaction import redact

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


def _build_summary_generator() -> SummaryGenerator | None:
    """Gemini generator, or None when no credentials/SDK are available."""
    try:
        return create_summary_generator(get_health_system_prompt())
    except GeminiInitializationError as e:
        logger.warning("AI summaries disabled: %s", e)
        return None


def _open_database(db_path: Path) -> Database:
    try:
        logger.info("Initializing database schema...")
        db = Database(db_path)
        db.init_schema()
        db.validate_schema()
        logger.info("Database initialization complete")
        return db
    except sqlite3.OperationalError as e:
        logger.critical("Database schema error: %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(MissionControlError)
    async def mission_control_error_handler(
        request: Request, exc: MissionControlError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """
        Missing/empty required fields and unknown enum values become a 400.

        Side Effects:
            - Logs validation errors (query string redacted)
            - Increments validation error counter
        """
        logger.warning(
            "Validation error on %s (query %s): %s",
            request.url.path,
            redact(request.url.query),
            exc.errors(),
        )
        counter("api.validation_errors")

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid request",
                "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
            },
        )


def create_app(
    db_path: Path | None = None,
    summary_generator: SummaryGenerator | None = None,
    auth: AuthProviderClient | None = None,
) -> FastAPI:
    """
    Build the Mission Control API.

    The database handle, summary service and auth client are created once in
    the lifespan and stored on ``app.state``.

    Args:
        db_path: SQLite file (defaults to MC_DB_PATH)
        summary_generator: Summary model; built from Gemini settings when None
        auth: Auth provider client; built from MC_AUTH_* settings when None
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        db = _open_database(db_path or DB_PATH)
        generator = summary_generator or _build_summary_generator()

        app.state.db = db
        app.state.summary_service = SummaryService(db, generator)
        app.state.auth = auth or AuthProviderClient()

        log_event("api.startup", service="mission-control", version=APP_VERSION)
        try:
            yield
        finally:
            db.close()

    app = FastAPI(title="Mission Control API", version=APP_VERSION, lifespan=lifespan)
    _register_exception_handlers(app)

    origins = list(ALLOWED_ORIGINS)
    if is_development():
        origins.extend(DEV_ORIGINS)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    app.include_router(health_router)
    app.include_router(me_router)
    app.include_router(projects_router)
    app.include_router(modules_router)
    app.include_router(tasks_router)
    app.include_router(blockers_router)
    app.include_router(change_requests_router)
    app.include_router(clients_router)
    app.include_router(events_router)
    app.include_router(client_portal_router)
    app.include_router(summary_router)

    @app.get("/")
    def root() -> dict[str, Any]:
        return {
            "service": "Mission Control API",
            "version": APP_VERSION,
            "status": "running",
        }

    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run("mission_control.api.app:app", host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
