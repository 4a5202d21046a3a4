from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from sqlalchemy import text
from sqlalchemy.exc import OperationalError as SAOperationalError

from api.router import api_router
from api.routes import dev
from core.config import settings
from core.database import DatabaseUnavailableError, ENGINE, is_transient_db_connectivity_error
from core.logging import setup_logging
from services.row_store import NotFoundError, StorageFailure
from services.timetable_grid import GridFormatError, InvalidAssignment


logger = logging.getLogger(__name__)


def _db_error_response(exc: BaseException) -> JSONResponse:
    if is_transient_db_connectivity_error(exc):
        return JSONResponse(
            status_code=503,
            content={
                "code": "DATABASE_UNAVAILABLE",
                "message": "Database temporarily unavailable. Please retry.",
            },
        )
    return JSONResponse(
        status_code=500,
        content={
            "code": "DATABASE_ERROR",
            "message": "Database operation failed.",
        },
    )


def create_app() -> FastAPI:
    setup_logging(settings)
    is_production = settings.is_production
    app = FastAPI(
        title="School Timetable API",
        version="0.1.0",
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
    )

    @app.exception_handler(DatabaseUnavailableError)
    def _db_unavailable(_request, _exc: DatabaseUnavailableError):
        logger.warning("Database unavailable (503)", exc_info=_exc)
        return JSONResponse(
            status_code=503,
            content={
                "code": "DATABASE_UNAVAILABLE",
                "message": "Database temporarily unavailable. Please retry.",
            },
        )

    @app.exception_handler(SAOperationalError)
    def _sqlalchemy_operational_error(_request, exc: SAOperationalError):
        logger.warning("Database operational error", exc_info=exc)
        return _db_error_response(exc)

    @app.exception_handler(StorageFailure)
    def _storage_failure(_request, exc: StorageFailure):
        # Surfaced as-is; the client keeps its unsaved grid and may retry.
        logger.warning("Storage failure during %s on %s", exc.operation, exc.table, exc_info=exc)
        return _db_error_response(exc)

    @app.exception_handler(NotFoundError)
    def _not_found(_request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"code": "NOT_FOUND", "message": str(exc)})

    @app.exception_handler(GridFormatError)
    def _grid_format(_request, exc: GridFormatError):
        return JSONResponse(
            status_code=422,
            content={"code": "INVALID_SCHEDULE_FORMAT", "message": str(exc)},
        )

    @app.exception_handler(InvalidAssignment)
    def _invalid_assignment(_request, exc: InvalidAssignment):
        return JSONResponse(
            status_code=422,
            content={"code": "INVALID_ASSIGNMENT", "errors": [exc.as_dict()]},
        )

    allow_origins = [settings.frontend_origin]
    allow_origin_regex = None
    if not is_production:
        # Dev-friendly: allow the configured origin and any localhost port.
        allow_origins.extend(["http://localhost:3000", "http://127.0.0.1:3000"])
        allow_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_origin_regex=allow_origin_regex,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict:
        # Always respond; reflect DB availability without crashing.
        db_status = "ok"
        try:
            with ENGINE.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            db_status = "down"

        return {"app": "ok", "database": db_status}

    app.include_router(api_router, prefix="/api")
    if not is_production:
        app.include_router(dev.router, prefix="/api/dev", tags=["dev"])
    return app


app = create_app()
