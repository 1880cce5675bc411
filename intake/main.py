from __future__ import annotations

import logging
import os
from typing import Callable

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from intake.config import AppConfig, load_config
from intake.db.base import get_engine
from intake.db.migrations_runner import apply_migrations
from intake.http.problem import (
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from intake.http.request_id import RequestIdMiddleware
from intake.logging_setup import configure_logging
from intake.routes import api_router

logger = logging.getLogger(__name__)


def _health_check() -> Callable[[], dict]:
    def check() -> dict:
        try:
            with get_engine().connect() as conn:
                conn.execute(sql_text("SELECT 1")).scalar()
            return {"status": "ok", "db": True}
        except SQLAlchemyError as e:
            logger.error("Health DB check failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": str(e)}

    return check


def _migrations_enabled() -> bool:
    return os.getenv("AUTO_APPLY_MIGRATIONS", "").strip().lower() in {"1", "true", "yes", "on"}


def create_app(config: AppConfig | None = None) -> FastAPI:
    configure_logging()
    cfg = config or load_config()
    if cfg.database.dsn and not os.getenv("DATABASE_URL") and not os.getenv("TEST_DATABASE_URL"):
        # The db layer reads the URL from the environment
        os.environ["DATABASE_URL"] = cfg.database.dsn

    app = FastAPI(title="Intake Questionnaire")
    app.state.config = cfg

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    # Apply migrations on startup (guarded) to avoid import-time side effects
    @app.on_event("startup")
    def _apply_migrations() -> None:
        if not _migrations_enabled():
            logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
            return
        try:
            applied = apply_migrations(get_engine())
        except SQLAlchemyError:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise
        logger.info("startup_migrations_applied count=%d", len(applied))

    app.include_router(api_router, prefix="/api/v1")

    health_check = _health_check()

    @app.get("/health")
    def health():
        return health_check()

    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
