"""Engine bootstrap and transaction scope for the response store.

Repositories speak SQL through SQLAlchemy Core connections; there are no
ORM sessions. SQLite serves development and the test suite, PostgreSQL
(via the `postgres` extra) serves production.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///:memory:"

_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def database_url() -> str:
    """Resolve the store URL; the test override wins over the service URL."""
    return os.getenv("TEST_DATABASE_URL") or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


def _engine_options(url: str) -> dict:
    options: dict = {"future": True, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        # TestClient and the startup hook run on worker threads
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            options["poolclass"] = StaticPool
    return options


def get_engine(url: str | None = None) -> Engine:
    """Return the process-wide Engine, rebuilding it when the URL changes."""
    global _ENGINE, _ENGINE_URL
    resolved = url or database_url()
    if _ENGINE is None or _ENGINE_URL != resolved:
        if _ENGINE is not None:
            _ENGINE.dispose()
        _ENGINE = create_engine(resolved, **_engine_options(resolved))
        _ENGINE_URL = resolved
        logger.info("db_engine_created dialect=%s", _ENGINE.dialect.name)
    return _ENGINE


def reset_engine() -> None:
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None


@contextmanager
def transaction() -> Iterator[Connection]:
    """Yield a connection inside one transaction.

    Commits when the block exits cleanly; any exception rolls the whole
    block back and propagates to the caller.
    """
    with get_engine().connect() as conn:
        trans = conn.begin()
        try:
            yield conn
        except Exception:
            trans.rollback()
            logger.error("db_transaction_rolled_back", exc_info=True)
            raise
        trans.commit()


__all__ = ["DEFAULT_DATABASE_URL", "database_url", "get_engine", "reset_engine", "transaction"]
