"""Lightweight SQL migrations runner.

Applies .sql files in lexical order from the local `migrations/` directory.
Skips rollback files and records applied filenames in a `schema_migrations`
table so the same migration is never applied twice against one database.
Intended for local development and CI; production environments should use
Alembic or the platform's migration mechanism.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        if "rollback" in p.name.lower():
            continue
        yield p


def _exec_sql_compat(conn: Connection, sql: str) -> None:
    """Execute a multi-statement SQL file.

    SQLite's DB-API does not allow several statements in one execute()
    call, so statements are split on ';' and run one at a time on every
    dialect. Whole-line `--` comments are dropped before splitting, so they
    may contain `;`; statements must not contain `;` inside literals.
    """
    body = "\n".join(ln for ln in sql.splitlines() if not ln.strip().startswith("--"))
    for stmt in body.split(";"):
        s = stmt.strip()
        if not s or s.upper() in {"BEGIN", "COMMIT", "END"}:
            continue
        conn.exec_driver_sql(s)


def _applied(conn: Connection) -> set[str]:
    conn.exec_driver_sql(
        "CREATE TABLE IF NOT EXISTS schema_migrations ("
        " filename VARCHAR(255) PRIMARY KEY,"
        " applied_at VARCHAR(32) NOT NULL)"
    )
    rows = conn.execute(sql_text("SELECT filename FROM schema_migrations")).fetchall()
    return {str(r[0]) for r in rows}


def apply_migrations(engine: Engine, migrations_dir: str | os.PathLike[str] | None = None) -> list[str]:
    """Apply pending migrations; returns the filenames applied by this call."""
    root = Path(migrations_dir) if migrations_dir is not None else DEFAULT_MIGRATIONS_DIR
    if not root.exists():
        logger.warning("migrations_dir_missing path=%s", root)
        return []

    newly_applied: list[str] = []
    with engine.begin() as conn:
        applied = _applied(conn)
        for sql_path in _iter_sql_files(root):
            fname = sql_path.name
            if fname in applied:
                continue
            sql = sql_path.read_text(encoding="utf-8")
            if not sql.strip():
                continue
            _exec_sql_compat(conn, sql)
            conn.execute(
                sql_text("INSERT INTO schema_migrations (filename, applied_at) VALUES (:f, :t)"),
                {
                    "f": fname,
                    # ISO-8601 UTC without fractional seconds
                    "t": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
                },
            )
            newly_applied.append(fname)
            logger.info("migration_applied file=%s", fname)
    return newly_applied


__all__ = ["apply_migrations", "DEFAULT_MIGRATIONS_DIR"]
