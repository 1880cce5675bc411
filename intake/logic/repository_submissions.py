"""Form submission data access helpers.

One submission exists per (form, user). It is created lazily on the first
read or save and moves from IN_PROGRESS to SUBMITTED exactly once.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from intake.db.base import get_engine

logger = logging.getLogger(__name__)

STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_SUBMITTED = "SUBMITTED"

_COLUMNS = "id, form_id, user_id, status, current_page_id, last_saved_at, submitted_at, created_at"


def format_timestamp(dt: datetime | None = None) -> str:
    """Format an RFC3339 UTC timestamp with trailing 'Z'."""
    base = (dt or datetime.now(timezone.utc)).isoformat(timespec="seconds")
    return base.replace("+00:00", "Z")


def _row_to_dict(row: Any) -> Dict[str, Any]:
    return {k: (str(v) if v is not None else None) for k, v in row._mapping.items()}


def get_submission(form_id: str, user_id: str, conn: Connection | None = None) -> Optional[Dict[str, Any]]:
    query = sql_text(f"SELECT {_COLUMNS} FROM form_submissions WHERE form_id = :fid AND user_id = :uid")
    params = {"fid": form_id, "uid": user_id}
    if conn is not None:
        row = conn.execute(query, params).fetchone()
    else:
        with get_engine().connect() as c:
            row = c.execute(query, params).fetchone()
    return _row_to_dict(row) if row else None


def get_or_create_submission(form_id: str, user_id: str) -> Dict[str, Any]:
    """Return the user's submission for the form, creating it when missing."""
    existing = get_submission(form_id, user_id)
    if existing is not None:
        return existing
    try:
        with get_engine().begin() as conn:
            conn.execute(
                sql_text(
                    "INSERT INTO form_submissions (id, form_id, user_id, status, created_at)"
                    " VALUES (:id, :fid, :uid, :status, :created)"
                ),
                {
                    "id": str(uuid.uuid4()),
                    "fid": form_id,
                    "uid": user_id,
                    "status": STATUS_IN_PROGRESS,
                    "created": format_timestamp(),
                },
            )
        logger.info("submission_created form_id=%s", form_id)
    except IntegrityError:
        # Concurrent first request for the same user created it already
        logger.info("submission_create_raced form_id=%s", form_id)
    created = get_submission(form_id, user_id)
    if created is None:  # pragma: no cover - insert just succeeded or raced
        raise RuntimeError("submission row missing after create")
    return created


def touch_submission(conn: Connection, submission_id: str, page_id: str) -> str:
    """Record the page last saved and when; returns the timestamp."""
    now = format_timestamp()
    conn.execute(
        sql_text(
            "UPDATE form_submissions SET last_saved_at = :now, current_page_id = :pid WHERE id = :sid"
        ),
        {"now": now, "pid": page_id, "sid": submission_id},
    )
    return now


def mark_submitted(submission_id: str) -> str:
    """Set status SUBMITTED; keeps the first submitted_at on repeat calls."""
    with get_engine().begin() as conn:
        row = conn.execute(
            sql_text("SELECT status, submitted_at FROM form_submissions WHERE id = :sid"),
            {"sid": submission_id},
        ).fetchone()
        if row is None:
            raise LookupError(f"submission {submission_id} not found")
        if row[0] == STATUS_SUBMITTED and row[1]:
            return str(row[1])
        now = format_timestamp()
        conn.execute(
            sql_text("UPDATE form_submissions SET status = :status, submitted_at = :now WHERE id = :sid"),
            {"status": STATUS_SUBMITTED, "now": now, "sid": submission_id},
        )
    return now


__all__ = [
    "STATUS_IN_PROGRESS",
    "STATUS_SUBMITTED",
    "format_timestamp",
    "get_submission",
    "get_or_create_submission",
    "touch_submission",
    "mark_submitted",
]
