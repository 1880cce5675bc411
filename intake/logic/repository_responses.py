"""Response row data access helpers.

Reads and upserts `responses` rows as PersistedAnswer column sets. Every
upsert writes all value columns, so at most one stays populated.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import bindparam
from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from intake.db.base import get_engine
from intake.logic.dates import parse_calendar_date
from intake.logic.repository_submissions import format_timestamp
from intake.models.answer import PersistedAnswer

logger = logging.getLogger(__name__)

_SELECT = (
    "SELECT question_id, text_value, number_value, boolean_value, date_value, json_value, file_refs"
    " FROM responses WHERE submission_id = :sid"
)


def _loads(raw: Any, column: str, question_id: str) -> Any:
    if raw is None:
        return None
    if not isinstance(raw, (str, bytes, bytearray)):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        logger.error("responses_json_malformed question_id=%s column=%s", question_id, column)
        return None


def _row_to_persisted(row: Any) -> PersistedAnswer:
    m = row._mapping
    qid = str(m["question_id"])
    file_refs = _loads(m["file_refs"], "file_refs", qid)
    return PersistedAnswer(
        text_value=m["text_value"],
        number_value=float(m["number_value"]) if m["number_value"] is not None else None,
        boolean_value=bool(m["boolean_value"]) if m["boolean_value"] is not None else None,
        date_value=parse_calendar_date(m["date_value"]),
        json_value=_loads(m["json_value"], "json_value", qid),
        file_refs=file_refs if isinstance(file_refs, list) else None,
    )


def load_responses(submission_id: str, question_ids: Optional[Iterable[str]] = None) -> Dict[str, PersistedAnswer]:
    """Return {question_id: PersistedAnswer} for the submission.

    When `question_ids` is given only those questions are returned; an empty
    collection returns an empty mapping.
    """
    params: Dict[str, Any] = {"sid": submission_id}
    query = sql_text(_SELECT)
    if question_ids is not None:
        ids = list(question_ids)
        if not ids:
            return {}
        query = sql_text(_SELECT + " AND question_id IN :qids").bindparams(bindparam("qids", expanding=True))
        params["qids"] = ids
    with get_engine().connect() as conn:
        rows = conn.execute(query, params).fetchall()
    return {str(r._mapping["question_id"]): _row_to_persisted(r) for r in rows}


def upsert_response(conn: Connection, submission_id: str, question_id: str, persisted: PersistedAnswer) -> None:
    """Insert or replace the answer for (submission, question) inside `conn`'s transaction."""
    conn.execute(
        sql_text(
            """
            INSERT INTO responses (id, submission_id, question_id, text_value, number_value,
                                   boolean_value, date_value, json_value, file_refs, answered_at)
            VALUES (:rid, :sid, :qid, :vtext, :vnum, :vbool, :vdate, :vjson, :vfiles, :now)
            ON CONFLICT (submission_id, question_id)
            DO UPDATE SET text_value = excluded.text_value,
                          number_value = excluded.number_value,
                          boolean_value = excluded.boolean_value,
                          date_value = excluded.date_value,
                          json_value = excluded.json_value,
                          file_refs = excluded.file_refs,
                          answered_at = excluded.answered_at
            """
        ),
        {
            "rid": str(uuid.uuid5(uuid.NAMESPACE_URL, f"intake:{submission_id}:{question_id}")),
            "sid": submission_id,
            "qid": question_id,
            "vtext": persisted.text_value,
            "vnum": persisted.number_value,
            "vbool": persisted.boolean_value,
            "vdate": persisted.date_value.isoformat() if persisted.date_value else None,
            "vjson": json.dumps(persisted.json_value, default=str) if persisted.json_value is not None else None,
            "vfiles": json.dumps(persisted.file_refs) if persisted.file_refs is not None else None,
            "now": format_timestamp(),
        },
    )


def count_answered(submission_id: str) -> int:
    """Count responses with a populated value column."""
    with get_engine().connect() as conn:
        value = conn.execute(
            sql_text(
                "SELECT COUNT(*) FROM responses WHERE submission_id = :sid AND ("
                " text_value IS NOT NULL OR number_value IS NOT NULL OR boolean_value IS NOT NULL"
                " OR date_value IS NOT NULL OR json_value IS NOT NULL OR file_refs IS NOT NULL)"
            ),
            {"sid": submission_id},
        ).scalar()
    return int(value or 0)


__all__ = ["load_responses", "upsert_response", "count_answered"]
