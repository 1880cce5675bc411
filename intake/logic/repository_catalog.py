"""Question catalog data access helpers.

Reads forms, pages, sections and questions with SQL through SQLAlchemy Core
and assembles them into ordered catalog models. The catalog is read-only to
the service; seeding happens outside of it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from intake.db.base import get_engine
from intake.models.question import Form, FormPage, FormSection, QuestionDefinition

logger = logging.getLogger(__name__)


def _load_json(raw: Any, *, question_id: str, column: str) -> Any:
    """Parse a JSON text column; malformed JSON is logged and read as absent."""
    if raw is None or not isinstance(raw, (str, bytes, bytearray)):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("catalog_json_malformed question_id=%s column=%s", question_id, column)
        return None


def _question_from_row(row: Any) -> QuestionDefinition:
    m = row._mapping
    qid = str(m["id"])
    return QuestionDefinition(
        id=qid,
        type=m["question_type"],
        text=m["text"] or "",
        description=m["description"],
        required=bool(m["required"]),
        order=int(m["question_order"]),
        options=_load_json(m["options"], question_id=qid, column="options"),
        validation_rules=_load_json(m["validation_rules"], question_id=qid, column="validation_rules"),
    )


def _load_pages(conn: Connection, form_id: str, page_id: str | None = None) -> List[FormPage]:
    params: Dict[str, Any] = {"fid": form_id}
    page_filter = ""
    if page_id is not None:
        page_filter = " AND p.id = :pid"
        params["pid"] = page_id

    page_rows = conn.execute(
        sql_text(
            "SELECT p.id, p.form_id, p.title, p.description, p.page_order FROM form_pages p"
            " WHERE p.form_id = :fid" + page_filter + " ORDER BY p.page_order"
        ),
        params,
    ).fetchall()
    if not page_rows:
        return []

    section_rows = conn.execute(
        sql_text(
            "SELECT s.id, s.page_id, s.title, s.description, s.section_order FROM form_sections s"
            " JOIN form_pages p ON s.page_id = p.id"
            " WHERE p.form_id = :fid" + page_filter + " ORDER BY s.section_order"
        ),
        params,
    ).fetchall()

    question_rows = conn.execute(
        sql_text(
            "SELECT q.id, q.section_id, q.text, q.description, q.question_type, q.required,"
            " q.question_order, q.options, q.validation_rules FROM questions q"
            " JOIN form_sections s ON q.section_id = s.id"
            " JOIN form_pages p ON s.page_id = p.id"
            " WHERE p.form_id = :fid" + page_filter + " ORDER BY q.question_order"
        ),
        params,
    ).fetchall()

    questions_by_section: Dict[str, List[QuestionDefinition]] = {}
    for row in question_rows:
        questions_by_section.setdefault(str(row._mapping["section_id"]), []).append(_question_from_row(row))

    sections_by_page: Dict[str, List[FormSection]] = {}
    for row in section_rows:
        m = row._mapping
        sections_by_page.setdefault(str(m["page_id"]), []).append(
            FormSection(
                id=str(m["id"]),
                title=m["title"] or "",
                description=m["description"],
                order=int(m["section_order"]),
                questions=questions_by_section.get(str(m["id"]), []),
            )
        )

    return [
        FormPage(
            id=str(row._mapping["id"]),
            form_id=str(row._mapping["form_id"]),
            title=row._mapping["title"] or "",
            description=row._mapping["description"],
            order=int(row._mapping["page_order"]),
            sections=sections_by_page.get(str(row._mapping["id"]), []),
        )
        for row in page_rows
    ]


def get_active_form_id() -> Optional[str]:
    """Return the id of the single active form, or None."""
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text("SELECT id FROM forms WHERE is_active = :active ORDER BY id"),
            {"active": True},
        ).fetchall()
    if len(rows) > 1:
        logger.warning("catalog_multiple_active_forms ids=%s using=%s", [r[0] for r in rows], rows[0][0])
    return str(rows[0][0]) if rows else None


def get_form(form_id: str, *, active_only: bool = True) -> Optional[Form]:
    """Return the form with ordered pages, sections and questions."""
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text("SELECT id, title, description, is_active FROM forms WHERE id = :fid"),
            {"fid": form_id},
        ).fetchone()
        if row is None or (active_only and not bool(row._mapping["is_active"])):
            return None
        pages = _load_pages(conn, form_id)
    m = row._mapping
    return Form(id=str(m["id"]), title=m["title"] or "", description=m["description"], pages=pages)


def get_active_form() -> Optional[Form]:
    form_id = get_active_form_id()
    return get_form(form_id) if form_id else None


def get_page(form_id: str, page_id: str) -> Optional[FormPage]:
    eng = get_engine()
    with eng.connect() as conn:
        pages = _load_pages(conn, form_id, page_id=page_id)
    return pages[0] if pages else None


def get_page_by_order(form_id: str, order: int) -> Optional[FormPage]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text("SELECT id FROM form_pages WHERE form_id = :fid AND page_order = :ord"),
            {"fid": form_id, "ord": int(order)},
        ).fetchone()
        if row is None:
            return None
        pages = _load_pages(conn, form_id, page_id=str(row[0]))
    return pages[0] if pages else None


__all__ = [
    "get_active_form_id",
    "get_active_form",
    "get_form",
    "get_page",
    "get_page_by_order",
]
