"""Functional test bootstrap for the intake questionnaire.

Points the service at a file-backed SQLite database before any imports of
intake.main, applies the SQL migrations once per session and seeds a small
two-page catalog that the API and repository tests share. Tests that write
answers use a fresh user id so they never see each other's submissions.
"""

from __future__ import annotations

import json
import os
import pathlib
import uuid

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

# Use a file-backed SQLite DB to ensure persistence across connections
os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]
# Disable app startup auto-migrations; they are applied explicitly below
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"

FORM_ID = "intake-main"
INACTIVE_FORM_ID = "intake-archived"
PAGE_PROFILE = "page-profile"
PAGE_PREFERENCES = "page-preferences"

_FORMS = [
    (FORM_ID, "Client intake", "Tell us about yourself", True),
    (INACTIVE_FORM_ID, "Old intake", None, False),
]
_PAGES = [
    (PAGE_PROFILE, FORM_ID, "About you", None, 1),
    (PAGE_PREFERENCES, FORM_ID, "Preferences", "How you like to work", 2),
    ("page-archived", INACTIVE_FORM_ID, "Archived", None, 1),
]
_SECTIONS = [
    ("sec-about", PAGE_PROFILE, "Basics", None, 1),
    ("sec-prefs", PAGE_PREFERENCES, "Your preferences", None, 1),
    ("sec-archived", "page-archived", "Archived", None, 1),
]
# (id, section, text, type, required, order, options, rules)
_QUESTIONS = [
    ("q-name", "sec-about", "Full name", "SHORT_TEXT", True, 1, None, None),
    ("q-email", "sec-about", "Email", "EMAIL", True, 2, None, None),
    ("q-age", "sec-about", "Age", "NUMBER", False, 3, None, None),
    ("q-rating", "sec-prefs", "How likely are you to recommend us?", "RATING", True, 1, None, {"min": 0, "max": 10}),
    (
        "q-topics",
        "sec-prefs",
        "Topics of interest",
        "MULTIPLE_CHOICE",
        False,
        2,
        ["Product Design", "Data Science", "Marketing"],
        {"maxSelections": 2},
    ),
    ("q-start", "sec-prefs", "Preferred start date", "DATE", True, 3, None, None),
    ("q-consent", "sec-prefs", "Do you agree to the terms?", "YES_NO", True, 4, None, None),
    ("q-notes", "sec-prefs", "Anything else?", "LONG_TEXT", False, 5, None, {"min": 6, "max": 500}),
    ("q-archived", "sec-archived", "Old question", "SHORT_TEXT", True, 1, None, None),
]

TOTAL_QUESTIONS = 8


def _seed_catalog(engine) -> None:  # type: ignore[no-untyped-def]
    from sqlalchemy import text as sql_text

    with engine.begin() as conn:
        for fid, title, desc, active in _FORMS:
            conn.execute(
                sql_text("INSERT INTO forms (id, title, description, is_active) VALUES (:id, :t, :d, :a)"),
                {"id": fid, "t": title, "d": desc, "a": active},
            )
        for pid, fid, title, desc, order in _PAGES:
            conn.execute(
                sql_text(
                    "INSERT INTO form_pages (id, form_id, title, description, page_order)"
                    " VALUES (:id, :fid, :t, :d, :o)"
                ),
                {"id": pid, "fid": fid, "t": title, "d": desc, "o": order},
            )
        for sid, pid, title, desc, order in _SECTIONS:
            conn.execute(
                sql_text(
                    "INSERT INTO form_sections (id, page_id, title, description, section_order)"
                    " VALUES (:id, :pid, :t, :d, :o)"
                ),
                {"id": sid, "pid": pid, "t": title, "d": desc, "o": order},
            )
        for qid, sid, text, qtype, required, order, options, rules in _QUESTIONS:
            conn.execute(
                sql_text(
                    "INSERT INTO questions (id, section_id, text, question_type, required, question_order,"
                    " options, validation_rules) VALUES (:id, :sid, :t, :qt, :r, :o, :opts, :rules)"
                ),
                {
                    "id": qid,
                    "sid": sid,
                    "t": text,
                    "qt": qtype,
                    "r": required,
                    "o": order,
                    "opts": json.dumps(options) if options is not None else None,
                    "rules": json.dumps(rules) if rules is not None else None,
                },
            )


@pytest.fixture(scope="session", autouse=True)
def functional_sqlite_bootstrap():
    """Session-level bootstrap: apply migrations and seed the catalog once."""
    from intake.db.base import get_engine
    from intake.db.migrations_runner import apply_migrations

    engine = get_engine(os.environ["TEST_DATABASE_URL"])
    apply_migrations(engine)
    _seed_catalog(engine)
    yield


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def user_id() -> str:
    return f"user-{uuid.uuid4()}"


@pytest.fixture
def app():
    from intake.main import create_app

    return create_app()


@pytest.fixture
def api(app):
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def auth(user_id: str) -> dict:
    return {"X-User-Id": user_id}
