"""Tests for the SQL migrations runner against fresh SQLite engines."""

from __future__ import annotations

from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from intake.db.migrations_runner import apply_migrations


def _fresh_engine():
    return create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def test_shipped_migrations_create_every_table():
    engine = _fresh_engine()
    applied = apply_migrations(engine)
    assert applied == ["001_catalog.sql", "002_submissions.sql"]
    tables = set(inspect(engine).get_table_names())
    assert {"forms", "form_pages", "form_sections", "questions", "form_submissions", "responses"} <= tables


def test_comment_lines_may_contain_semicolons(tmp_path):
    (tmp_path / "001_notes.sql").write_text(
        "-- one row per (a, b); nothing else\n"
        "CREATE TABLE notes (\n"
        "    id INTEGER PRIMARY KEY,\n"
        "    -- free text; may be empty\n"
        "    body TEXT\n"
        ");\n"
        "-- trailing remark; done\n",
        encoding="utf-8",
    )
    engine = _fresh_engine()
    assert apply_migrations(engine, tmp_path) == ["001_notes.sql"]
    columns = {c["name"] for c in inspect(engine).get_columns("notes")}
    assert columns == {"id", "body"}


def test_applied_files_are_not_reapplied(tmp_path):
    (tmp_path / "001_notes.sql").write_text("CREATE TABLE notes (id INTEGER PRIMARY KEY);", encoding="utf-8")
    (tmp_path / "001_notes_rollback.sql").write_text("DROP TABLE notes;", encoding="utf-8")
    engine = _fresh_engine()
    assert apply_migrations(engine, tmp_path) == ["001_notes.sql"]
    assert apply_migrations(engine, tmp_path) == []
    assert "notes" in inspect(engine).get_table_names()
