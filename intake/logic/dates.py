"""Canonical calendar-date helpers.

Answers to date questions are stored as a plain calendar date with no
time-of-day or zone. The UI shows and accepts DD-MM-YYYY; ISO strings are
the canonical wire form.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional

DISPLAY_FORMAT = "%d-%m-%Y"

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DISPLAY_RE = re.compile(r"^(\d{2})[-/.](\d{2})[-/.](\d{4})$")


def parse_calendar_date(value: Any) -> Optional[date]:
    """Return the calendar date described by `value`, or None.

    Accepts `date`/`datetime` objects, canonical `YYYY-MM-DD` strings, ISO
    datetime strings (the date component is taken as written, without zone
    conversion) and the DD-MM-YYYY display form.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        if _ISO_DATE_RE.match(text):
            return date.fromisoformat(text)
        m = _DISPLAY_RE.match(text)
        if m:
            day, month, year = (int(g) for g in m.groups())
            return date(year, month, day)
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None
    return None


def to_canonical(value: date) -> str:
    return value.isoformat()


def to_display(value: Any) -> str:
    """Format a canonical date for display; unparseable input yields ''."""
    parsed = parse_calendar_date(value)
    return parsed.strftime(DISPLAY_FORMAT) if parsed else ""


__all__ = ["DISPLAY_FORMAT", "parse_calendar_date", "to_canonical", "to_display"]
