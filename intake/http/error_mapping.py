"""Central error mapping for the intake HTTP surface.

Single source of truth for mapping domain failures to problem+json codes
and HTTP statuses. Route modules build problems through `problem()` and
`raise_problem()` instead of hardcoding strings or numbers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, NoReturn, Optional

from fastapi import HTTPException

logger = logging.getLogger(__name__)

ERROR_MAP: Dict[str, Dict[str, Any]] = {
    "IDENTITY_MISSING": {"status": 401, "title": "Unauthorized"},
    "FORM_NOT_FOUND": {"status": 404, "title": "Form not found"},
    "PAGE_NOT_FOUND": {"status": 404, "title": "Page not found"},
    "SUBMISSION_NOT_FOUND": {"status": 404, "title": "Submission not found"},
    "SUBMISSION_INVALID": {"status": 422, "title": "Submission incomplete"},
    "RESPONSES_PAYLOAD_INVALID": {"status": 422, "title": "Invalid responses payload"},
}


def problem(code: str, detail: str = "", *, errors: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Return a problem+json body for `code`."""
    entry = ERROR_MAP[code]
    body: Dict[str, Any] = {
        "title": entry["title"],
        "status": entry["status"],
        "detail": detail or entry["title"],
        "code": code,
    }
    if errors is not None:
        body["errors"] = errors
    logger.info("error_handler.problem code=%s status=%s", code, entry["status"])
    return body


def raise_problem(code: str, detail: str = "", *, errors: Optional[Dict[str, str]] = None) -> NoReturn:
    body = problem(code, detail, errors=errors)
    raise HTTPException(status_code=body["status"], detail=body)


__all__ = ["ERROR_MAP", "problem", "raise_problem"]
