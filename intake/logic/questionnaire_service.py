"""Server-side persistence collaborator for one user and one form.

Orchestrates the catalog, submission and response repositories: load a
page's answers, save a page's answers through the normalizer, submit
after validating every required question, and report progress. The form
id is always passed in explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from intake.db.base import transaction
from intake.logic import repository_catalog, repository_responses, repository_submissions
from intake.logic.answer_normalizer import coerce_answer, denormalize, to_persisted
from intake.logic.events import RESPONSES_SAVED, SUBMISSION_SUBMITTED, publish
from intake.logic.navigation import progress_percentage
from intake.logic.question_mapping import build_render_configs, resolve_kind
from intake.logic.validation import validate_answers
from intake.models.question import Form, FormPage

logger = logging.getLogger(__name__)


class CatalogLookupError(LookupError):
    code = "FORM_NOT_FOUND"


class FormNotFound(CatalogLookupError):
    code = "FORM_NOT_FOUND"


class PageNotFound(CatalogLookupError):
    code = "PAGE_NOT_FOUND"


class SubmissionIncomplete(ValueError):
    """Raised by submit() when required questions are unanswered or invalid."""

    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__(f"{len(errors)} question(s) need attention")
        self.errors = errors


@dataclass
class SaveOutcome:
    saved: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    last_saved_at: str | None = None


def require_form(form_id: str) -> Form:
    form = repository_catalog.get_form(form_id)
    if form is None:
        raise FormNotFound(f"No active form {form_id}")
    return form


def require_page(form_id: str, page_id: str) -> FormPage:
    require_form(form_id)
    page = repository_catalog.get_page(form_id, page_id)
    if page is None:
        raise PageNotFound(f"Page {page_id} not found")
    return page


def require_page_by_order(form_id: str, order: int) -> FormPage:
    require_form(form_id)
    page = repository_catalog.get_page_by_order(form_id, order)
    if page is None:
        raise PageNotFound(f"Page {order} not found")
    return page


def load_page_values(form_id: str, page_id: str, user_id: str) -> Dict[str, Any]:
    """Return {question_id: raw value} for the answered questions of the page."""
    page = require_page(form_id, page_id)
    submission = repository_submissions.get_submission(form_id, user_id)
    if submission is None:
        return {}
    stored = repository_responses.load_responses(submission["id"], page.question_ids())
    return {qid: denormalize(persisted) for qid, persisted in stored.items() if persisted.is_answered()}


def render_page(form_id: str, page_id: str, user_id: str) -> list:
    """RenderConfigs for the page's questions with the user's current values."""
    page = require_page(form_id, page_id)
    values = load_page_values(form_id, page_id, user_id)
    return build_render_configs(page.questions(), values)


def save_page_responses(form_id: str, page_id: str, user_id: str, responses: Mapping[str, Any]) -> SaveOutcome:
    """Upsert the given answers for the page in one transaction.

    Question ids that do not belong to the page are skipped and logged.
    Saving identical data again leaves the stored answers unchanged.
    """
    page = require_page(form_id, page_id)
    kinds = {q.id: resolve_kind(q.type) for q in page.questions()}
    submission = repository_submissions.get_or_create_submission(form_id, user_id)

    outcome = SaveOutcome()
    persisted_rows = []
    for qid, raw in responses.items():
        if qid not in kinds:
            outcome.skipped.append(qid)
            continue
        persisted_rows.append((qid, to_persisted(coerce_answer(raw, kinds[qid]))))
    if outcome.skipped:
        logger.warning("responses_skipped_unknown page_id=%s question_ids=%s", page_id, outcome.skipped)

    with transaction() as conn:
        for qid, persisted in persisted_rows:
            repository_responses.upsert_response(conn, submission["id"], qid, persisted)
            outcome.saved.append(qid)
        outcome.last_saved_at = repository_submissions.touch_submission(conn, submission["id"], page_id)

    publish(
        RESPONSES_SAVED,
        {"form_id": form_id, "page_id": page_id, "submission_id": submission["id"], "count": len(outcome.saved)},
    )
    return outcome


def validate_submission(form: Form, submission_id: str | None) -> Dict[str, str]:
    """Validate every question of every page against the stored answers."""
    questions = [q for page in form.pages for q in page.questions()]
    stored = repository_responses.load_responses(submission_id) if submission_id else {}
    values = {qid: denormalize(p) for qid, p in stored.items()}
    return validate_answers(build_render_configs(questions, values), values)


def submit(form_id: str, user_id: str) -> str:
    """Mark the user's submission SUBMITTED; returns submitted_at.

    Raises SubmissionIncomplete with per-question messages and leaves every
    stored answer untouched when validation fails.
    """
    form = require_form(form_id)
    submission = repository_submissions.get_or_create_submission(form_id, user_id)
    errors = validate_submission(form, submission["id"])
    if errors:
        logger.info("submission_incomplete form_id=%s errors=%d", form_id, len(errors))
        raise SubmissionIncomplete(errors)
    submitted_at = repository_submissions.mark_submitted(submission["id"])
    publish(SUBMISSION_SUBMITTED, {"form_id": form_id, "submission_id": submission["id"]})
    return submitted_at


def get_progress(form_id: str, user_id: str) -> Dict[str, int]:
    form = repository_catalog.get_form(form_id)
    if form is None:
        return {"percentage": 0, "answered": 0, "total": 0}
    total = sum(len(page.questions()) for page in form.pages)
    submission = repository_submissions.get_submission(form_id, user_id)
    answered = repository_responses.count_answered(submission["id"]) if submission else 0
    answered = min(answered, total)
    return {"percentage": progress_percentage(answered, total), "answered": answered, "total": total}


__all__ = [
    "CatalogLookupError",
    "FormNotFound",
    "PageNotFound",
    "SubmissionIncomplete",
    "SaveOutcome",
    "require_form",
    "require_page",
    "require_page_by_order",
    "load_page_values",
    "render_page",
    "save_page_responses",
    "validate_submission",
    "submit",
    "get_progress",
]
