"""Submission endpoints.

Implements:
- POST /forms/{form_id}/submit
  - 422 SUBMISSION_INVALID with a per-question `errors` map when incomplete
- GET /forms/{form_id}/progress
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from intake.http.error_mapping import raise_problem
from intake.http.identity import current_user
from intake.logic import questionnaire_service as service
from intake.models.api import ProgressResponse, SubmitResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/forms/{form_id}/submit",
    summary="Submit the caller's responses for the form",
    operation_id="submitForm",
    response_model=SubmitResponse,
)
def submit_form(form_id: str, user_id: str = Depends(current_user)) -> SubmitResponse:
    try:
        submitted_at = service.submit(form_id, user_id)
    except service.SubmissionIncomplete as exc:
        raise_problem("SUBMISSION_INVALID", str(exc), errors=exc.errors)
    except service.CatalogLookupError as exc:
        raise_problem(exc.code, str(exc))
    except LookupError as exc:
        raise_problem("SUBMISSION_NOT_FOUND", str(exc))
    return SubmitResponse(submitted_at=submitted_at)


@router.get(
    "/forms/{form_id}/progress",
    summary="Share of the form's questions the caller has answered",
    operation_id="getProgress",
    response_model=ProgressResponse,
)
def get_progress(form_id: str, user_id: str = Depends(current_user)) -> ProgressResponse:
    return ProgressResponse(**service.get_progress(form_id, user_id))


__all__ = ["router"]
