"""Page responses endpoints (auto-save target).

Implements:
- GET /forms/{form_id}/pages/{page_id}/responses
- PUT /forms/{form_id}/pages/{page_id}/responses
  - Body {"responses": {question_id: value}}; unknown ids are skipped
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from intake.http.error_mapping import raise_problem
from intake.http.identity import current_user
from intake.logic import questionnaire_service as service
from intake.logic.validation import AnswerValidationError, validate_responses_payload
from intake.models.api import PageResponses, SaveResponsesResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/forms/{form_id}/pages/{page_id}/responses",
    summary="Load the caller's saved answers for a page",
    operation_id="getPageResponses",
    response_model=PageResponses,
)
def get_page_responses(form_id: str, page_id: str, user_id: str = Depends(current_user)) -> PageResponses:
    try:
        values = service.load_page_values(form_id, page_id, user_id)
    except service.CatalogLookupError as exc:
        raise_problem(exc.code, str(exc))
    return PageResponses(page_id=page_id, responses=values)


@router.put(
    "/forms/{form_id}/pages/{page_id}/responses",
    summary="Save answers for a page",
    operation_id="savePageResponses",
    response_model=SaveResponsesResponse,
)
def put_page_responses(
    form_id: str,
    page_id: str,
    payload: Any = Body(...),
    user_id: str = Depends(current_user),
) -> SaveResponsesResponse:
    try:
        responses = validate_responses_payload(payload)
        outcome = service.save_page_responses(form_id, page_id, user_id, responses)
    except AnswerValidationError as exc:
        raise_problem("RESPONSES_PAYLOAD_INVALID", str(exc))
    except service.CatalogLookupError as exc:
        raise_problem(exc.code, str(exc))
    logger.info("responses_saved page_id=%s saved=%d skipped=%d", page_id, len(outcome.saved), len(outcome.skipped))
    return SaveResponsesResponse(
        saved=outcome.saved,
        skipped=outcome.skipped,
        last_saved_at=outcome.last_saved_at,
    )


__all__ = ["router"]
