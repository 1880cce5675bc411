"""Catalog endpoints.

Implements:
- GET /forms/active
- GET /forms/{form_id}/pages/{page_id}
- GET /forms/{form_id}/pages/by-order/{order}
- GET /forms/{form_id}/pages/{page_id}/render
  - RenderConfigs for the page's questions carrying the caller's values
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Path

from intake.http.error_mapping import raise_problem
from intake.http.identity import current_user
from intake.logic import questionnaire_service as service
from intake.logic.repository_catalog import get_active_form
from intake.models.api import FormEnvelope, PageEnvelope

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/forms/active",
    summary="Get the active form with ordered pages, sections and questions",
    operation_id="getActiveForm",
    response_model=FormEnvelope,
)
def get_active(user_id: str = Depends(current_user)) -> FormEnvelope:
    form = get_active_form()
    if form is None:
        raise_problem("FORM_NOT_FOUND", "No active form")
    return FormEnvelope(form=form)


@router.get(
    "/forms/{form_id}/pages/by-order/{order}",
    summary="Get a page by its 1-based order",
    operation_id="getPageByOrder",
    response_model=PageEnvelope,
)
def get_page_by_order(
    form_id: str,
    order: int = Path(..., ge=1),
    user_id: str = Depends(current_user),
) -> PageEnvelope:
    try:
        form = service.require_form(form_id)
        page = service.require_page_by_order(form_id, order)
    except service.CatalogLookupError as exc:
        raise_problem(exc.code, str(exc))
    return PageEnvelope(page=page, total_pages=form.page_count())


@router.get(
    "/forms/{form_id}/pages/{page_id}",
    summary="Get a page by id",
    operation_id="getPage",
    response_model=PageEnvelope,
)
def get_page(form_id: str, page_id: str, user_id: str = Depends(current_user)) -> PageEnvelope:
    try:
        form = service.require_form(form_id)
        page = service.require_page(form_id, page_id)
    except service.CatalogLookupError as exc:
        raise_problem(exc.code, str(exc))
    return PageEnvelope(page=page, total_pages=form.page_count())


@router.get(
    "/forms/{form_id}/pages/{page_id}/render",
    summary="Get render configurations for a page",
    operation_id="renderPage",
)
def render_page(form_id: str, page_id: str, user_id: str = Depends(current_user)) -> dict:
    try:
        configs = service.render_page(form_id, page_id, user_id)
    except service.CatalogLookupError as exc:
        raise_problem(exc.code, str(exc))
    return {
        "page_id": page_id,
        "questions": [c.model_dump(mode="json", by_alias=True) for c in configs],
    }


__all__ = ["router"]
