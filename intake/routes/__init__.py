"""APIRouter registration for the intake questionnaire service."""

from __future__ import annotations

from fastapi import APIRouter

from intake.routes.forms import router as forms_router
from intake.routes.responses import router as responses_router
from intake.routes.submissions import router as submissions_router

api_router = APIRouter()
api_router.include_router(forms_router, tags=["Forms"])
api_router.include_router(responses_router, tags=["Autosave"])
api_router.include_router(submissions_router, tags=["Submissions"])

__all__ = ["api_router"]
