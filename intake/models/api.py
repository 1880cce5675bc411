"""Request and response bodies of the HTTP surface."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from intake.models.question import Form, FormPage


class SaveResponsesResponse(BaseModel):
    success: bool = True
    saved: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    last_saved_at: Optional[str] = None


class PageResponses(BaseModel):
    page_id: str
    responses: Dict[str, Any] = Field(default_factory=dict)


class SubmitResponse(BaseModel):
    success: bool = True
    submitted_at: str


class ProgressResponse(BaseModel):
    percentage: int
    answered: int
    total: int


class FormEnvelope(BaseModel):
    form: Form


class PageEnvelope(BaseModel):
    page: FormPage
    total_pages: int


__all__ = [
    "SaveResponsesResponse",
    "PageResponses",
    "SubmitResponse",
    "ProgressResponse",
    "FormEnvelope",
    "PageEnvelope",
]
