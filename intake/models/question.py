"""Question catalog types.

`QuestionDefinition` mirrors a stored catalog row. Its `options` and
`validation_rules` stay loosely typed here; they are interpreted only by
`intake.logic.question_mapping`.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuestionDefinition(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: Any = None
    text: str = ""
    required: bool = False
    order: int = 0
    options: Any = None
    validation_rules: Any = Field(default=None, alias="validationRules")
    description: Optional[str] = None


class FormSection(BaseModel):
    id: str
    title: str = ""
    description: Optional[str] = None
    order: int = 0
    questions: List[QuestionDefinition] = Field(default_factory=list)


class FormPage(BaseModel):
    id: str
    form_id: str
    title: str = ""
    description: Optional[str] = None
    order: int = 0
    sections: List[FormSection] = Field(default_factory=list)

    def questions(self) -> list[QuestionDefinition]:
        """Return every question on the page in section, then question, order."""
        ordered: list[QuestionDefinition] = []
        for section in sorted(self.sections, key=lambda s: s.order):
            ordered.extend(sorted(section.questions, key=lambda q: q.order))
        return ordered

    def question_ids(self) -> list[str]:
        return [q.id for q in self.questions()]


class Form(BaseModel):
    id: str
    title: str = ""
    description: Optional[str] = None
    pages: List[FormPage] = Field(default_factory=list)

    def page_count(self) -> int:
        return len(self.pages)


__all__ = ["QuestionDefinition", "FormSection", "FormPage", "Form"]
