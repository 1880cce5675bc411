"""Answer value types.

`AnswerValue` is the UI-facing tagged union; at most one variant describes a
given answer and `None` means "unanswered". `PersistedAnswer` is the stored
column set of a `responses` row, in which exactly one value column is
populated for an answered question and none for an unanswered one.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class AnswerKind:
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    STRUCTURED = "structured"
    FILE_LIST = "file_list"


class _Answer(BaseModel):
    model_config = ConfigDict(frozen=True)


class TextAnswer(_Answer):
    kind: Literal["text"] = "text"
    value: str


class NumberAnswer(_Answer):
    kind: Literal["number"] = "number"
    value: Union[int, float]


class BooleanAnswer(_Answer):
    kind: Literal["boolean"] = "boolean"
    value: bool


class DateAnswer(_Answer):
    kind: Literal["date"] = "date"
    value: date


class StructuredAnswer(_Answer):
    kind: Literal["structured"] = "structured"
    value: Any


class UploadedFile(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    name: str
    size: int = 0
    type: str = ""
    url: Optional[str] = None


class FileListAnswer(_Answer):
    kind: Literal["file_list"] = "file_list"
    value: List[UploadedFile]


AnswerValue = Annotated[
    Union[TextAnswer, NumberAnswer, BooleanAnswer, DateAnswer, StructuredAnswer, FileListAnswer],
    Field(discriminator="kind"),
]

ANSWER_VALUE_ADAPTER: TypeAdapter = TypeAdapter(AnswerValue)


# Value columns of a responses row, in lookup priority order.
VALUE_COLUMNS = (
    "text_value",
    "number_value",
    "date_value",
    "boolean_value",
    "json_value",
    "file_refs",
)


class PersistedAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    text_value: Optional[str] = None
    number_value: Optional[float] = None
    boolean_value: Optional[bool] = None
    date_value: Optional[date] = None
    json_value: Any = None
    file_refs: Optional[List[Dict[str, Any]]] = None

    def populated_fields(self) -> list[str]:
        return [name for name in VALUE_COLUMNS if getattr(self, name) is not None]

    def is_answered(self) -> bool:
        return bool(self.populated_fields())


__all__ = [
    "AnswerKind",
    "TextAnswer",
    "NumberAnswer",
    "BooleanAnswer",
    "DateAnswer",
    "StructuredAnswer",
    "UploadedFile",
    "FileListAnswer",
    "AnswerValue",
    "ANSWER_VALUE_ADAPTER",
    "VALUE_COLUMNS",
    "PersistedAnswer",
]
