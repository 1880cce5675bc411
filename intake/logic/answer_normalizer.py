"""Conversion between UI answer values and persisted response columns.

Three representations meet here:
- raw values as the UI and the HTTP payloads carry them (str, number,
  bool, ISO date string, list/dict, list of file metadata dicts);
- `AnswerValue`, the tagged union used inside the core;
- `PersistedAnswer`, the value columns of a `responses` row.

Every write populates exactly one column and nulls out the others, so an
answer whose question changed kind never leaves a stale value behind.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from intake.logic.dates import parse_calendar_date
from intake.logic.validation import AnswerValidationError
from intake.models.answer import (
    AnswerValue,
    BooleanAnswer,
    DateAnswer,
    FileListAnswer,
    NumberAnswer,
    PersistedAnswer,
    StructuredAnswer,
    TextAnswer,
    UploadedFile,
)
from intake.models.question_kind import QuestionKind

logger = logging.getLogger(__name__)

_ANSWER_TYPES = (TextAnswer, NumberAnswer, BooleanAnswer, DateAnswer, StructuredAnswer, FileListAnswer)


def _looks_like_file_list(value: list) -> bool:
    return bool(value) and all(
        isinstance(item, dict) and "name" in item and ("size" in item or "type" in item)
        for item in value
    )


def _file_list(value: list) -> Optional[FileListAnswer]:
    try:
        return FileListAnswer(value=[UploadedFile.model_validate(item) for item in value])
    except PydanticValidationError:
        return None


def _canonical_number(value: float | int) -> float | int:
    """Integral floats come back as ints so 7 round-trips as 7."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def coerce_answer(raw: Any, kind: str | None = None) -> Optional[AnswerValue]:
    """Convert a raw UI value into an AnswerValue; None stays unanswered.

    `kind` is the question's Question Kind when known. It only matters for
    strings on date questions and lists on file-upload questions; otherwise
    the Python type of the value decides the variant.
    """
    if raw is None:
        return None
    if isinstance(raw, _ANSWER_TYPES):
        if isinstance(raw, StructuredAnswer) and raw.value is None:
            return None
        return raw
    if isinstance(raw, bool):
        return BooleanAnswer(value=raw)
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            raise AnswerValidationError("number answers must be finite")
        return NumberAnswer(value=raw)
    if isinstance(raw, date):
        return DateAnswer(value=parse_calendar_date(raw))
    if isinstance(raw, str):
        if kind == QuestionKind.DATE:
            parsed = parse_calendar_date(raw)
            if parsed is not None:
                return DateAnswer(value=parsed)
        return TextAnswer(value=raw)
    if isinstance(raw, tuple):
        raw = list(raw)
    if isinstance(raw, list):
        if kind == QuestionKind.FILE_UPLOAD or (kind is None and _looks_like_file_list(raw)):
            files = _file_list(raw)
            if files is not None:
                return files
            logger.warning("answer_normalizer.file_list_malformed kind=%s", kind)
        return StructuredAnswer(value=raw)
    if isinstance(raw, dict):
        return StructuredAnswer(value=raw)
    raise AnswerValidationError(f"unsupported answer type: {type(raw).__name__}")


def answer_to_raw(answer: Optional[AnswerValue]) -> Any:
    """Return the JSON-compatible UI value for an AnswerValue."""
    if answer is None:
        return None
    if isinstance(answer, NumberAnswer):
        return _canonical_number(answer.value)
    if isinstance(answer, DateAnswer):
        return answer.value.isoformat()
    if isinstance(answer, FileListAnswer):
        return [f.model_dump(exclude_none=True) for f in answer.value]
    return answer.value


def to_persisted(answer: Optional[AnswerValue]) -> PersistedAnswer:
    """Map an AnswerValue onto the response columns, exactly one populated."""
    if answer is None:
        return PersistedAnswer()
    if isinstance(answer, TextAnswer):
        return PersistedAnswer(text_value=answer.value)
    if isinstance(answer, NumberAnswer):
        return PersistedAnswer(number_value=float(answer.value))
    if isinstance(answer, BooleanAnswer):
        return PersistedAnswer(boolean_value=answer.value)
    if isinstance(answer, DateAnswer):
        return PersistedAnswer(date_value=answer.value)
    if isinstance(answer, FileListAnswer):
        return PersistedAnswer(file_refs=[f.model_dump(exclude_none=True) for f in answer.value])
    if answer.value is None:
        return PersistedAnswer()
    return PersistedAnswer(json_value=answer.value)


def from_persisted(persisted: Optional[PersistedAnswer]) -> Optional[AnswerValue]:
    """Rebuild the AnswerValue stored in a response row; None when unanswered."""
    if persisted is None:
        return None
    populated = persisted.populated_fields()
    if not populated:
        return None
    if len(populated) > 1:
        # Rows written before single-column writes were enforced
        logger.warning("answer_normalizer.multiple_columns populated=%s using=%s", populated, populated[0])
    column = populated[0]
    if column == "text_value":
        return TextAnswer(value=persisted.text_value)
    if column == "number_value":
        return NumberAnswer(value=_canonical_number(persisted.number_value))
    if column == "date_value":
        return DateAnswer(value=persisted.date_value)
    if column == "boolean_value":
        return BooleanAnswer(value=persisted.boolean_value)
    if column == "json_value":
        return StructuredAnswer(value=persisted.json_value)
    files = _file_list(list(persisted.file_refs or []))
    if files is None:
        return StructuredAnswer(value=persisted.file_refs)
    return files


def normalize(raw: Any, kind: str | None = None) -> PersistedAnswer:
    """Raw UI value to persisted columns."""
    return to_persisted(coerce_answer(raw, kind))


def denormalize(persisted: Optional[PersistedAnswer]) -> Any:
    """Persisted columns to the raw UI value."""
    return answer_to_raw(from_persisted(persisted))


__all__ = [
    "coerce_answer",
    "answer_to_raw",
    "to_persisted",
    "from_persisted",
    "normalize",
    "denormalize",
]
