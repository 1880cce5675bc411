"""Submission-time validation of answers against their RenderConfig.

Autosave never validates: partially completed answers are always stored.
Validation runs when the user submits, reports one message per failing
question and never alters the answers themselves.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Mapping, Optional

from intake.logic.dates import parse_calendar_date
from intake.models.render_config import (
    DateConfig,
    DropdownConfig,
    EmailConfig,
    FileUploadConfig,
    LongTextConfig,
    MatrixConfig,
    MultipleChoiceConfig,
    RangeConfig,
    RatingConfig,
    ScaleConfig,
    ShortTextConfig,
    SingleChoiceConfig,
)


class AnswerValidationError(ValueError):
    pass


REQUIRED_MESSAGE = "This question is required"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_empty_answer(value: Any) -> bool:
    """True when a value counts as unanswered for the required check.

    Booleans and numbers (including False and 0) are answers.
    """
    if value is None:
        return True
    if isinstance(value, bool) or isinstance(value, (int, float)):
        return False
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_text(config: ShortTextConfig | LongTextConfig, value: Any) -> Optional[str]:
    if _is_number(value):
        # NUMBER and TIME catalog questions render as short text
        value = str(value)
    if not isinstance(value, str):
        return "Please enter text"
    if config.max_length is not None and len(value) > config.max_length:
        return f"Please use at most {config.max_length} characters"
    if config.pattern:
        try:
            if re.fullmatch(config.pattern, value) is None:
                return "Please match the requested format"
        except re.error:
            # Invalid patterns are ignored; they were never enforceable.
            return None
    return None


def _check_bounds(value: Any, lo: float, hi: float) -> Optional[str]:
    if not _is_number(value):
        return "Please choose a number"
    if value < lo or value > hi:
        return f"Please choose a value between {lo:g} and {hi:g}"
    return None


def validate_answer(config: Any, value: Any) -> Optional[str]:
    """Return an error message for `value` under `config`, or None if valid."""
    if is_empty_answer(value):
        return REQUIRED_MESSAGE if config.required else None

    if isinstance(config, (ShortTextConfig, LongTextConfig)):
        return _check_text(config, value)
    if isinstance(config, EmailConfig):
        if not isinstance(value, str) or not _EMAIL_RE.match(value.strip()):
            return "Please enter a valid email address"
        return None
    if isinstance(config, DateConfig):
        parsed = parse_calendar_date(value)
        if parsed is None:
            return "Please enter a valid date (DD-MM-YYYY)"
        if config.min_date and parsed < config.min_date:
            return f"Please enter a date on or after {config.min_date.isoformat()}"
        if config.max_date and parsed > config.max_date:
            return f"Please enter a date on or before {config.max_date.isoformat()}"
        return None
    if isinstance(config, (RatingConfig, ScaleConfig)):
        return _check_bounds(value, config.min_value, config.max_value)
    if isinstance(config, RangeConfig):
        if not isinstance(value, Mapping) or not _is_number(value.get("min")) or not _is_number(value.get("max")):
            return "Please choose a range"
        if value["min"] > value["max"]:
            return "The lower bound must not exceed the upper bound"
        return _check_bounds(value["min"], config.min_value, config.max_value) or _check_bounds(
            value["max"], config.min_value, config.max_value
        )
    if isinstance(config, (SingleChoiceConfig, DropdownConfig)):
        options = config.choices if isinstance(config, SingleChoiceConfig) else config.options
        if options and value not in [o.value for o in options]:
            return "Please choose one of the listed options"
        return None
    if isinstance(config, MultipleChoiceConfig):
        # min/max selections are enforced by the control itself, not here.
        if not isinstance(value, list):
            return "Please choose from the listed options"
        return None
    if isinstance(config, MatrixConfig):
        if not isinstance(value, Mapping):
            return "Please answer the grid"
        if config.required and config.rows and any(row.id not in value for row in config.rows):
            return "Please answer every row"
        return None
    if isinstance(config, FileUploadConfig):
        if not isinstance(value, list):
            return "Please upload a file"
        if len(value) > config.max_files:
            return f"Please upload at most {config.max_files} files"
        return None
    return None


def validate_answers(configs: Iterable[Any], values: Mapping[str, Any]) -> Dict[str, str]:
    """Validate every config against `values`; returns {question_id: message}."""
    errors: Dict[str, str] = {}
    for config in configs:
        message = validate_answer(config, values.get(config.id))
        if message:
            errors[config.id] = message
    return errors


def validate_responses_payload(payload: Any) -> Dict[str, Any]:
    """Basic coherence checks for a save-responses body.

    - Must be an object with a `responses` object
    - Keys must be non-empty strings
    """
    if not isinstance(payload, dict):
        raise AnswerValidationError("payload must be an object")
    responses = payload.get("responses")
    if not isinstance(responses, dict):
        raise AnswerValidationError("responses must be an object keyed by question id")
    for key in responses:
        if not isinstance(key, str) or not key.strip():
            raise AnswerValidationError("question ids must be non-empty strings")
    return responses


__all__ = [
    "AnswerValidationError",
    "REQUIRED_MESSAGE",
    "is_empty_answer",
    "validate_answer",
    "validate_answers",
    "validate_responses_payload",
]
