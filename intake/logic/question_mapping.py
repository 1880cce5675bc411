"""Question definition to RenderConfig mapping.

Translates a stored, loosely typed question (catalog type name, JSON
options, JSON validation rules) into the typed RenderConfig for its
Question Kind. The mapping is total: unknown kinds render as short text,
malformed rule fields fall back to defaults, and any unexpected failure
degrades to a short-text config. Nothing here raises into the renderer.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Callable, Iterable, List, Mapping, Optional

from pydantic import BaseModel

from intake.logic.dates import parse_calendar_date
from intake.models.question import QuestionDefinition
from intake.models.question_kind import CATALOG_TO_KIND, QuestionKind
from intake.models.render_config import (
    ChoiceOption,
    DateConfig,
    DropdownConfig,
    EmailConfig,
    FileUploadConfig,
    LongTextConfig,
    MatrixConfig,
    MatrixItem,
    MultipleChoiceConfig,
    PhoneConfig,
    RangeConfig,
    RatingConfig,
    ScaleConfig,
    ShortTextConfig,
    SingleChoiceConfig,
    YesNoConfig,
)

logger = logging.getLogger(__name__)

# Default numeric bounds per kind: (min, max)
RANGE_DEFAULTS = {
    QuestionKind.RATING: (0, 10),
    QuestionKind.SCALE: (1, 10),
    QuestionKind.RANGE: (0, 100),
}
DEFAULT_LONG_TEXT_ROWS = 4

_WHITESPACE_RE = re.compile(r"\s+")


def resolve_kind(raw_type: Any) -> str:
    """Return the Question Kind for a stored type; unknown types become short-text."""
    if isinstance(raw_type, str):
        token = raw_type.strip()
        if token in QuestionKind.ALL:
            return token
        mapped = CATALOG_TO_KIND.get(token.upper().replace("-", "_"))
        if mapped:
            return mapped
    logger.warning("question_mapping.unknown_type type=%r fallback=%s", raw_type, QuestionKind.FALLBACK)
    return QuestionKind.FALLBACK


def slugify_option(label: str) -> str:
    """Lowercase the label and collapse whitespace runs into '-'.

    Idempotent: slugify_option(slugify_option(x)) == slugify_option(x).
    """
    return _WHITESPACE_RE.sub("-", label.strip().lower())


def _maybe_json(raw: Any) -> Any:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="ignore")
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except ValueError:
            return None
    return raw


def parse_options(raw: Any) -> List[ChoiceOption]:
    """Normalize stored options into ordered {value, label} pairs.

    Plain strings become (slug, original). Objects with both `value` and
    `label` are kept; objects with only one of them reuse it for the other.
    Anything else gets a positional value `option-<idx>`.
    """
    raw = _maybe_json(raw)
    if not isinstance(raw, (list, tuple)):
        if raw is not None:
            logger.warning("question_mapping.options_not_list type=%s", type(raw).__name__)
        return []
    options: List[ChoiceOption] = []
    for idx, opt in enumerate(raw):
        if isinstance(opt, str):
            options.append(ChoiceOption(value=slugify_option(opt), label=opt))
        elif isinstance(opt, Mapping) and ("value" in opt or "label" in opt):
            value = opt.get("value")
            label = opt.get("label")
            if value is None:
                value = slugify_option(str(label))
            if label is None:
                label = value
            options.append(ChoiceOption(value=str(value), label=str(label)))
        else:
            options.append(ChoiceOption(value=f"option-{idx}", label=str(opt)))
    return options


def _parse_items(raw: Any) -> List[MatrixItem]:
    return [MatrixItem(id=o.value, label=o.label) for o in parse_options(raw)]


class ValidationRules(BaseModel):
    """Typed view of the validation bag; every field is optional."""

    min: Optional[float] = None
    max: Optional[float] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_label: Optional[str] = None
    max_label: Optional[str] = None
    min_selections: Optional[int] = None
    max_selections: Optional[int] = None
    step: Optional[float] = None
    rows: Any = None
    columns: Any = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    placeholder: Optional[str] = None
    min_date: Optional[str] = None
    max_date: Optional[str] = None
    max_files: Optional[int] = None
    max_size_bytes: Optional[int] = None
    accepted_types: Optional[List[str]] = None


def _pick(bag: Mapping, *keys: str) -> Any:
    for key in keys:
        if key in bag and bag[key] is not None:
            return bag[key]
    return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        as_float = float(value)
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(as_float):
        return None
    return value


def _as_int(value: Any, minimum: int = 0) -> Optional[int]:
    number = _as_number(value)
    if number is None or number != int(number) or number < minimum:
        return None
    return int(number)


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value.strip() else None


def _as_str_list(value: Any) -> Optional[List[str]]:
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    return None


def parse_validation_rules(raw: Any) -> ValidationRules:
    """Read the loosely typed rules bag field by field.

    Never raises: a field of the wrong shape is treated as absent.
    """
    bag = _maybe_json(raw)
    if not isinstance(bag, Mapping):
        return ValidationRules()
    return ValidationRules(
        min=_as_number(bag.get("min")),
        max=_as_number(bag.get("max")),
        min_value=_as_number(_pick(bag, "minValue", "min_value")),
        max_value=_as_number(_pick(bag, "maxValue", "max_value")),
        min_label=_as_text(_pick(bag, "minLabel", "min_label")),
        max_label=_as_text(_pick(bag, "maxLabel", "max_label")),
        min_selections=_as_int(_pick(bag, "minSelections", "min_selections")),
        max_selections=_as_int(_pick(bag, "maxSelections", "max_selections"), minimum=1),
        step=_as_number(bag.get("step")),
        rows=bag.get("rows"),
        columns=bag.get("columns"),
        max_length=_as_int(_pick(bag, "maxLength", "max_length"), minimum=1),
        pattern=_as_text(bag.get("pattern")),
        placeholder=_as_text(bag.get("placeholder")),
        min_date=_as_text(_pick(bag, "minDate", "min_date")),
        max_date=_as_text(_pick(bag, "maxDate", "max_date")),
        max_files=_as_int(_pick(bag, "maxFiles", "max_files"), minimum=1),
        max_size_bytes=_as_int(_pick(bag, "maxSizeBytes", "max_size_bytes"), minimum=1),
        accepted_types=_as_str_list(_pick(bag, "acceptedTypes", "accepted_types")),
    )


def _bounds(kind: str, rules: ValidationRules, question_id: str) -> tuple[float, float]:
    default_lo, default_hi = RANGE_DEFAULTS[kind]
    lo = rules.min_value if rules.min_value is not None else rules.min
    hi = rules.max_value if rules.max_value is not None else rules.max
    lo = default_lo if lo is None else lo
    hi = default_hi if hi is None else hi
    if lo >= hi:
        logger.warning(
            "question_mapping.bounds_inverted question_id=%s min=%s max=%s", question_id, lo, hi
        )
        return default_lo, default_hi
    return lo, hi


def _step(rules: ValidationRules) -> float:
    return rules.step if rules.step is not None and rules.step > 0 else 1


def _selection_limits(rules: ValidationRules) -> tuple[Optional[int], Optional[int]]:
    lo, hi = rules.min_selections, rules.max_selections
    if lo is not None and hi is not None and lo > hi:
        lo = hi
    return lo, hi


def _coerce_definition(question: Any) -> QuestionDefinition:
    if isinstance(question, QuestionDefinition):
        return question
    return QuestionDefinition.model_validate(question)


def _fallback_id(question: Any) -> str:
    if isinstance(question, Mapping):
        return str(question.get("id", ""))
    return str(getattr(question, "id", ""))


def _fallback_config(question: Any, value: Any, on_change: Optional[Callable[[Any], None]]) -> ShortTextConfig:
    """Short-text config that keeps whatever plain fields can still be read."""
    if isinstance(question, Mapping):
        read = question.get
    else:
        def read(key: str, default: Any = None) -> Any:
            return getattr(question, key, default)

    required = read("required")
    return ShortTextConfig(
        id=_fallback_id(question),
        question=_as_text(read("text")) or "",
        description=_as_text(read("description")),
        required=required if isinstance(required, bool) else False,
        value=value,
        on_change=on_change,
    )


def _config_for(kind: str, base: dict, rules: ValidationRules, definition: QuestionDefinition):
    if kind == QuestionKind.SHORT_TEXT:
        return ShortTextConfig(
            **base, placeholder=rules.placeholder, pattern=rules.pattern, max_length=rules.max_length
        )
    if kind == QuestionKind.LONG_TEXT:
        rows = _as_int(rules.rows, minimum=1) or _as_int(rules.min, minimum=1) or DEFAULT_LONG_TEXT_ROWS
        max_length = rules.max_length or _as_int(rules.max, minimum=1)
        return LongTextConfig(**base, rows=rows, max_length=max_length, pattern=rules.pattern)
    if kind == QuestionKind.EMAIL:
        return EmailConfig(**base, placeholder=rules.placeholder)
    if kind == QuestionKind.PHONE:
        return PhoneConfig(**base, placeholder=rules.placeholder)
    if kind == QuestionKind.DATE:
        return DateConfig(
            **base,
            min_date=parse_calendar_date(rules.min_date),
            max_date=parse_calendar_date(rules.max_date),
        )
    if kind in (QuestionKind.RATING, QuestionKind.SCALE, QuestionKind.RANGE):
        lo, hi = _bounds(kind, rules, definition.id)
        labels = {"min_label": rules.min_label, "max_label": rules.max_label}
        if kind == QuestionKind.RATING:
            return RatingConfig(**base, min_value=lo, max_value=hi, **labels)
        if kind == QuestionKind.SCALE:
            return ScaleConfig(**base, min_value=lo, max_value=hi, step=_step(rules), **labels)
        return RangeConfig(**base, min_value=lo, max_value=hi, step=_step(rules), **labels)
    if kind == QuestionKind.YES_NO:
        return YesNoConfig(**base)
    if kind == QuestionKind.SINGLE_CHOICE:
        return SingleChoiceConfig(**base, choices=parse_options(definition.options))
    if kind == QuestionKind.MULTIPLE_CHOICE:
        lo, hi = _selection_limits(rules)
        return MultipleChoiceConfig(
            **base, options=parse_options(definition.options), min_selections=lo, max_selections=hi
        )
    if kind == QuestionKind.DROPDOWN:
        return DropdownConfig(**base, options=parse_options(definition.options), placeholder=rules.placeholder)
    if kind == QuestionKind.FILE_UPLOAD:
        extra: dict = {}
        if rules.max_files is not None:
            extra["max_files"] = rules.max_files
        if rules.max_size_bytes is not None:
            extra["max_size_bytes"] = rules.max_size_bytes
        if rules.accepted_types is not None:
            extra["accepted_types"] = rules.accepted_types
        return FileUploadConfig(**base, **extra)
    if kind == QuestionKind.MATRIX:
        columns = rules.columns if rules.columns is not None else definition.options
        return MatrixConfig(**base, rows=_parse_items(rules.rows), columns=_parse_items(columns))
    return ShortTextConfig(**base)


def build_render_config(
    question: Any,
    value: Any = None,
    on_change: Optional[Callable[[Any], None]] = None,
):
    """Map one question definition to its RenderConfig.

    Pure in (question, value, on_change). Always returns a config; failures
    are logged and degrade to a short-text config that keeps the id, text,
    description and required flag.
    """
    try:
        definition = _coerce_definition(question)
        kind = resolve_kind(definition.type)
        rules = parse_validation_rules(definition.validation_rules)
        base = {
            "id": definition.id,
            "question": definition.text,
            "description": definition.description,
            "required": bool(definition.required),
            "value": value,
            "on_change": on_change,
        }
        return _config_for(kind, base, rules, definition)
    except Exception:
        logger.error("question_mapping.failed question_id=%s", _fallback_id(question), exc_info=True)
        return _fallback_config(question, value, on_change)


def build_render_configs(
    questions: Iterable[Any],
    values: Mapping[str, Any],
    on_change_for: Optional[Callable[[str], Callable[[Any], None]]] = None,
) -> list:
    """Map a page's questions in order, binding each to its current value."""
    configs = []
    for question in questions:
        qid = _fallback_id(question)
        callback = on_change_for(qid) if on_change_for is not None else None
        configs.append(build_render_config(question, values.get(qid), callback))
    return configs


__all__ = [
    "RANGE_DEFAULTS",
    "ValidationRules",
    "resolve_kind",
    "slugify_option",
    "parse_options",
    "parse_validation_rules",
    "build_render_config",
    "build_render_configs",
]
