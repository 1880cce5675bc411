"""Strongly typed rendering configuration, one variant per Question Kind.

A RenderConfig is produced once per question by
`intake.logic.question_mapping.build_render_config` and carries only the
fields meaningful for its kind. Field names are snake_case in Python and
camelCase on the wire. The change callback is never serialized.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Callable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class ChoiceOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    label: str


class MatrixItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str


class _QuestionConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: str
    question: str = ""
    description: Optional[str] = None
    required: bool = False
    value: Any = None
    on_change: Optional[Callable[[Any], None]] = Field(default=None, exclude=True, repr=False)

    def emit(self, value: Any) -> None:
        """Forward a new answer value to the bound change callback, if any."""
        if self.on_change is not None:
            self.on_change(value)


class ShortTextConfig(_QuestionConfig):
    type: Literal["short-text"] = "short-text"
    placeholder: Optional[str] = None
    pattern: Optional[str] = None
    max_length: Optional[int] = None


class LongTextConfig(_QuestionConfig):
    type: Literal["long-text"] = "long-text"
    rows: int = 4
    max_length: Optional[int] = None
    pattern: Optional[str] = None


class EmailConfig(_QuestionConfig):
    type: Literal["email"] = "email"
    placeholder: Optional[str] = None


class PhoneConfig(_QuestionConfig):
    type: Literal["phone"] = "phone"
    placeholder: Optional[str] = None


class DateConfig(_QuestionConfig):
    type: Literal["date"] = "date"
    min_date: Optional[date] = None
    max_date: Optional[date] = None


class RatingConfig(_QuestionConfig):
    type: Literal["rating"] = "rating"
    min_value: float = 0
    max_value: float = 10
    min_label: Optional[str] = None
    max_label: Optional[str] = None

    def choices(self) -> list[int]:
        return list(range(int(self.min_value), int(self.max_value) + 1))


class ScaleConfig(_QuestionConfig):
    type: Literal["scale"] = "scale"
    min_value: float = 1
    max_value: float = 10
    min_label: Optional[str] = None
    max_label: Optional[str] = None
    step: float = 1


class YesNoConfig(_QuestionConfig):
    type: Literal["yes-no"] = "yes-no"


class SingleChoiceConfig(_QuestionConfig):
    type: Literal["single-choice"] = "single-choice"
    choices: List[ChoiceOption] = Field(default_factory=list)


class MultipleChoiceConfig(_QuestionConfig):
    type: Literal["multiple-choice"] = "multiple-choice"
    options: List[ChoiceOption] = Field(default_factory=list)
    min_selections: Optional[int] = None
    max_selections: Optional[int] = None

    def selected(self) -> list[str]:
        if isinstance(self.value, list):
            return [str(v) for v in self.value]
        return []

    def is_at_max(self) -> bool:
        return self.max_selections is not None and len(self.selected()) >= self.max_selections

    def is_option_disabled(self, option_value: str) -> bool:
        """An unselected option is disabled once the selection reaches the maximum."""
        return option_value not in self.selected() and self.is_at_max()

    def toggle(self, option_value: str) -> list[str]:
        """Return the selection after toggling `option_value`.

        Deselecting is always allowed. Selecting past `max_selections` is a
        no-op rather than an error. The change callback fires only when the
        selection actually changes, and `value` tracks the new selection.
        """
        current = self.selected()
        if option_value in current:
            updated = [v for v in current if v != option_value]
        elif self.is_at_max():
            return current
        else:
            updated = current + [option_value]
        self.value = updated
        self.emit(updated)
        return updated

    def selection_hint(self) -> str:
        lo, hi = self.min_selections, self.max_selections
        if lo and hi:
            return f"Select between {lo} and {hi} options"
        if lo:
            return f"Select at least {lo} option{'s' if lo > 1 else ''}"
        if hi:
            return f"Select up to {hi} option{'s' if hi > 1 else ''}"
        return ""


class DropdownConfig(_QuestionConfig):
    type: Literal["dropdown"] = "dropdown"
    options: List[ChoiceOption] = Field(default_factory=list)
    placeholder: Optional[str] = None


class FileUploadConfig(_QuestionConfig):
    type: Literal["file-upload"] = "file-upload"
    max_files: int = 5
    max_size_bytes: int = 10 * 1024 * 1024
    accepted_types: List[str] = Field(default_factory=list)


class MatrixConfig(_QuestionConfig):
    type: Literal["matrix"] = "matrix"
    rows: List[MatrixItem] = Field(default_factory=list)
    columns: List[MatrixItem] = Field(default_factory=list)


class RangeConfig(_QuestionConfig):
    type: Literal["range"] = "range"
    min_value: float = 0
    max_value: float = 100
    step: float = 1
    min_label: Optional[str] = None
    max_label: Optional[str] = None


RenderConfig = Annotated[
    Union[
        ShortTextConfig,
        LongTextConfig,
        EmailConfig,
        PhoneConfig,
        DateConfig,
        RatingConfig,
        ScaleConfig,
        YesNoConfig,
        SingleChoiceConfig,
        MultipleChoiceConfig,
        DropdownConfig,
        FileUploadConfig,
        MatrixConfig,
        RangeConfig,
    ],
    Field(discriminator="type"),
]

RENDER_CONFIG_ADAPTER: TypeAdapter = TypeAdapter(RenderConfig)


__all__ = [
    "ChoiceOption",
    "MatrixItem",
    "ShortTextConfig",
    "LongTextConfig",
    "EmailConfig",
    "PhoneConfig",
    "DateConfig",
    "RatingConfig",
    "ScaleConfig",
    "YesNoConfig",
    "SingleChoiceConfig",
    "MultipleChoiceConfig",
    "DropdownConfig",
    "FileUploadConfig",
    "MatrixConfig",
    "RangeConfig",
    "RenderConfig",
    "RENDER_CONFIG_ADAPTER",
]
