"""Question Kind constants for the intake questionnaire.

Provides a simple constants container instead of an Enum to keep imports
lightweight. `QuestionKind` holds the wire-level kinds the renderer
understands; `CatalogQuestionType` holds the names stored in the question
catalog, which include two kinds that never gained a dedicated widget.
"""

from __future__ import annotations


class QuestionKind:
    SHORT_TEXT = "short-text"
    LONG_TEXT = "long-text"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    RATING = "rating"
    SCALE = "scale"
    YES_NO = "yes-no"
    SINGLE_CHOICE = "single-choice"
    MULTIPLE_CHOICE = "multiple-choice"
    DROPDOWN = "dropdown"
    FILE_UPLOAD = "file-upload"
    MATRIX = "matrix"
    RANGE = "range"

    ALL = (
        SHORT_TEXT,
        LONG_TEXT,
        EMAIL,
        PHONE,
        DATE,
        RATING,
        SCALE,
        YES_NO,
        SINGLE_CHOICE,
        MULTIPLE_CHOICE,
        DROPDOWN,
        FILE_UPLOAD,
        MATRIX,
        RANGE,
    )

    # Kinds whose options are rendered as a selectable list
    CHOICE_KINDS = frozenset({SINGLE_CHOICE, MULTIPLE_CHOICE, DROPDOWN})
    NUMERIC_RANGE_KINDS = frozenset({RATING, SCALE, RANGE})
    FALLBACK = SHORT_TEXT


class CatalogQuestionType:
    SHORT_TEXT = "SHORT_TEXT"
    LONG_TEXT = "LONG_TEXT"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    DATE = "DATE"
    RATING = "RATING"
    SCALE = "SCALE"
    YES_NO = "YES_NO"
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    DROPDOWN = "DROPDOWN"
    FILE_UPLOAD = "FILE_UPLOAD"
    MATRIX = "MATRIX"
    RANGE = "RANGE"
    NUMBER = "NUMBER"
    TIME = "TIME"


# NUMBER and TIME have no widget of their own and render as free text.
CATALOG_TO_KIND: dict[str, str] = {
    CatalogQuestionType.SHORT_TEXT: QuestionKind.SHORT_TEXT,
    CatalogQuestionType.LONG_TEXT: QuestionKind.LONG_TEXT,
    CatalogQuestionType.EMAIL: QuestionKind.EMAIL,
    CatalogQuestionType.PHONE: QuestionKind.PHONE,
    CatalogQuestionType.DATE: QuestionKind.DATE,
    CatalogQuestionType.RATING: QuestionKind.RATING,
    CatalogQuestionType.SCALE: QuestionKind.SCALE,
    CatalogQuestionType.YES_NO: QuestionKind.YES_NO,
    CatalogQuestionType.SINGLE_CHOICE: QuestionKind.SINGLE_CHOICE,
    CatalogQuestionType.MULTIPLE_CHOICE: QuestionKind.MULTIPLE_CHOICE,
    CatalogQuestionType.DROPDOWN: QuestionKind.DROPDOWN,
    CatalogQuestionType.FILE_UPLOAD: QuestionKind.FILE_UPLOAD,
    CatalogQuestionType.MATRIX: QuestionKind.MATRIX,
    CatalogQuestionType.RANGE: QuestionKind.RANGE,
    CatalogQuestionType.NUMBER: QuestionKind.SHORT_TEXT,
    CatalogQuestionType.TIME: QuestionKind.SHORT_TEXT,
}


__all__ = ["QuestionKind", "CatalogQuestionType", "CATALOG_TO_KIND"]
