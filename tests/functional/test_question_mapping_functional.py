"""Tests for mapping question definitions to RenderConfigs."""

from __future__ import annotations

import random
from datetime import date

import pytest

from intake.logic.question_mapping import (
    build_render_config,
    build_render_configs,
    parse_options,
    parse_validation_rules,
    resolve_kind,
    slugify_option,
)
from intake.models.question import QuestionDefinition
from intake.models.question_kind import CATALOG_TO_KIND, QuestionKind
from intake.models.render_config import (
    RENDER_CONFIG_ADAPTER,
    DateConfig,
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


def _question(qtype, options=None, rules=None, **extra) -> QuestionDefinition:
    return QuestionDefinition(
        id=extra.pop("id", "q1"),
        type=qtype,
        text=extra.pop("text", "Question"),
        options=options,
        validationRules=rules,
        **extra,
    )


@pytest.mark.parametrize("catalog_type,kind", sorted(CATALOG_TO_KIND.items()))
def test_every_catalog_type_maps_to_its_kind(catalog_type, kind):
    config = build_render_config(_question(catalog_type))
    assert config.type == kind
    assert config.id == "q1"


def test_wire_kinds_are_accepted_as_is():
    for kind in QuestionKind.ALL:
        assert resolve_kind(kind) == kind


def test_unknown_type_falls_back_to_short_text(caplog):
    config = build_render_config(_question("SIGNATURE"))
    assert isinstance(config, ShortTextConfig)
    assert "question_mapping.unknown_type" in caplog.text


def test_rating_min_max_rules_become_bounds():
    config = build_render_config(_question("RATING", rules={"min": 0, "max": 10}))
    assert isinstance(config, RatingConfig)
    assert (config.min_value, config.max_value) == (0, 10)
    assert config.choices() == list(range(0, 11))


def test_explicit_min_value_wins_over_min():
    config = build_render_config(_question("RATING", rules={"min": 0, "minValue": 1, "maxValue": 5}))
    assert (config.min_value, config.max_value) == (1, 5)


def test_inverted_bounds_fall_back_to_defaults():
    config = build_render_config(_question("SCALE", rules={"min": 9, "max": 2}))
    assert isinstance(config, ScaleConfig)
    assert (config.min_value, config.max_value) == (1, 10)


def test_numeric_kind_defaults():
    assert (build_render_config(_question("RATING")).min_value, build_render_config(_question("RATING")).max_value) == (0, 10)
    scale = build_render_config(_question("SCALE", rules={"minLabel": "Low", "maxLabel": "High", "step": 0.5}))
    assert (scale.min_value, scale.max_value, scale.step) == (1, 10, 0.5)
    assert (scale.min_label, scale.max_label) == ("Low", "High")
    rng = build_render_config(_question("RANGE"))
    assert isinstance(rng, RangeConfig)
    assert (rng.min_value, rng.max_value) == (0, 100)


def test_long_text_rows_and_max_length():
    default = build_render_config(_question("LONG_TEXT"))
    assert isinstance(default, LongTextConfig)
    assert (default.rows, default.max_length) == (4, None)
    sized = build_render_config(_question("LONG_TEXT", rules={"min": 8, "max": 2000}))
    assert (sized.rows, sized.max_length) == (8, 2000)


def test_options_are_slugified_and_keep_labels():
    options = parse_options(["Product Design", "  Data   Science ", {"value": "mk", "label": "Marketing"}, 42])
    assert [(o.value, o.label) for o in options] == [
        ("product-design", "Product Design"),
        ("data-science", "  Data   Science "),
        ("mk", "Marketing"),
        ("option-3", "42"),
    ]


def test_options_stored_as_json_text_are_parsed():
    config = build_render_config(_question("DROPDOWN", options='["Yes please", "No thanks"]'))
    assert [o.value for o in config.options] == ["yes-please", "no-thanks"]


def test_options_object_with_only_label_reuses_it():
    (option,) = parse_options([{"label": "Part Time"}])
    assert (option.value, option.label) == ("part-time", "Part Time")


def test_slugify_is_idempotent():
    for label in ["Product Design", "A  B\tC", "already-slugged", ""]:
        assert slugify_option(slugify_option(label)) == slugify_option(label)


def test_multiple_choice_disables_options_at_max_selections():
    emitted = []
    config = build_render_config(
        _question("MULTIPLE_CHOICE", options=["Alpha", "Beta", "Gamma"], rules={"maxSelections": 2}),
        value=[],
        on_change=emitted.append,
    )
    assert isinstance(config, MultipleChoiceConfig)
    config.toggle("alpha")
    config.toggle("beta")
    assert config.is_option_disabled("gamma") is True
    assert config.is_option_disabled("alpha") is False
    assert config.toggle("gamma") == ["alpha", "beta"]
    assert emitted == [["alpha"], ["alpha", "beta"]]
    config.toggle("alpha")
    assert config.is_option_disabled("gamma") is False
    assert config.selection_hint() == "Select up to 2 options"


def test_selection_limits_are_clamped():
    config = build_render_config(_question("MULTIPLE_CHOICE", options=["a"], rules={"minSelections": 3, "maxSelections": 2}))
    assert (config.min_selections, config.max_selections) == (2, 2)


def test_single_choice_uses_choices():
    config = build_render_config(_question("SINGLE_CHOICE", options=["Red", "Green"]))
    assert isinstance(config, SingleChoiceConfig)
    assert [c.value for c in config.choices] == ["red", "green"]


def test_date_bounds_are_parsed():
    config = build_render_config(_question("DATE", rules={"minDate": "2024-01-01", "maxDate": "31-12-2024"}))
    assert isinstance(config, DateConfig)
    assert (config.min_date, config.max_date) == (date(2024, 1, 1), date(2024, 12, 31))


def test_file_upload_defaults_and_overrides():
    default = build_render_config(_question("FILE_UPLOAD"))
    assert isinstance(default, FileUploadConfig)
    assert (default.max_files, default.max_size_bytes) == (5, 10 * 1024 * 1024)
    custom = build_render_config(_question("FILE_UPLOAD", rules={"maxFiles": 2, "acceptedTypes": ["application/pdf"]}))
    assert (custom.max_files, custom.accepted_types) == (2, ["application/pdf"])


def test_matrix_rows_from_rules_and_columns_from_options():
    config = build_render_config(
        _question("MATRIX", options=["Never", "Sometimes", "Often"], rules={"rows": ["Email", "Phone"]})
    )
    assert isinstance(config, MatrixConfig)
    assert [r.id for r in config.rows] == ["email", "phone"]
    assert [c.id for c in config.columns] == ["never", "sometimes", "often"]


def test_malformed_rule_fields_are_treated_as_absent():
    rules = parse_validation_rules({"min": "zero", "maxSelections": -1, "maxLength": True, "pattern": 5})
    assert (rules.min, rules.max_selections, rules.max_length, rules.pattern) == (None, None, None, None)
    assert parse_validation_rules("not json") == parse_validation_rules(None)


def test_invalid_definition_degrades_to_short_text(caplog):
    config = build_render_config({"id": "q-broken", "type": "RATING", "required": "perhaps"}, value="x")
    assert isinstance(config, ShortTextConfig)
    assert (config.id, config.value) == ("q-broken", "x")
    assert "question_mapping.failed" in caplog.text


def test_oversized_integers_in_rules_are_treated_as_absent():
    rules = parse_validation_rules({"max": 10**400, "min": -(10**400), "maxSelections": 10**400})
    assert (rules.max, rules.min, rules.max_selections) == (None, None, None)

    config = build_render_config(
        {"id": "q-big", "type": "RATING", "text": "Rate us", "required": True, "validationRules": {"max": 10**400}}
    )
    assert isinstance(config, RatingConfig)
    assert (config.min_value, config.max_value) == (0, 10)
    assert config.required is True
    assert config.question == "Rate us"


def test_fallback_keeps_text_description_and_required(caplog):
    config = build_render_config(
        {"id": "q-odd", "type": "RATING", "text": "Rate us", "description": "0 to 10", "required": True, "order": "first"}
    )
    assert isinstance(config, ShortTextConfig)
    assert (config.id, config.question, config.description, config.required) == ("q-odd", "Rate us", "0 to 10", True)
    assert "question_mapping.failed" in caplog.text


def test_config_serializes_camel_case_without_callback():
    config = build_render_config(_question("RATING", rules={"max": 5}, required=True), value=3, on_change=print)
    dumped = config.model_dump(mode="json", by_alias=True)
    assert dumped["maxValue"] == 5
    assert dumped["required"] is True
    assert "onChange" not in dumped and "on_change" not in dumped
    restored = RENDER_CONFIG_ADAPTER.validate_python(dumped)
    assert isinstance(restored, RatingConfig)
    assert restored.value == 3


def test_build_render_configs_binds_values_and_callbacks():
    seen = []
    questions = [_question("SHORT_TEXT", id="a"), _question("YES_NO", id="b")]
    configs = build_render_configs(questions, {"b": True}, on_change_for=lambda qid: lambda v: seen.append((qid, v)))
    assert [c.value for c in configs] == [None, True]
    configs[0].emit("hello")
    assert seen == [("a", "hello")]


def test_mapping_is_total_over_random_definitions():
    rng = random.Random(20241019)
    types = list(CATALOG_TO_KIND) + list(QuestionKind.ALL) + ["", "BOGUS", None, 7, "rating ", "yes_no"]
    junk = [None, 0, -3, 1.5, float("nan"), float("inf"), 10**400, -(10**400), True, "", "abc", "[1,", "{}", [], {}, [None], {"x": 1}]
    rule_keys = [
        "min", "max", "minValue", "maxValue", "step", "rows", "columns", "maxLength", "pattern",
        "minSelections", "maxSelections", "minDate", "maxDate", "maxFiles", "acceptedTypes", "minLabel",
    ]
    for i in range(1000):
        rules = {key: rng.choice(junk + [rng.randint(-5, 20)]) for key in rng.sample(rule_keys, rng.randint(0, 6))}
        options = rng.choice(junk + [["A b", {"value": 1}, {"label": None}, 3], '["x", "y z"]'])
        question = {
            "id": f"q{i}",
            "type": rng.choice(types),
            "text": rng.choice(["", "Question?", None]),
            "required": rng.choice([True, False, None, "yes"]),
            "options": options,
            "validationRules": rng.choice([rules, "{broken", None, rules]),
        }
        config = build_render_config(question)
        assert config.id == f"q{i}"
        readable = question["text"] is not None and question["required"] is not None
        expected_kind = resolve_kind(question["type"]) if readable else QuestionKind.SHORT_TEXT
        assert config.type == expected_kind, question
        if question["required"] is True:
            assert config.required is True, question
