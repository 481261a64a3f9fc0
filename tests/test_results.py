import dataclasses
import json

import pytest

from cliforms.results import (
    BooleanResult,
    CheckboxesResult,
    FormResult,
    IntegerResult,
    MultipleChoiceResult,
    TextResult,
)


def _sample() -> FormResult:
    return FormResult.of(
        [
            TextResult("name", "Ada"),
            IntegerResult("age", -3),
            BooleanResult("ok", False),
            MultipleChoiceResult("color", "red"),
            CheckboxesResult("tags", ("a", "c")),
        ]
    )


def test_result_values_and_kinds():
    result = _sample()
    assert [r.kind for r in result] == ["text", "integer", "boolean", "multiple_choice", "checkboxes"]
    assert result.as_dict() == {"name": "Ada", "age": -3, "ok": False, "color": "red", "tags": ["a", "c"]}


def test_results_are_immutable():
    answer = TextResult("name", "Ada")
    with pytest.raises(dataclasses.FrozenInstanceError):
        answer.text = "Bob"  # type: ignore[misc]


def test_form_result_collection_ops():
    result = FormResult()
    extra = TextResult("x", "y")
    assert len(result) == 0
    assert result.add(extra) is result
    assert result.get("x") == extra
    assert result.get("missing") is None
    result.remove(extra)
    assert len(result) == 0
    result.add(extra).clear()
    assert list(result) == []


def test_form_result_json_records():
    records = json.loads(_sample().to_json())
    assert records[0] == {"id": "name", "kind": "text", "value": "Ada"}
    assert records[-1] == {"id": "tags", "kind": "checkboxes", "value": ["a", "c"]}
    assert "\n" not in _sample().to_json(indent=None)
