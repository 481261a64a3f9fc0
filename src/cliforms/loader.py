"""Build forms from JSON definitions.

A definition looks like::

    {
      "title": "Signup",
      "description": "A few questions.",
      "theme": "#ff8800",
      "questions": [
        {"type": "text", "id": "name", "title": "Name", "character_limit": 32},
        {"type": "boolean", "id": "newsletter", "title": "Newsletter?", "default": false},
        {"type": "checkboxes", "id": "topics", "title": "Topics", "choices": ["a", "b"],
         "requires": {"question": "newsletter", "equals": true}}
      ]
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Mapping

from .cli_form import CLIForm
from .questions import (
    INT64_MAX,
    INT64_MIN,
    BooleanQuestion,
    CheckboxesQuestion,
    IntegerQuestion,
    MultipleChoiceQuestion,
    Question,
    QuestionError,
    TextQuestion,
)
from .utils import slugify

__all__ = ["FormDefinitionError", "build_form", "build_question", "load_form"]


class FormDefinitionError(ValueError):
    """A form definition is malformed."""


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise FormDefinitionError(f"{where}: missing required field '{key}'")
    return data[key]


def _choices(data: Mapping[str, Any], where: str) -> list[str]:
    choices = _require(data, "choices", where)
    if not isinstance(choices, list) or not all(isinstance(choice, str) for choice in choices):
        raise FormDefinitionError(f"{where}: 'choices' must be a list of strings")
    return choices


def _text(qid: str, title: str, description: str, data: Mapping[str, Any], where: str) -> Question:
    limit = data.get("character_limit")
    if limit is not None and not isinstance(limit, int):
        raise FormDefinitionError(f"{where}: 'character_limit' must be an integer")
    return TextQuestion(qid, title, description, limit)


def _integer(qid: str, title: str, description: str, data: Mapping[str, Any], where: str) -> Question:
    min_value = data.get("min", INT64_MIN)
    max_value = data.get("max", INT64_MAX)
    if not isinstance(min_value, int) or not isinstance(max_value, int):
        raise FormDefinitionError(f"{where}: 'min' and 'max' must be integers")
    return IntegerQuestion(qid, title, description, min_value, max_value)


def _boolean(qid: str, title: str, description: str, data: Mapping[str, Any], where: str) -> Question:
    default = data.get("default", True)
    if not isinstance(default, bool):
        raise FormDefinitionError(f"{where}: 'default' must be true or false")
    return BooleanQuestion(qid, title, description, default)


def _multiple_choice(qid: str, title: str, description: str, data: Mapping[str, Any], where: str) -> Question:
    return MultipleChoiceQuestion(qid, title, description, _choices(data, where))


def _checkboxes(qid: str, title: str, description: str, data: Mapping[str, Any], where: str) -> Question:
    return CheckboxesQuestion(qid, title, description, _choices(data, where))


_BUILDERS: dict[str, Callable[[str, str, str, Mapping[str, Any], str], Question]] = {
    TextQuestion.kind: _text,
    IntegerQuestion.kind: _integer,
    BooleanQuestion.kind: _boolean,
    MultipleChoiceQuestion.kind: _multiple_choice,
    CheckboxesQuestion.kind: _checkboxes,
}


def build_question(data: Mapping[str, Any], *, index: int = 0) -> Question:
    """Create one question from its definition mapping."""
    where = f"questions[{index}]"
    if not isinstance(data, Mapping):
        raise FormDefinitionError(f"{where}: expected an object")
    kind = str(_require(data, "type", where)).strip().lower().replace("-", "_")
    builder = _BUILDERS.get(kind)
    if builder is None:
        raise FormDefinitionError(f"{where}: unknown question type '{kind}' (expected one of {', '.join(_BUILDERS)})")
    title = str(_require(data, "title", where))
    qid = str(data.get("id") or slugify(title))
    description = str(data.get("description", ""))
    try:
        question = builder(qid, title, description, data, where)
    except QuestionError as exc:
        raise FormDefinitionError(f"{where}: {exc}") from exc

    requires = data.get("requires")
    if requires is not None:
        if not isinstance(requires, Mapping):
            raise FormDefinitionError(f"{where}: 'requires' must be an object")
        target = _require(requires, "question", f"{where}.requires")
        question.set_requirement(str(target), _require(requires, "equals", f"{where}.requires"))
    return question


def build_form(data: Mapping[str, Any], **form_kwargs: Any) -> CLIForm:
    """Create a :class:`CLIForm` from a definition mapping.

    Extra keyword arguments (``input``, ``console``, ``callback``...) go to the form.
    """
    if not isinstance(data, Mapping):
        raise FormDefinitionError("form definition must be an object")
    raw_questions = _require(data, "questions", "form")
    if not isinstance(raw_questions, list):
        raise FormDefinitionError("form: 'questions' must be a list")
    questions = [build_question(entry, index=index) for index, entry in enumerate(raw_questions)]

    ids = [question.id for question in questions]
    duplicates = sorted({qid for qid in ids if ids.count(qid) > 1})
    if duplicates:
        raise FormDefinitionError(f"form: duplicate question ids {duplicates}")
    for question in questions:
        if question.requirement is not None and question.requirement.question_id not in ids:
            raise FormDefinitionError(
                f"question '{question.id}' requires unknown question '{question.requirement.question_id}'"
            )

    form_kwargs.setdefault("theme", data.get("theme"))
    try:
        return CLIForm(
            str(_require(data, "title", "form")),
            str(data.get("description", "")),
            questions,
            **form_kwargs,
        )
    except ValueError as exc:
        raise FormDefinitionError(f"form: {exc}") from exc


def load_form(path: Path | str, **form_kwargs: Any) -> CLIForm:
    """Read a JSON definition file and build the form."""
    source = Path(path)
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise FormDefinitionError(f"{source}: invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    return build_form(data, **form_kwargs)
