"""Typed answers produced by submitted questions, and the aggregate form result."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Iterator, Optional, Union


@dataclass(slots=True, frozen=True)
class TextResult:
    id: str
    text: str
    kind: ClassVar[str] = "text"

    @property
    def value(self) -> str:
        return self.text


@dataclass(slots=True, frozen=True)
class IntegerResult:
    id: str
    number: int
    kind: ClassVar[str] = "integer"

    @property
    def value(self) -> int:
        return self.number


@dataclass(slots=True, frozen=True)
class BooleanResult:
    id: str
    choice: bool
    kind: ClassVar[str] = "boolean"

    @property
    def value(self) -> bool:
        return self.choice


@dataclass(slots=True, frozen=True)
class MultipleChoiceResult:
    id: str
    choice: str
    kind: ClassVar[str] = "multiple_choice"

    @property
    def value(self) -> str:
        return self.choice


@dataclass(slots=True, frozen=True)
class CheckboxesResult:
    id: str
    chosen: tuple[str, ...]
    kind: ClassVar[str] = "checkboxes"

    @property
    def value(self) -> list[str]:
        return list(self.chosen)


Result = Union[TextResult, IntegerResult, BooleanResult, MultipleChoiceResult, CheckboxesResult]


@dataclass
class FormResult:
    """Ordered collection of the answers of a completed form."""

    results: list[Result] = field(default_factory=list)

    @classmethod
    def of(cls, results: Iterable[Result]) -> FormResult:
        return cls(list(results))

    def add(self, result: Result) -> FormResult:
        self.results.append(result)
        return self

    def remove(self, result: Result) -> FormResult:
        self.results.remove(result)
        return self

    def clear(self) -> FormResult:
        self.results.clear()
        return self

    def get(self, question_id: str) -> Optional[Result]:
        for result in self.results:
            if result.id == question_id:
                return result
        return None

    def __iter__(self) -> Iterator[Result]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def as_dict(self) -> dict[str, Any]:
        """Map each question id to its plain answer value."""
        return {result.id: result.value for result in self.results}

    def to_records(self) -> list[dict[str, Any]]:
        return [{"id": result.id, "kind": result.kind, "value": result.value} for result in self.results]

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_records(), indent=indent, ensure_ascii=False)
