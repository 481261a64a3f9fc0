"""Form sequencing: ordered questions, a page cursor, and a completion callback."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional, Sequence, Union

import structlog
from rich.color import Color, ColorParseError

from .questions import Question
from .results import FormResult

_logger = structlog.get_logger(__name__)

__all__ = [
    "INTRO_PAGE",
    "Form",
    "FormCallback",
    "FormError",
    "ThemeSpec",
    "parse_theme",
]

INTRO_PAGE = -1

FormCallback = Callable[[FormResult], Any]
ThemeSpec = Union[str, tuple[int, int, int], Color, None]


class FormError(RuntimeError):
    """The form was asked for something its current page does not allow."""

    def __init__(self, message: str, form: Form) -> None:
        self.form_type = type(form).__name__
        super().__init__(f"{self.form_type}: {message}")


def parse_theme(theme: ThemeSpec) -> Color:
    """Accept a Rich colour name/spec, an ``(r, g, b)`` tuple, or a Color; default white."""
    if theme is None:
        return Color.parse("white")
    if isinstance(theme, Color):
        return theme
    if isinstance(theme, tuple):
        red, green, blue = theme
        return Color.from_rgb(red, green, blue)
    try:
        return Color.parse(theme)
    except ColorParseError as exc:
        raise ValueError(f"Invalid theme color {theme!r}") from exc


def _values_equal(actual: Any, expected: Any) -> bool:
    # bool is an int subclass; True must not match 1
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    if isinstance(actual, (list, tuple)) and isinstance(expected, (list, tuple)):
        return list(actual) == list(expected)
    return actual == expected


class Form(ABC):
    """A sequence of questions shown one page at a time.

    The page cursor starts on the intro page (``-1``), moves forward one
    question at a time and never goes back. When it passes the last question
    the form is submitted and the callback receives the aggregate result once.
    """

    def __init__(
        self,
        title: str,
        description: str,
        questions: Iterable[Question] = (),
        *,
        theme: ThemeSpec = None,
        callback: Optional[FormCallback] = None,
    ) -> None:
        self._title = title
        self._description = description
        self._theme = parse_theme(theme)
        self._callback = callback
        self._questions: list[Question] = []
        self._page = INTRO_PAGE
        self._submitted = False
        self.add_questions(*questions)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(title={self._title!r}, page={self._page}, questions={len(self._questions)})"

    # --- configuration -------------------------------------------------

    @property
    def title(self) -> str:
        return self._title

    @title.setter
    def title(self, value: str) -> None:
        self._title = value

    @property
    def description(self) -> str:
        return self._description

    @description.setter
    def description(self, value: str) -> None:
        self._description = value

    @property
    def theme(self) -> Color:
        return self._theme

    @theme.setter
    def theme(self, value: ThemeSpec) -> None:
        self._theme = parse_theme(value)

    @property
    def callback(self) -> Optional[FormCallback]:
        return self._callback

    @callback.setter
    def callback(self, value: Optional[FormCallback]) -> None:
        self._callback = value

    @property
    def questions(self) -> Sequence[Question]:
        return tuple(self._questions)

    def add_question(self, question: Question) -> Form:
        if self.get_question(question.id) is not None:
            raise FormError(f"Duplicate question id {question.id!r}.", self)
        self._questions.append(question)
        return self

    def add_questions(self, *questions: Question) -> Form:
        for question in questions:
            self.add_question(question)
        return self

    def get_question(self, question_id: str) -> Optional[Question]:
        for question in self._questions:
            if question.id == question_id:
                return question
        return None

    # --- sequencing ----------------------------------------------------

    @property
    def page(self) -> int:
        """Current page: ``-1`` is the intro, ``len(questions)`` means done."""
        return self._page

    def is_submitted(self) -> bool:
        return self._submitted

    def current_question(self) -> Question:
        if self._page == INTRO_PAGE:
            raise FormError("Cannot get current question, still at description.", self)
        if self._page >= len(self._questions):
            raise FormError("Cannot get current question, form is already done.", self)
        return self._questions[self._page]

    def next_question(self) -> None:
        """Advance one page; passing the last question submits the form."""
        if self._submitted:
            raise FormError("Cannot advance, form is already done.", self)
        self._page += 1
        _logger.debug("form.advance", title=self._title, page=self._page)
        if self._page >= len(self._questions):
            self._submitted = True
            result = self.to_result()
            _logger.info("form.submitted", title=self._title, answers=len(result))
            if self._callback is not None:
                self._callback(result)

    def requirement_met(self, question: Question) -> bool:
        """Check the question's requirement against the referenced question's answer.

        A missing or unanswered referenced question counts as unmet.
        """
        requirement = question.requirement
        if requirement is None:
            return True
        referenced = self.get_question(requirement.question_id)
        if referenced is None or not referenced.is_submitted():
            return False
        return _values_equal(referenced.to_result().value, requirement.expected)

    def submit_current(self, value: Any = None) -> None:
        """Submit the current question, optionally with ``value``, then advance."""
        question = self.current_question()
        if value is None:
            question.submit()
        else:
            question.submit(value)
        self.next_question()

    def skip_current(self) -> None:
        """Advance past the current question without answering it."""
        question = self.current_question()
        _logger.info("question.skipped", question_id=question.id, requirement=repr(question.requirement))
        self.next_question()

    def to_result(self) -> FormResult:
        """Answers of all submitted questions, in configuration order."""
        return FormResult.of(question.to_result() for question in self._questions if question.is_submitted())

    @abstractmethod
    def render(self) -> None:
        """Render the current page."""
