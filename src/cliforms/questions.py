"""Form questions: one prompt per page, each with its own input state.

Every question follows the same life cycle. It is configured once, mutated by
keystrokes (``handle_key``) or programmatically (``set_input`` and friends)
while the form is on its page, then frozen by ``submit``. A submitted
question rejects further mutation with :class:`QuestionError` and can be
converted into a typed result with ``to_result``.

Questions never advance a form themselves; the form calls ``submit`` (or
watches ``render`` return) and moves its own page cursor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Optional, Sequence, Union

import pyperclip
import structlog
from rich.text import Text

from .config import get_settings
from .keys import (
    BACKSPACE_CODES,
    END_OF_INPUT,
    MINUS,
    PASTE,
    SUBMIT_CODES,
    NavigationKey,
    is_printable,
)
from .rawinput import FormCancelled
from .results import (
    BooleanResult,
    CheckboxesResult,
    IntegerResult,
    MultipleChoiceResult,
    Result,
    TextResult,
)
from .utils import is_valid_question_id

if TYPE_CHECKING:
    from .cli_form import CLIForm

_logger = structlog.get_logger(__name__)

__all__ = [
    "INT64_MAX",
    "INT64_MIN",
    "BooleanQuestion",
    "CheckboxesQuestion",
    "IntegerQuestion",
    "MultipleChoiceQuestion",
    "Question",
    "QuestionError",
    "Requirement",
    "TextQuestion",
]

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

HIGHLIGHT_STYLE = "black on white"
HINT_STYLE = "bright_black"


class QuestionError(ValueError):
    """A question was used against its contract (double submit, invalid input, out of bounds)."""

    def __init__(self, message: str, question: Question) -> None:
        self.question_type = type(question).__name__
        self.question_id = getattr(question, "id", None)
        super().__init__(f"{self.question_type}: {message}")


@dataclass(slots=True, frozen=True)
class Requirement:
    """Show a question only if another question's answer equals ``expected``."""

    question_id: str
    expected: Any


class Question(ABC):
    """A single page of a form."""

    kind: ClassVar[str]
    hint_text: ClassVar[str] = "|| [ENTER]: Submit ||"

    def __init__(self, id: str, title: str, description: str = "") -> None:
        self.id = id
        self.title = title
        self.description = description
        self.requirement: Optional[Requirement] = None
        self._submitted = False
        if not is_valid_question_id(id):
            raise QuestionError(f"Invalid question id {id!r}, expected [a-z0-9_-]+.", self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, submitted={self._submitted})"

    def set_requirement(self, question_id: str, expected: Any) -> Question:
        """Only show this question when question ``question_id`` was answered with ``expected``."""
        self.requirement = Requirement(question_id, expected)
        return self

    def is_submitted(self) -> bool:
        return self._submitted

    def _ensure_open(self, action: str) -> None:
        if self._submitted:
            raise QuestionError(f"Cannot {action}, the question was already submitted!", self)

    def submit(self) -> None:
        """Validate the current input and lock it in as the final answer."""
        self._ensure_open("submit")
        self._validate()
        self._submitted = True
        _logger.debug("question.submitted", question_id=self.id, kind=self.kind)

    def to_result(self) -> Result:
        if not self._submitted:
            raise QuestionError("Cannot create a result, the question was not submitted!", self)
        return self._build_result()

    def reset_state(self) -> None:
        """Clear the input back to its construction-time defaults. Settings are kept."""
        self._ensure_open("reset state")
        self._reset()

    @abstractmethod
    def _reset(self) -> None: ...

    @abstractmethod
    def _validate(self) -> None: ...

    @abstractmethod
    def _build_result(self) -> Result: ...

    @abstractmethod
    def get_input(self) -> Any:
        """Return the current (possibly unsubmitted) input."""

    @abstractmethod
    def handle_key(self, code: int) -> None:
        """Apply one raw key code to the input state."""

    @abstractmethod
    def draw(self, form: CLIForm) -> None:
        """Print the input area below the page header."""

    def render(self, form: CLIForm) -> None:
        """Redraw and consume keys until the question is submitted."""
        while not self._submitted:
            form.clear_output()
            form.draw_header(self)
            form.hint(self.hint_text)
            self.draw(form)
            code = form.input.read(True)
            if code == END_OF_INPUT:
                raise FormCancelled(code)
            self.handle_key(code)


class TextQuestion(Question):
    """Free text, printable ASCII only, up to ``character_limit`` characters."""

    kind = "text"

    def __init__(self, id: str, title: str, description: str = "", character_limit: Optional[int] = None) -> None:
        super().__init__(id, title, description)
        if character_limit is None:
            character_limit = get_settings().forms.text_limit
        if character_limit < 1:
            raise QuestionError("Character limit must be at least 1.", self)
        self.character_limit = character_limit
        self._input = ""

    def _reset(self) -> None:
        self._input = ""

    def _too_long(self, text: str) -> bool:
        return len(text) > self.character_limit

    def set_input(self, text: str) -> None:
        self._ensure_open("set input")
        if self._too_long(text):
            raise QuestionError("Cannot set input, input exceeds the character limit.", self)
        self._input = text

    def submit(self, text: Optional[str] = None) -> None:
        if text is not None:
            self.set_input(text)
        super().submit()

    def _validate(self) -> None:
        if not self._input.strip():
            raise QuestionError("Cannot submit, input is empty or blank!", self)
        if self._too_long(self._input):
            raise QuestionError("Cannot submit, input exceeds the character limit!", self)

    def get_input(self) -> str:
        return self._input

    def _build_result(self) -> TextResult:
        return TextResult(self.id, self._input)

    def paste(self) -> None:
        """Append clipboard text, truncated to the character limit."""
        self._ensure_open("paste")
        try:
            clipboard = pyperclip.paste()
        except pyperclip.PyperclipException as exc:
            _logger.debug("clipboard.paste_failed", question_id=self.id, error=str(exc))
            return
        if not isinstance(clipboard, str) or not clipboard:
            return
        self._input = (self._input + clipboard)[: self.character_limit]

    def handle_key(self, code: int) -> None:
        if self._submitted:
            return
        if is_printable(code):
            if len(self._input) < self.character_limit:
                self._input += chr(code)
        elif code in BACKSPACE_CODES:
            self._input = self._input[:-1]
        elif code == PASTE:
            self.paste()
        elif code in SUBMIT_CODES and self._input.strip():
            self.submit()

    def draw(self, form: CLIForm) -> None:
        form.console.print(
            Text.assemble(
                (f"Enter Text ({len(self._input)}/{self.character_limit}): ", HINT_STYLE),
                self._input,
            ),
            end="",
        )


class IntegerQuestion(Question):
    """Whole number typed digit by digit, accepted within ``[min_value, max_value]``."""

    kind = "integer"

    def __init__(
        self,
        id: str,
        title: str,
        description: str = "",
        min_value: int = INT64_MIN,
        max_value: int = INT64_MAX,
    ) -> None:
        super().__init__(id, title, description)
        if not INT64_MIN <= min_value <= max_value <= INT64_MAX:
            raise QuestionError(f"Invalid bounds ({min_value}-{max_value}).", self)
        self.min_value = min_value
        self.max_value = max_value
        self._negative = False
        self._magnitude = 0

    @classmethod
    def up_to(cls, id: str, title: str, description: str, max_value: int) -> IntegerQuestion:
        """Question accepting ``0`` through ``max_value``."""
        return cls(id, title, description, 0, max_value)

    @property
    def bounds_text(self) -> str:
        return f"({self.min_value}-{self.max_value})"

    def _reset(self) -> None:
        self._negative = False
        self._magnitude = 0

    def in_bounds(self, number: int) -> bool:
        return self.min_value <= number <= self.max_value

    def set_input(self, number: int) -> None:
        self._ensure_open("set input")
        if not self.in_bounds(number):
            raise QuestionError(f"Cannot set input, input is not in set bounds {self.bounds_text}.", self)
        self._negative = number < 0
        self._magnitude = abs(number)

    def submit(self, number: Optional[int] = None) -> None:
        if number is not None:
            self.set_input(number)
        super().submit()

    def _validate(self) -> None:
        if not self.in_bounds(self.get_input()):
            raise QuestionError(f"Cannot submit, input is not in set bounds {self.bounds_text}.", self)

    def get_input(self) -> int:
        return -self._magnitude if self._negative else self._magnitude

    def _build_result(self) -> IntegerResult:
        return IntegerResult(self.id, self.get_input())

    def handle_key(self, code: int) -> None:
        if self._submitted:
            return
        key = NavigationKey.from_code(code)
        if key is NavigationKey.NUMERAL:
            self._magnitude = min(self._magnitude * 10 + (code - 48), INT64_MAX)
        elif code == MINUS and self._magnitude == 0:
            self._negative = True
        elif key is NavigationKey.BACKSPACE:
            if self._magnitude == 0:
                self._negative = False
            else:
                self._magnitude //= 10
        elif key is NavigationKey.SUBMIT and self.in_bounds(self.get_input()):
            self.submit()

    def draw(self, form: CLIForm) -> None:
        prompt = "Enter a number"
        if self.min_value != INT64_MIN:
            prompt += f" from {self.min_value}"
        if self.max_value != INT64_MAX:
            prompt += f" to {self.max_value}"
        shown = f"{'-' if self._negative else ' '}{self._magnitude}"
        value_style = HINT_STYLE if self.in_bounds(self.get_input()) else "red"
        form.console.print(Text.assemble((f"{prompt}: ", HINT_STYLE), (shown, value_style)), end="")


class BooleanQuestion(Question):
    """Yes/no question answered with a typed line; blank accepts the default."""

    kind = "boolean"

    TRUE_LETTERS: ClassVar[frozenset[str]] = frozenset("tysjk")
    FALSE_LETTERS: ClassVar[frozenset[str]] = frozenset("fn")

    def __init__(self, id: str, title: str, description: str = "", default: bool = True) -> None:
        super().__init__(id, title, description)
        self.default = default
        self._choice = default

    def _reset(self) -> None:
        self._choice = self.default

    def set_choice(self, choice: bool) -> None:
        self._ensure_open("set choice")
        self._choice = bool(choice)

    def submit(self, choice: Optional[bool] = None) -> None:
        if choice is not None:
            self.set_choice(choice)
        super().submit()

    def _validate(self) -> None:
        return None

    def get_input(self) -> bool:
        return self._choice

    def _build_result(self) -> BooleanResult:
        return BooleanResult(self.id, self._choice)

    def interpret(self, line: str) -> Optional[bool]:
        """Map typed text to a choice; ``None`` means the text is not understood."""
        stripped = line.strip()
        if not stripped:
            return self.default
        first = stripped[0].lower()
        if first in self.FALSE_LETTERS:
            return False
        if first in self.TRUE_LETTERS:
            return True
        return None

    def handle_line(self, line: str) -> bool:
        """Submit the choice typed on ``line``. Returns False if the line was not understood."""
        if self._submitted:
            return False
        choice = self.interpret(line)
        if choice is None:
            return False
        self.submit(choice)
        return True

    def handle_key(self, code: int) -> None:
        if code in SUBMIT_CODES:
            self.handle_line("")
        elif is_printable(code):
            self.handle_line(chr(code))

    def draw(self, form: CLIForm) -> None:
        form.console.print(f"Choice [{'Y|n' if self.default else 'y|N'}]: ", end="", markup=False)

    def render(self, form: CLIForm) -> None:
        error = False
        while not self._submitted:
            form.clear_output()
            form.draw_header(self)
            form.hint(self.hint_text)
            if error:
                form.console.print("Invalid Input! Try again:", style="red")
            self.draw(form)
            line = form.input.read_line()
            if line is None:
                raise FormCancelled(END_OF_INPUT)
            error = not self.handle_line(line)


def _unique_choices(question: Question, choices: Iterable[str]) -> tuple[str, ...]:
    labels = tuple(choices)
    if not labels:
        raise QuestionError("At least one choice is required.", question)
    if len(set(labels)) != len(labels):
        raise QuestionError("Choices must be unique.", question)
    return labels


class MultipleChoiceQuestion(Question):
    """Pick exactly one label from a list with a cursor."""

    kind = "multiple_choice"
    hint_text = "|| [W]: Up || [S]: Down || [ENTER]: Submit ||"

    def __init__(self, id: str, title: str, description: str, choices: Sequence[str]) -> None:
        super().__init__(id, title, description)
        self.choices = _unique_choices(self, choices)
        self._cursor = 0
        self._choice: Optional[str] = None

    @property
    def cursor(self) -> int:
        return self._cursor

    def _reset(self) -> None:
        self._cursor = 0
        self._choice = None

    def up(self) -> None:
        self._ensure_open("move cursor")
        if self._cursor > 0:
            self._cursor -= 1

    def down(self) -> None:
        self._ensure_open("move cursor")
        if self._cursor < len(self.choices) - 1:
            self._cursor += 1

    def select(self, choice: Union[int, str]) -> None:
        """Select a choice by index or by label."""
        self._ensure_open("set choice")
        if isinstance(choice, int) and not isinstance(choice, bool):
            if not 0 <= choice < len(self.choices):
                raise QuestionError(f"Cannot set choice, index {choice} is out of range.", self)
            index = choice
        elif choice in self.choices:
            index = self.choices.index(choice)
        else:
            raise QuestionError(f'Cannot set choice, valid choices don\'t contain specified choice: "{choice}"', self)
        self._cursor = index
        self._choice = self.choices[index]

    def submit(self, choice: Union[int, str, None] = None) -> None:
        if choice is not None:
            self.select(choice)
        super().submit()

    def _validate(self) -> None:
        if self._choice is None:
            raise QuestionError("Cannot submit, choice is not set!", self)

    def get_input(self) -> str:
        if self._choice is None:
            raise QuestionError("Cannot get choice, choice is not set!", self)
        return self._choice

    def _build_result(self) -> MultipleChoiceResult:
        return MultipleChoiceResult(self.id, self.get_input())

    def handle_key(self, code: int) -> None:
        if self._submitted:
            return
        key = NavigationKey.from_code(code)
        if key is NavigationKey.UP:
            self.up()
        elif key is NavigationKey.DOWN:
            self.down()
        elif key is NavigationKey.SUBMIT:
            self.submit(self._cursor)

    def draw(self, form: CLIForm) -> None:
        for index, label in enumerate(self.choices):
            line = Text("-> ")
            line.append(label, style=HIGHLIGHT_STYLE if index == self._cursor else None)
            form.console.print(line)


class CheckboxesQuestion(Question):
    """Toggle any number of labels on or off; submits the toggled ones."""

    kind = "checkboxes"
    hint_text = "|| [W]: Up || [S]: Down || [SPACE]: Toggle || [ENTER]: Submit ||"

    def __init__(self, id: str, title: str, description: str, choices: Sequence[str]) -> None:
        super().__init__(id, title, description)
        self.choices = _unique_choices(self, choices)
        self._toggled: dict[str, bool] = dict.fromkeys(self.choices, False)
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    def _reset(self) -> None:
        self._cursor = 0
        self._toggled = dict.fromkeys(self.choices, False)

    def up(self) -> None:
        self._ensure_open("move cursor")
        if self._cursor > 0:
            self._cursor -= 1

    def down(self) -> None:
        self._ensure_open("move cursor")
        if self._cursor < len(self.choices) - 1:
            self._cursor += 1

    def is_toggled(self, choice: str) -> bool:
        return self._toggled.get(choice, False)

    def toggle(self, choice: str) -> None:
        self._ensure_open("toggle choice")
        if choice not in self._toggled:
            raise QuestionError(f'Cannot toggle choice, valid choices don\'t contain specified choice: "{choice}"', self)
        self._toggled[choice] = not self._toggled[choice]

    def toggle_cursor(self) -> None:
        self.toggle(self.choices[self._cursor])

    def set_input(self, chosen: Union[str, Iterable[str]]) -> None:
        """Toggle exactly the given labels on and every other label off. A string is one label."""
        self._ensure_open("set input")
        wanted = {chosen} if isinstance(chosen, str) else set(chosen)
        unknown = wanted.difference(self.choices)
        if unknown:
            raise QuestionError(f"Cannot set input, unknown choices: {sorted(unknown)}", self)
        self._toggled = {label: label in wanted for label in self.choices}

    def submit(self, chosen: Union[str, Iterable[str], None] = None) -> None:
        if chosen is not None:
            self.set_input(chosen)
        super().submit()

    def _validate(self) -> None:
        return None

    def get_input(self) -> list[str]:
        return [label for label, on in self._toggled.items() if on]

    def _build_result(self) -> CheckboxesResult:
        return CheckboxesResult(self.id, tuple(self.get_input()))

    def handle_key(self, code: int) -> None:
        if self._submitted:
            return
        key = NavigationKey.from_code(code)
        if key is NavigationKey.UP:
            self.up()
        elif key is NavigationKey.DOWN:
            self.down()
        elif key is NavigationKey.TOGGLE:
            self.toggle_cursor()
        elif key is NavigationKey.SUBMIT:
            self.submit()

    def draw(self, form: CLIForm) -> None:
        for index, label in enumerate(self.choices):
            line = Text(f"[{'x' if self._toggled[label] else ' '}] ")
            line.append(label, style=HIGHLIGHT_STYLE if index == self._cursor else None)
            form.console.print(line)
