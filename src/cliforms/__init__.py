"""Terminal forms: page-by-page question wizards driven by raw keystrokes."""

from .cli_form import CLIForm, supports_ansi
from .form import Form, FormError
from .keys import END_OF_INPUT, INVALID_KEY, NO_DATA, NavigationKey
from .loader import FormDefinitionError, build_form, load_form
from .questions import (
    BooleanQuestion,
    CheckboxesQuestion,
    IntegerQuestion,
    MultipleChoiceQuestion,
    Question,
    QuestionError,
    Requirement,
    TextQuestion,
)
from .rawinput import FormCancelled, RawConsoleInput, TerminalIOError
from .results import (
    BooleanResult,
    CheckboxesResult,
    FormResult,
    IntegerResult,
    MultipleChoiceResult,
    Result,
    TextResult,
)

__all__ = [
    "END_OF_INPUT",
    "INVALID_KEY",
    "NO_DATA",
    "BooleanQuestion",
    "BooleanResult",
    "CLIForm",
    "CheckboxesQuestion",
    "CheckboxesResult",
    "Form",
    "FormCancelled",
    "FormDefinitionError",
    "FormError",
    "FormResult",
    "IntegerQuestion",
    "IntegerResult",
    "MultipleChoiceQuestion",
    "MultipleChoiceResult",
    "NavigationKey",
    "Question",
    "QuestionError",
    "RawConsoleInput",
    "Requirement",
    "Result",
    "TerminalIOError",
    "TextQuestion",
    "TextResult",
    "build_form",
    "load_form",
    "supports_ansi",
]
