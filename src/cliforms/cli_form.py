"""Terminal rendering of forms with raw keystroke input."""

from __future__ import annotations

import logging
import os
import sys
from typing import Iterable, Optional, TextIO

import structlog
from rich.console import Console
from rich.style import Style
from rich.text import Text

from .config import Settings, get_settings
from .form import INTRO_PAGE, Form, FormCallback, ThemeSpec
from .keys import END_OF_INPUT
from .questions import HINT_STYLE, Question
from .rawinput import FormCancelled, KeyReader, RawConsoleInput
from .results import FormResult
from .utils import wrap_description

_logger = structlog.get_logger(__name__)

__all__ = ["CLIForm", "configure_logging", "supports_ansi"]

_LOGGING_CONFIGURED = False
_log_stream: Optional[TextIO] = None


def configure_logging(settings: Settings) -> None:
    """Initialize structlog and stdlib logging, away from stdout where pages are drawn."""
    # Idempotent setup
    global _LOGGING_CONFIGURED, _log_stream
    if _LOGGING_CONFIGURED:
        return
    level = getattr(logging, settings.log_level.upper(), logging.WARNING)
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]
    if settings.log_json_enabled:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.processors.KeyValueRenderer(key_order=["event", "question_id", "page"]))
    if settings.log_file:
        _log_stream = open(settings.log_file, "a", encoding="utf-8")  # noqa: SIM115
        logger_factory = structlog.WriteLoggerFactory(file=_log_stream)
    else:
        logger_factory = structlog.PrintLoggerFactory(file=sys.stderr)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(level=level, stream=_log_stream or sys.stderr)
    # mark configured
    _LOGGING_CONFIGURED = True


def supports_ansi(os_name: Optional[str] = None) -> bool:
    """Windows needs an xterm-like ``TERM``; every other platform is assumed ANSI capable."""
    if (os_name or os.name) == "nt":
        term = os.environ.get("TERM")
        return term is not None and "xterm" in term
    return True


class CLIForm(Form):
    """A form drawn into the terminal and driven by single keystrokes.

    Each page clears the screen and redraws the whole panel after every key,
    so the output always matches the last processed key.
    """

    def __init__(
        self,
        title: str,
        description: str,
        questions: Iterable[Question] = (),
        *,
        theme: ThemeSpec = None,
        callback: Optional[FormCallback] = None,
        input: Optional[KeyReader] = None,
        console: Optional[Console] = None,
        clear_screen: Optional[bool] = None,
    ) -> None:
        settings = get_settings()
        if theme is None:
            theme = settings.forms.theme
        super().__init__(title, description, questions, theme=theme, callback=callback)
        self.input: KeyReader = input if input is not None else RawConsoleInput()
        self.console = console or Console(highlight=False)
        self.clear_screen = settings.forms.clear_screen if clear_screen is None else clear_screen
        self.description_width = settings.forms.description_width

    @property
    def accent(self) -> Style:
        return Style(color=self.theme)

    def clear_output(self) -> None:
        """Clear the screen with ``ESC[H ESC[2J``, or scroll it away without ANSI support."""
        if not self.clear_screen:
            self.console.print()
            return
        if supports_ansi():
            self.console.file.write("\033[H\033[2J")
            self.console.file.flush()
        else:
            self.console.print("\n" * 100, end="")

    def _print_wrapped(self, text: str, title: str) -> None:
        for line in wrap_description(text, title, min_width=self.description_width):
            self.console.print(Text.assemble(("|", self.accent), " ", line))

    def draw_header(self, question: Question) -> None:
        self.console.print(Text(f"-> {question.title} <-", style=self.accent + Style(bold=True)))
        self._print_wrapped(question.description, question.title)

    def hint(self, text: str) -> None:
        self.console.print(Text(f"\n{text}\n", style=HINT_STYLE))

    def _render_intro(self) -> None:
        self.clear_output()
        self.console.print(Text(f"=== {self.title} ===", style=self.accent + Style(bold=True)))
        self._print_wrapped(self.description, self.title)
        self.console.print(Text("\nPress any key to continue!", style=HINT_STYLE))
        if self.input.read(True) == END_OF_INPUT:
            raise FormCancelled(END_OF_INPUT)
        self.next_question()

    def render(self) -> None:
        """Render one page and advance past it."""
        if self.is_submitted():
            return
        if self.page == INTRO_PAGE:
            self._render_intro()
            return
        question = self.current_question()
        if question.is_submitted():
            self.next_question()
        elif not self.requirement_met(question):
            self.skip_current()
        else:
            question.render(self)
            self.next_question()

    def run(self) -> FormResult:
        """Render every page until the form is done and return its result.

        The terminal mode is restored on every exit path, including
        cancellation and errors.
        """
        configure_logging(get_settings())
        try:
            while not self.is_submitted():
                self.render()
        except FormCancelled:
            _logger.info("form.cancelled", title=self.title, page=self.page)
            raise
        finally:
            self.input.reset_mode()
            self.console.print()
        return self.to_result()
