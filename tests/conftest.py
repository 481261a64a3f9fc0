import io
import logging
from collections import deque
from typing import Iterable, Optional, Union

import pytest
import structlog
from rich.console import Console

from cliforms import cli_form
from cliforms.cli_form import CLIForm
from cliforms.config import get_settings
from cliforms.keys import END_OF_INPUT, INTERRUPT_CODES
from cliforms.rawinput import FormCancelled

ENTER = 13
SPACE = 32
BACKSPACE = 127
UP = ord("w")
DOWN = ord("s")
CTRL_C = 3


def codes(*items: Union[str, int]) -> list[int]:
    """Flatten strings and ints into key codes: codes("hi", ENTER)."""
    out: list[int] = []
    for item in items:
        if isinstance(item, str):
            out.extend(ord(ch) for ch in item)
        else:
            out.append(item)
    return out


class ScriptedInput:
    """Key reader that replays prepared key codes and lines."""

    def __init__(self, keys: Iterable[int] = (), lines: Iterable[str] = ()) -> None:
        self.keys = deque(keys)
        self.lines = deque(lines)
        self.reads = 0
        self.line_reads = 0
        self.resets = 0

    def read(self, wait: bool) -> int:
        self.reads += 1
        if not self.keys:
            return END_OF_INPUT
        code = self.keys.popleft()
        if code in INTERRUPT_CODES:
            raise FormCancelled(code)
        return code

    def read_line(self) -> Optional[str]:
        self.line_reads += 1
        return self.lines.popleft() if self.lines else None

    def reset_mode(self) -> None:
        self.resets += 1


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep structlog at WARNING and skip the process-wide logging setup."""
    monkeypatch.setattr(cli_form, "_LOGGING_CONFIGURED", True)
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING))
    try:
        yield
    finally:
        structlog.reset_defaults()


@pytest.fixture
def isolated_env(monkeypatch):
    """Provide default settings for tests and reset caches."""
    for name in (
        "CLIFORMS_THEME",
        "CLIFORMS_TEXT_LIMIT",
        "CLIFORMS_EXIT_ON_INTERRUPT",
        "CLIFORMS_CLEAR_SCREEN",
        "CLIFORMS_DESCRIPTION_WIDTH",
        "LOG_FILE",
        "LOG_JSON_ENABLED",
        "LOG_RICH_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    try:
        yield
    finally:
        get_settings.cache_clear()


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=100, color_system=None, highlight=False)


@pytest.fixture
def make_form(isolated_env, console):
    """Build a CLIForm wired to scripted input and an in-memory console."""

    def _make(questions, keys=(), lines=(), **kwargs) -> CLIForm:
        reader = ScriptedInput(keys, lines)
        return CLIForm(
            kwargs.pop("title", "Test Form"),
            kwargs.pop("description", "A form used in tests."),
            questions,
            input=reader,
            console=console,
            **kwargs,
        )

    return _make
