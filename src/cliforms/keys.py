"""Keystroke codes and the navigation key table used by question renderers."""

from __future__ import annotations

from enum import Enum
from typing import Final

NO_DATA: Final[int] = -2
END_OF_INPUT: Final[int] = -1
INVALID_KEY: Final[int] = 0xFFFE

BACKSPACE_CODES: Final[frozenset[int]] = frozenset({8, 127})
SUBMIT_CODES: Final[frozenset[int]] = frozenset({10, 13})
INTERRUPT_CODES: Final[frozenset[int]] = frozenset({3, 24})
PASTE: Final[int] = 22  # Ctrl-V
MINUS: Final[int] = 45


class NavigationKey(Enum):
    """Navigation category of a raw key code."""

    UP = "up"
    DOWN = "down"
    TOGGLE = "toggle"
    SUBMIT = "submit"
    BACKSPACE = "backspace"
    NUMERAL = "numeral"
    EXIT = "exit"
    INVALID = "invalid"

    @classmethod
    def from_code(cls, code: int) -> NavigationKey:
        if 48 <= code <= 57:
            return cls.NUMERAL
        return _KEY_TABLE.get(code, cls.INVALID)


_KEY_TABLE: Final[dict[int, NavigationKey]] = {
    119: NavigationKey.UP,
    87: NavigationKey.UP,
    115: NavigationKey.DOWN,
    83: NavigationKey.DOWN,
    32: NavigationKey.TOGGLE,
    **{code: NavigationKey.SUBMIT for code in SUBMIT_CODES},
    **{code: NavigationKey.BACKSPACE for code in BACKSPACE_CODES},
    **{code: NavigationKey.EXIT for code in INTERRUPT_CODES},
}

# Human-readable rows for help output: (keys, meaning).
KEY_HELP: Final[tuple[tuple[str, str], ...]] = (
    ("w / W", "Move cursor up"),
    ("s / S", "Move cursor down"),
    ("Space", "Toggle checkbox"),
    ("Enter", "Submit"),
    ("Backspace / Delete", "Remove last character or digit"),
    ("0-9", "Enter digits"),
    ("Ctrl-V", "Paste clipboard (text questions)"),
    ("Ctrl-C / Ctrl-X", "Cancel the form"),
)


def is_printable(code: int) -> bool:
    """Return True for printable ASCII (space through tilde)."""
    return 32 <= code <= 126
