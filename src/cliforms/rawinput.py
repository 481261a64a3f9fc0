"""Single-keystroke console input without line buffering or echo.

The reader switches the controlling terminal into a raw-ish mode the first time
it is asked for a key and restores the original mode when the surrounding
``with`` block exits. An ``atexit`` hook restores the mode as well, for hosts
that exit without unwinding.

Supported back ends:
  - POSIX terminals via ``termios`` (canonical mode, echo and signals off)
  - Windows consoles via ``msvcrt`` and ``SetConsoleMode``
  - any other byte stream (pipes, files, ``io.BytesIO``) read as UTF-8
"""

from __future__ import annotations

import atexit
import codecs
import io
import os
import sys
import weakref
from contextlib import suppress
from typing import BinaryIO, Optional, Protocol

import structlog

from .config import get_settings
from .keys import END_OF_INPUT, INTERRUPT_CODES, INVALID_KEY, NO_DATA

_IS_WINDOWS = os.name == "nt"

if not _IS_WINDOWS:
    import select
    import termios

_logger = structlog.get_logger(__name__)

__all__ = [
    "FormCancelled",
    "KeyReader",
    "RawConsoleInput",
    "TerminalIOError",
    "stream_reader",
]

# Maximum number of bytes a single UTF-8 encoded character can occupy.
_MAX_CHAR_BYTES = 4

_STD_INPUT_HANDLE = -10
_ENABLE_PROCESSED_INPUT = 0x0001

# Readers that may leave the terminal altered; one process-wide atexit hook restores them.
_ALTERED_READERS: weakref.WeakSet[RawConsoleInput] = weakref.WeakSet()
_ATEXIT_REGISTERED = False


def _restore_all_at_exit() -> None:
    for reader in list(_ALTERED_READERS):
        with suppress(OSError):
            reader.reset_mode()


class FormCancelled(Exception):
    """Raised when the user presses an interrupt key (Ctrl-C or Ctrl-X)."""

    def __init__(self, code: int) -> None:
        super().__init__(f"Input cancelled by key code {code}")
        self.code = code


class TerminalIOError(OSError):
    """Querying or changing the terminal mode failed."""


class KeyReader(Protocol):
    """What forms need from an input source."""

    def read(self, wait: bool) -> int: ...

    def read_line(self) -> Optional[str]: ...

    def reset_mode(self) -> None: ...


class RawConsoleInput:
    """Reads single characters from the console without echo.

    ``read`` returns a character code between 0 and 0xFFFF, ``NO_DATA`` when
    ``wait`` is false and nothing is pending, or ``END_OF_INPUT`` at EOF.
    """

    def __init__(self, stream: Optional[BinaryIO] = None, *, exit_on_interrupt: Optional[bool] = None) -> None:
        self._stream = stream
        self._exit_on_interrupt = exit_on_interrupt
        self._init_done = False
        self._backend: str = "stream"  # "posix" | "windows" | "stream"
        self._mode_altered = False
        self._decoder = codecs.getincrementaldecoder("utf-8")("strict")
        # POSIX state
        self._fd: int = -1
        self._original_attrs: list | None = None
        self._raw_attrs: list | None = None
        self._intermediate_attrs: list | None = None
        # Windows state
        self._kernel32 = None
        self._console_handle = None
        self._original_console_mode: int = 0

    def __enter__(self) -> RawConsoleInput:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.reset_mode()
        _ALTERED_READERS.discard(self)

    @property
    def is_console(self) -> bool:
        """True when reading from a real terminal (after initialisation)."""
        self._init()
        return self._backend != "stream"

    @property
    def exit_on_interrupt(self) -> bool:
        if self._exit_on_interrupt is None:
            return get_settings().forms.exit_on_interrupt
        return self._exit_on_interrupt

    def read(self, wait: bool) -> int:
        """Read one character code, handling the interrupt keys.

        Ctrl-C and Ctrl-X raise :class:`FormCancelled`, or restore the terminal
        and exit the process when ``exit_on_interrupt`` is enabled.
        """
        self._init()
        if self._backend == "windows":
            code = self._read_windows(wait)
        elif self._backend == "posix":
            code = self._read_posix(wait)
        else:
            code = self._read_char_from_stream()

        if code in INTERRUPT_CODES:
            if self.exit_on_interrupt:
                self.reset_mode()
                sys.exit(0)
            raise FormCancelled(code)
        return code

    def read_line(self) -> Optional[str]:
        """Read a whole line in normal (cooked, echoing) mode, without the newline.

        Returns ``None`` at end of input, so an empty line stays distinguishable.
        """
        self._init()
        self.reset_mode()
        if self._backend == "windows":
            line = sys.stdin.readline()
            return line.rstrip("\r\n") if line else None
        data = bytearray()
        while True:
            byte = self._read_byte()
            if byte is None:
                if not data:
                    return None
                break
            if byte == b"\n":
                break
            data += byte
        return data.decode("utf-8", errors="replace").rstrip("\r")

    def reset_mode(self) -> None:
        """Restore the terminal mode captured on first read. Safe to call repeatedly."""
        if not self._init_done or not self._mode_altered:
            return
        if self._backend == "windows":
            self._set_console_mode(self._original_console_mode)
        elif self._backend == "posix" and self._original_attrs is not None:
            self._set_terminal_attrs(self._original_attrs)
        self._mode_altered = False
        _logger.debug("rawinput.mode_restored", backend=self._backend)

    # ------------------------------------------------------------------
    # initialisation

    def _input_stream(self) -> BinaryIO:
        if self._stream is not None:
            return self._stream
        return sys.stdin.buffer

    def _input_fd(self) -> int | None:
        try:
            return self._input_stream().fileno()
        except (AttributeError, OSError, ValueError):
            # io.UnsupportedOperation for in-memory streams
            return None

    def _init(self) -> None:
        if self._init_done:
            return
        fd = self._input_fd()
        if fd is not None and os.isatty(fd):
            if _IS_WINDOWS:
                self._init_windows()
            else:
                self._init_posix(fd)
        self._init_done = True
        _logger.debug("rawinput.init", backend=self._backend)

    def _register_atexit(self) -> None:
        global _ATEXIT_REGISTERED
        _ALTERED_READERS.add(self)
        if not _ATEXIT_REGISTERED:
            atexit.register(_restore_all_at_exit)
            _ATEXIT_REGISTERED = True

    # ------------------------------------------------------------------
    # POSIX

    def _init_posix(self, fd: int) -> None:
        self._fd = fd
        self._original_attrs = self._get_terminal_attrs()
        raw = [list(part) if isinstance(part, list) else part for part in self._original_attrs]
        raw[3] &= ~(termios.ICANON | termios.ECHO | termios.ECHONL | termios.ISIG)
        raw[6][termios.VMIN] = 1
        raw[6][termios.VTIME] = 0
        intermediate = [list(part) if isinstance(part, list) else part for part in raw]
        intermediate[3] |= termios.ICANON
        self._raw_attrs = raw
        self._intermediate_attrs = intermediate
        self._backend = "posix"
        self._register_atexit()

    def _get_terminal_attrs(self) -> list:
        try:
            return termios.tcgetattr(self._fd)
        except termios.error as exc:
            raise TerminalIOError("tcgetattr() failed.") from exc

    def _set_terminal_attrs(self, attrs: list) -> None:
        try:
            termios.tcsetattr(self._fd, termios.TCSANOW, attrs)
        except termios.error as exc:
            raise TerminalIOError("tcsetattr() failed.") from exc

    def _read_posix(self, wait: bool) -> int:
        assert self._raw_attrs is not None and self._intermediate_attrs is not None
        self._mode_altered = True
        self._set_terminal_attrs(self._raw_attrs)
        try:
            if not wait:
                ready, _, _ = select.select([self._fd], [], [], 0)
                if not ready:
                    return NO_DATA
            return self._read_char_from_stream()
        finally:
            self._set_terminal_attrs(self._intermediate_attrs)

    # ------------------------------------------------------------------
    # Windows

    def _init_windows(self) -> None:
        import ctypes
        from ctypes import wintypes

        kernel32 = ctypes.windll.kernel32
        kernel32.GetStdHandle.restype = wintypes.HANDLE
        handle = kernel32.GetStdHandle(_STD_INPUT_HANDLE)
        if handle in (None, 0, ctypes.c_void_p(-1).value):
            return
        mode = wintypes.DWORD()
        if not kernel32.GetConsoleMode(handle, ctypes.byref(mode)):
            return
        self._kernel32 = kernel32
        self._console_handle = handle
        self._original_console_mode = mode.value
        self._backend = "windows"
        self._register_atexit()

    def _set_console_mode(self, mode: int) -> None:
        if not self._kernel32.SetConsoleMode(self._console_handle, mode):
            raise TerminalIOError("SetConsoleMode() failed.")

    def _read_windows(self, wait: bool) -> int:
        import msvcrt

        self._mode_altered = True
        self._set_console_mode(self._original_console_mode & ~_ENABLE_PROCESSED_INPUT)
        if not wait and not msvcrt.kbhit():
            return NO_DATA
        code = ord(msvcrt.getwch())
        if code in (0, 0xE0):
            # Function and arrow keys arrive as a two-code sequence.
            code = ord(msvcrt.getwch())
            if 0 <= code <= 0x18FF:
                return 0xE000 + code
            return INVALID_KEY
        if code > 0xFFFF:
            return INVALID_KEY
        return code

    # ------------------------------------------------------------------
    # byte stream decoding

    def _read_byte(self) -> bytes | None:
        if self._backend == "posix":
            data = os.read(self._fd, 1)
        else:
            data = self._input_stream().read(1)
        return data or None

    def _read_char_from_stream(self) -> int:
        self._decoder.reset()
        for _ in range(_MAX_CHAR_BYTES):
            byte = self._read_byte()
            if byte is None:
                return END_OF_INPUT
            try:
                decoded = self._decoder.decode(byte)
            except UnicodeDecodeError:
                return INVALID_KEY
            if decoded:
                code = ord(decoded[0])
                return code if code <= 0xFFFF else INVALID_KEY
        return INVALID_KEY


def stream_reader(data: bytes | str, **kwargs) -> RawConsoleInput:
    """Build a reader over in-memory input; handy for scripted runs."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return RawConsoleInput(io.BytesIO(data), **kwargs)
