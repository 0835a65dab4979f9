"""
Raw keyboard access for the interactive menu.

A terminal object is a context manager: entering it switches stdin to raw,
unechoed input and hides the cursor; leaving it restores both, whatever
happened in between. Keys are returned as the KEY_* names below or as the
literal character typed.
"""
import logging
import os
import sys
import time
from typing import Optional

from rich.console import Console

from .errors import TerminalError

logger = logging.getLogger(__name__)

try:
    import termios
    import tty
    import select
    HAS_TERMIOS = True
except ImportError:
    HAS_TERMIOS = False

KEY_UP = "up"
KEY_DOWN = "down"
KEY_LEFT = "left"
KEY_RIGHT = "right"
KEY_ENTER = "enter"
KEY_ESCAPE = "escape"
KEY_INTERRUPT = "interrupt"

# Final byte of CSI / SS3 arrow sequences (ESC [ A, ESC O A, ...)
_ANSI_ARROWS = {"A": KEY_UP, "B": KEY_DOWN, "C": KEY_RIGHT, "D": KEY_LEFT}
# Second byte after the 0x00 / 0xE0 prefix msvcrt uses for special keys
_WINDOWS_ARROWS = {"H": KEY_UP, "P": KEY_DOWN, "M": KEY_RIGHT, "K": KEY_LEFT}

# How long to wait for the rest of an escape sequence before treating ESC as a key
ESCAPE_SEQUENCE_WAIT = 0.03


def _single_char_key(ch: str) -> str:
    if ch in ("\r", "\n"):
        return KEY_ENTER
    if ch == "\x1b":
        return KEY_ESCAPE
    if ch == "\x03":
        return KEY_INTERRUPT
    return ch


class RawTerminal:
    """Common cursor handling; subclasses switch the input mode and read keys."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.active = False

    def __enter__(self) -> "RawTerminal":
        self._enable_raw_mode()
        self.active = True
        try:
            self.console.show_cursor(False)
        except Exception as e:
            self._restore()
            raise TerminalError(f"Failed to hide the cursor: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb):
        self._restore()
        return False

    def _restore(self):
        """Show the cursor and leave raw mode, attempting both even if one fails."""
        errors = []
        try:
            self.console.show_cursor(True)
        except Exception as e:
            errors.append(f"show cursor: {e}")
        if self.active:
            try:
                self._disable_raw_mode()
            except Exception as e:
                errors.append(f"restore input mode: {e}")
            self.active = False
        if errors:
            logger.error(f"Terminal restore failed: {'; '.join(errors)}")
            raise TerminalError(f"Failed to restore the terminal ({'; '.join(errors)})")

    def drain(self):
        """Discard every key already waiting in the input queue."""
        while self.read_key(0) is not None:
            pass

    def _enable_raw_mode(self):
        raise NotImplementedError

    def _disable_raw_mode(self):
        raise NotImplementedError

    def read_key(self, timeout: float) -> Optional[str]:
        """Wait up to `timeout` seconds for a key; None if nothing arrived."""
        raise NotImplementedError


class PosixTerminal(RawTerminal):
    """termios-based raw input for Linux and macOS."""

    def __init__(self, console: Optional[Console] = None, stream=None):
        super().__init__(console)
        self.stream = stream or sys.stdin
        self._saved_attributes = None

    def _enable_raw_mode(self):
        try:
            self._fd = self.stream.fileno()
            if not os.isatty(self._fd):
                raise TerminalError("Interactive menu needs a terminal, but stdin is not a TTY")
            self._saved_attributes = termios.tcgetattr(self._fd)
            tty.setraw(self._fd)
        except (termios.error, OSError, ValueError) as e:
            raise TerminalError(f"Failed to enable raw mode: {e}") from e

    def _disable_raw_mode(self):
        if self._saved_attributes is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attributes)
            self._saved_attributes = None

    def _ready(self, timeout: float) -> bool:
        readable, _, _ = select.select([self._fd], [], [], timeout)
        return bool(readable)

    def _read_char(self) -> str:
        return os.read(self._fd, 1).decode("utf-8", errors="ignore")

    def read_key(self, timeout: float) -> Optional[str]:
        if not self._ready(timeout):
            return None
        ch = self._read_char()
        if ch != "\x1b":
            return _single_char_key(ch)

        # A lone ESC is the Escape key; ESC followed quickly by more is a sequence
        if not self._ready(ESCAPE_SEQUENCE_WAIT):
            return KEY_ESCAPE
        sequence = ""
        while self._ready(0) and len(sequence) < 8:
            sequence += self._read_char()
            # The introducer ('[' or 'O') is followed by params and a final letter or '~'
            if len(sequence) >= 2 and (sequence[-1].isalpha() or sequence[-1] == "~"):
                break
        if len(sequence) >= 2 and sequence[0] in "[O":
            return _ANSI_ARROWS.get(sequence[-1], sequence)
        return sequence or KEY_ESCAPE


class WindowsTerminal(RawTerminal):
    """msvcrt-based input; console reads through getwch are already raw."""

    POLL_STEP = 0.01

    def _enable_raw_mode(self):
        try:
            import msvcrt
        except ImportError as e:
            raise TerminalError(f"Console input is not available: {e}") from e
        self._msvcrt = msvcrt

    def _disable_raw_mode(self):
        pass

    def read_key(self, timeout: float) -> Optional[str]:
        deadline = time.monotonic() + timeout
        while not self._msvcrt.kbhit():
            if time.monotonic() >= deadline:
                return None
            time.sleep(self.POLL_STEP)
        ch = self._msvcrt.getwch()
        if ch in ("\x00", "\xe0"):
            code = self._msvcrt.getwch()
            return _WINDOWS_ARROWS.get(code, code)
        return _single_char_key(ch)


def open_terminal(console: Optional[Console] = None) -> RawTerminal:
    """The raw terminal implementation for this platform."""
    if os.name == "nt":
        return WindowsTerminal(console)
    if not HAS_TERMIOS:
        raise TerminalError("Raw terminal input is not supported on this platform")
    return PosixTerminal(console)
