import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.control import Control, ControlType
from rich.text import Text

from .terminal import (
    KEY_DOWN,
    KEY_ENTER,
    KEY_ESCAPE,
    KEY_INTERRUPT,
    KEY_LEFT,
    KEY_RIGHT,
    KEY_UP,
    RawTerminal,
    open_terminal,
)

logger = logging.getLogger(__name__)

# Pause before the first render so leftover input (e.g. the Enter that started
# tella) has arrived and can be drained
SETTLE_DELAY = 0.2
# Pause after each move; key-repeat events queued meanwhile are dropped
DEBOUNCE_DELAY = 0.15
POLL_INTERVAL = 0.05

MAX_NUMERIC_SHORTCUTS = 9


class MenuState(Enum):
    IDLE = "idle"
    DISPLAYING = "displaying"
    CLOSED = "closed"


@dataclass(frozen=True)
class MenuOption:
    label: str
    index: int


class MenuSelector:
    """
    A one-line, horizontal menu driven by the arrow keys.

    Left/Up and Right/Down move (wrapping at both ends), Enter picks the
    highlighted option, a digit picks that option directly, and Escape
    cancels. show() returns the chosen index, or `cancel_index` (one past
    the last option) on cancel.

    Example:
        choice = MenuSelector().add_option("Run").add_option("Stop").show()
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        terminal_factory: Callable[[Console], RawTerminal] = open_terminal,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.console = console or Console()
        self.terminal_factory = terminal_factory
        self.sleep = sleep
        self.options: List[MenuOption] = []
        self.selected = 0
        self.state = MenuState.IDLE

    def add_option(self, label: str) -> "MenuSelector":
        self.options.append(MenuOption(label, len(self.options)))
        return self

    @property
    def cancel_index(self) -> int:
        return len(self.options)

    def handle_key(self, key: str) -> Tuple[bool, Optional[int]]:
        """
        Apply one key press.

        Returns:
            (moved, result): `moved` is True when the highlight changed, and
            `result` is the value show() should return, or None to keep going.
        """
        count = len(self.options)
        if key in (KEY_LEFT, KEY_UP):
            self.selected = (self.selected - 1) % count
            return True, None
        if key in (KEY_RIGHT, KEY_DOWN):
            self.selected = (self.selected + 1) % count
            return True, None
        if key == KEY_ENTER:
            return False, self.selected
        if key == KEY_ESCAPE:
            return False, self.cancel_index
        if len(key) == 1 and key.isdigit():
            number = int(key)
            if 1 <= number <= min(count, MAX_NUMERIC_SHORTCUTS):
                self.selected = number - 1
                return False, self.selected
        return False, None

    def render(self):
        """Redraw the whole option line in place."""
        line = Text()
        for option in self.options:
            if option.index > 0:
                line.append(" | ")
            if option.index == self.selected:
                line.append(f"[{option.label}]", style="bold green")
            else:
                line.append(option.label, style="dim")
        self.console.control(
            Control.move_to_column(0),
            Control((ControlType.ERASE_IN_LINE, 2)),
        )
        self.console.print(line, end="", soft_wrap=True)

    def show(self, options: Sequence[str] = ()) -> int:
        """
        Display the menu and block until the user picks or cancels.

        Args:
            options: Extra labels to append before showing

        Returns:
            The selected option index, or `cancel_index` if cancelled

        Raises:
            TerminalError: If the terminal cannot enter or leave raw mode
            KeyboardInterrupt: On Ctrl-C, after the terminal is restored
        """
        for label in options:
            self.add_option(label)
        if not self.options:
            raise ValueError("MenuSelector needs at least one option")

        self.selected = min(self.selected, len(self.options) - 1)
        terminal = self.terminal_factory(self.console)
        try:
            with terminal:
                self.state = MenuState.DISPLAYING
                self.sleep(SETTLE_DELAY)
                terminal.drain()
                return self._loop(terminal)
        finally:
            self.state = MenuState.CLOSED
            self.console.print()

    def _loop(self, terminal: RawTerminal) -> int:
        while True:
            self.render()
            key = terminal.read_key(POLL_INTERVAL)
            if key is None:
                continue
            if key == KEY_INTERRUPT:
                raise KeyboardInterrupt
            moved, result = self.handle_key(key)
            if result is not None:
                logger.debug(f"Menu closed with {result}")
                return result
            if moved:
                self.sleep(DEBOUNCE_DELAY)
                terminal.drain()
