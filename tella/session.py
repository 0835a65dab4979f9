import logging
from enum import Enum
from typing import Callable, List, Optional

from rich.console import Console

from .api import SuggestionProvider
from .config import OutputSettings
from .errors import ExecutionError
from .executor import CommandExecutor, executor as default_executor
from .menu import MenuSelector
from .parser import CommandSuggestion
from .ui import (
    display_command_output,
    display_error,
    display_explanation,
    display_farewell,
    display_rejection,
    display_suggestion,
)

logger = logging.getLogger(__name__)

RUN = "Run"
EXPLAIN = "Explain"
STOP = "Stop"


class SessionState(Enum):
    QUERYING = "querying"
    DISPLAYING = "displaying"
    AWAITING_CHOICE = "awaiting_choice"
    EXECUTING = "executing"
    EXPLAINING = "explaining"
    DONE = "done"


class InteractiveSession:
    """
    One question, start to finish: query the model once, show the suggestion,
    then let the user run it, read the explanation, or stop.
    """

    def __init__(
        self,
        provider: SuggestionProvider,
        output: Optional[OutputSettings] = None,
        console: Optional[Console] = None,
        executor: Optional[CommandExecutor] = None,
        menu_factory: Optional[Callable[[Console], MenuSelector]] = None,
    ):
        self.provider = provider
        self.output = output or OutputSettings()
        self.console = console or Console()
        self.executor = executor or default_executor
        self.menu_factory = menu_factory or MenuSelector
        self.state = SessionState.QUERYING
        self.suggestion: Optional[CommandSuggestion] = None

    def menu_options(self) -> List[str]:
        """Explain is left out entirely when explanations are turned off."""
        if self.output.show_explanation:
            return [RUN, EXPLAIN, STOP]
        return [RUN, STOP]

    def run(self, question: str) -> int:
        """
        Run the session for `question` and return the process exit code.

        Raises:
            ProviderError: If no suggestion could be obtained
            TerminalError: If the menu could not take over the terminal
        """
        self.state = SessionState.QUERYING
        with self.console.status("[yellow]Thinking...[/yellow]"):
            self.suggestion = self.provider.suggest(question)

        if self.suggestion.is_rejection:
            logger.info(f"Model rejected the request: {question}")
            display_rejection(self.console, self.suggestion)
            self.state = SessionState.DONE
            return 0

        self.state = SessionState.DISPLAYING
        display_suggestion(self.console, self.suggestion, self.output)
        self.console.print()

        options = self.menu_options()
        while True:
            self.state = SessionState.AWAITING_CHOICE
            selected = self.menu_factory(self.console).show(options)
            choice = options[selected] if selected < len(options) else None

            if choice == RUN:
                return self._execute()
            if choice == EXPLAIN:
                self.state = SessionState.EXPLAINING
                display_explanation(self.console, self.suggestion)
                continue

            display_farewell(self.console)
            self.state = SessionState.DONE
            return 0

    def _execute(self) -> int:
        self.state = SessionState.EXECUTING
        try:
            result = self.executor.execute_command(self.suggestion.command)
        except ExecutionError as e:
            display_error(self.console, str(e))
            return 1
        finally:
            self.state = SessionState.DONE

        display_command_output(self.console, result.output)
        return 0
