import logging
import platform
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .errors import ExecutionError

# Configure logging
logger = logging.getLogger(__name__)


class ShellKind(Enum):
    """The shell family commands are written for and run with."""

    POWERSHELL = "powershell"
    BASH = "bash"
    SH = "sh"


def detect_shell_kind(system: Optional[str] = None) -> ShellKind:
    """Pick the shell for the host OS (or the given platform.system() name)."""
    system = system or platform.system()
    if system == "Windows":
        return ShellKind.POWERSHELL
    if system == "Linux":
        return ShellKind.BASH
    return ShellKind.SH


def shell_argv(command: str, shell_kind: ShellKind) -> List[str]:
    """Argument vector that hands the literal command string to the shell."""
    if shell_kind is ShellKind.POWERSHELL:
        return ["powershell", "-Command", command]
    return [shell_kind.value, "-c", command]


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of running one command."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout, followed by stderr when there is any."""
        if not self.stderr:
            return self.stdout
        return f"{self.stdout}\n{self.stderr}"


class CommandExecutor:
    """Handles execution of shell commands."""

    def __init__(self, shell_kind: Optional[ShellKind] = None):
        self.shell_kind = shell_kind or detect_shell_kind()

    def execute_command(self, command: str) -> ExecutionResult:
        """
        Execute a single shell command and wait for it to finish.

        Args:
            command: The shell command to execute, passed to the shell verbatim

        Returns:
            The execution result

        Raises:
            ExecutionError: If the shell cannot be started, or the command exits
                non-zero and wrote to stderr
        """
        logger.info(f"Executing command with {self.shell_kind.value}: {command}")

        try:
            process = subprocess.Popen(
                shell_argv(command, self.shell_kind),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace"
            )
            stdout, stderr = process.communicate()
        except OSError as e:
            logger.exception(f"Error executing command '{command}': {str(e)}")
            raise ExecutionError(f"Failed to execute command: {e}") from e

        result = ExecutionResult(command, process.returncode, stdout or "", stderr or "")

        if result.success:
            logger.info(f"Command executed successfully: {command}")
        else:
            logger.error(f"Command failed with return code {result.returncode}: {command}")
            if result.stderr:
                logger.error(f"stderr: {result.stderr}")
                raise ExecutionError(result.stderr.strip(), result.returncode)

        return result


# Create a global executor instance
executor = CommandExecutor()
