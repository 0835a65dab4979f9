import logging
import os
import re
import shlex
import sys
import threading
from typing import List, Optional

import requests
from rich.console import Console

from . import __version__
from .errors import TellaError
from .executor import CommandExecutor, executor as default_executor
from .menu import MenuSelector
from .ui import display_update_notice

logger = logging.getLogger(__name__)

PACKAGE_NAME = "tella"
PYPI_URL = f"https://pypi.org/pypi/{PACKAGE_NAME}/json"
CHECK_TIMEOUT = 3.0

INSTALLERS = ["pip", "pipx", "uv"]


def installer_command(name: str) -> str:
    """Upgrade command for `name`; pip targets the interpreter running tella."""
    if name == "pip":
        if os.name == "nt":
            return f'& "{sys.executable}" -m pip install --upgrade {PACKAGE_NAME}'
        return f"{shlex.quote(sys.executable)} -m pip install --upgrade {PACKAGE_NAME}"
    if name == "pipx":
        return f"pipx upgrade {PACKAGE_NAME}"
    if name == "uv":
        return f"uv tool upgrade {PACKAGE_NAME}"
    raise ValueError(f"Unknown installer: {name}")


def _version_parts(version: str) -> List[int]:
    parts = []
    for piece in version.strip().split("."):
        digits = re.match(r"\d+", piece)
        parts.append(int(digits.group()) if digits else 0)
    return parts


def should_update(latest: str, current: str = __version__) -> bool:
    """
    True if `latest` is newer than `current`.

    Components are compared pairwise as numbers; a missing component counts
    as 0, so "1.2" and "1.2.0" are equal.
    """
    latest_parts = _version_parts(latest)
    current_parts = _version_parts(current)
    width = max(len(latest_parts), len(current_parts))
    latest_parts += [0] * (width - len(latest_parts))
    current_parts += [0] * (width - len(current_parts))
    return latest_parts > current_parts


def fetch_latest_version(timeout: float = CHECK_TIMEOUT) -> str:
    """Latest version of tella published on PyPI."""
    try:
        response = requests.get(PYPI_URL, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
        return str(payload["info"]["version"]).strip()
    except requests.exceptions.RequestException as e:
        raise TellaError(f"Failed to fetch release info: {e}") from e
    except (ValueError, KeyError, TypeError) as e:
        raise TellaError(f"Failed to parse release info: {e}") from e


class UpdateChecker:
    """
    Best-effort background check for a newer release.

    The check runs on a daemon thread and never raises; notify() prints a hint
    only if the check already finished, so it never delays the caller.
    """

    def __init__(self, current: str = __version__):
        self.current = current
        self.latest: Optional[str] = None
        self._done = threading.Event()
        self._thread = threading.Thread(target=self._check, daemon=True)

    def start(self) -> "UpdateChecker":
        self._thread.start()
        return self

    def _check(self):
        try:
            self.latest = fetch_latest_version()
        except TellaError as e:
            logger.info(f"Update check skipped: {e}")
        finally:
            self._done.set()

    @property
    def update_available(self) -> bool:
        return self._done.is_set() and bool(self.latest) and should_update(self.latest, self.current)

    def notify(self, console: Console):
        if self.update_available:
            display_update_notice(console, self.current, self.latest)


def perform_upgrade(console: Console, executor: Optional[CommandExecutor] = None,
                    menu_factory=MenuSelector) -> int:
    """Upgrade tella with the installer the user picks. Returns an exit code."""
    executor = executor or default_executor
    console.print("🔄 Checking for updates...", style="cyan")
    latest = fetch_latest_version()

    if not should_update(latest):
        console.print("✓ You're already on the latest version!", style="green")
        return 0

    console.print("Which tool did you use to install tella?")
    menu = menu_factory(console)
    for name in INSTALLERS:
        menu.add_option(name)
    selected = menu.show()
    if selected >= len(INSTALLERS):
        console.print("Upgrade cancelled.", style="yellow")
        return 0

    name = INSTALLERS[selected]
    command = installer_command(name)
    console.print(f"⬆️  Upgrading from {__version__} to {latest} with {name}...", style="cyan")
    result = executor.execute_command(command)
    if result.output.strip():
        console.print(result.output.rstrip(), markup=False, highlight=False)
    if not result.success:
        console.print(f"Upgrade exited with status {result.returncode}.", style="red")
        return 1
    console.print("✓ Upgrade complete!", style="green")
    return 0
