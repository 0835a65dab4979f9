import io
import os
import unittest
from unittest.mock import MagicMock, patch

import requests
from rich.console import Console

from tella import __version__
from tella.errors import TellaError
from tella.executor import ExecutionResult
from tella.updater import (
    INSTALLERS,
    UpdateChecker,
    fetch_latest_version,
    installer_command,
    perform_upgrade,
    should_update,
)


def pypi_response(version=None, body=None, json_error=None):
    response = MagicMock()
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body if body is not None else {"info": {"version": version}}
    return response


class FakeMenu:
    """Records the options it was given and returns a fixed choice."""

    def __init__(self, choice):
        self.choice = choice
        self.labels = []

    def __call__(self, console):
        return self

    def add_option(self, label):
        self.labels.append(label)
        return self

    def show(self, options=()):
        self.labels.extend(options)
        return self.choice


class TestShouldUpdate(unittest.TestCase):

    def test_newer_patch(self):
        self.assertTrue(should_update("1.2.0", "1.1.9"))

    def test_same_version(self):
        self.assertFalse(should_update("1.2.0", "1.2.0"))

    def test_older_release(self):
        self.assertFalse(should_update("1.2.0", "1.3.0"))

    def test_missing_component_counts_as_zero(self):
        self.assertFalse(should_update("1.2", "1.2.0"))
        self.assertFalse(should_update("1.2.0", "1.2"))
        self.assertTrue(should_update("1.2.1", "1.2"))

    def test_components_compare_numerically(self):
        self.assertTrue(should_update("0.1.20", "0.1.9"))

    def test_non_numeric_suffix(self):
        self.assertTrue(should_update("1.3.0rc1", "1.2.5"))
        self.assertFalse(should_update("garbage", "0.0.1"))


class TestFetchLatestVersion(unittest.TestCase):

    @patch("tella.updater.requests.get")
    def test_reads_info_version(self, mock_get):
        mock_get.return_value = pypi_response(" 0.2.0 ")

        self.assertEqual(fetch_latest_version(), "0.2.0")
        mock_get.assert_called_once_with("https://pypi.org/pypi/tella/json", timeout=3.0)

    @patch("tella.updater.requests.get")
    def test_network_error(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("offline")

        with self.assertRaises(TellaError) as ctx:
            fetch_latest_version()
        self.assertIn("Failed to fetch release info", str(ctx.exception))

    @patch("tella.updater.requests.get")
    def test_unexpected_body(self, mock_get):
        mock_get.return_value = pypi_response(body={"releases": {}})

        with self.assertRaises(TellaError) as ctx:
            fetch_latest_version()
        self.assertIn("Failed to parse release info", str(ctx.exception))

    @patch("tella.updater.requests.get")
    def test_not_json(self, mock_get):
        mock_get.return_value = pypi_response(json_error=ValueError("Expecting value"))

        with self.assertRaises(TellaError):
            fetch_latest_version()


class TestUpdateChecker(unittest.TestCase):

    def setUp(self):
        self.output = io.StringIO()
        self.console = Console(file=self.output, width=100)

    @patch("tella.updater.fetch_latest_version", return_value="9.9.9")
    def test_notifies_when_newer(self, _):
        checker = UpdateChecker("0.1.0").start()
        checker._thread.join()

        self.assertTrue(checker.update_available)
        checker.notify(self.console)
        printed = self.output.getvalue()
        self.assertIn("9.9.9", printed)
        self.assertIn("tella --upgrade", printed)

    @patch("tella.updater.fetch_latest_version", return_value="0.1.0")
    def test_silent_when_current(self, _):
        checker = UpdateChecker("0.1.0").start()
        checker._thread.join()

        checker.notify(self.console)
        self.assertEqual(self.output.getvalue(), "")

    @patch("tella.updater.fetch_latest_version", side_effect=TellaError("offline"))
    def test_errors_are_swallowed(self, _):
        checker = UpdateChecker("0.1.0").start()
        checker._thread.join()

        self.assertFalse(checker.update_available)
        checker.notify(self.console)
        self.assertEqual(self.output.getvalue(), "")

    def test_unfinished_check_does_not_notify(self):
        checker = UpdateChecker("0.1.0")
        checker.latest = "9.9.9"

        self.assertFalse(checker.update_available)


class TestInstallerCommand(unittest.TestCase):

    @unittest.skipIf(os.name == "nt", "POSIX quoting")
    @patch("tella.updater.sys.executable", "/opt/my envs/bin/python3.12")
    def test_pip_uses_running_interpreter(self):
        self.assertEqual(
            installer_command("pip"),
            "'/opt/my envs/bin/python3.12' -m pip install --upgrade tella",
        )

    @patch("tella.updater.os.name", "nt")
    @patch("tella.updater.sys.executable", r"C:\Program Files\Python312\python.exe")
    def test_pip_on_powershell(self):
        self.assertEqual(
            installer_command("pip"),
            r'& "C:\Program Files\Python312\python.exe" -m pip install --upgrade tella',
        )

    def test_tool_installers(self):
        self.assertEqual(installer_command("pipx"), "pipx upgrade tella")
        self.assertEqual(installer_command("uv"), "uv tool upgrade tella")

    def test_unknown_installer(self):
        with self.assertRaises(ValueError):
            installer_command("conda")


class TestPerformUpgrade(unittest.TestCase):

    def setUp(self):
        self.output = io.StringIO()
        self.console = Console(file=self.output, width=100)
        self.executor = MagicMock()

    @unittest.skipIf(os.name == "nt", "POSIX quoting")
    @patch("tella.updater.sys.executable", "/usr/local/bin/python3")
    @patch("tella.updater.fetch_latest_version", return_value="99.0.0")
    def test_pip_upgrade_runs_current_interpreter(self, _):
        self.executor.execute_command.return_value = ExecutionResult("", 0, "", "")

        perform_upgrade(self.console, self.executor, FakeMenu(0))

        self.executor.execute_command.assert_called_once_with(installer_command("pip"))
        self.assertIn("/usr/local/bin/python3 -m pip install --upgrade tella",
                      self.executor.execute_command.call_args[0][0])

    @patch("tella.updater.fetch_latest_version", return_value=__version__)
    def test_already_latest(self, _):
        menu = FakeMenu(0)

        exit_code = perform_upgrade(self.console, self.executor, menu)

        self.assertEqual(exit_code, 0)
        self.assertEqual(menu.labels, [])
        self.executor.execute_command.assert_not_called()
        self.assertIn("already on the latest version", self.output.getvalue())

    @patch("tella.updater.fetch_latest_version", return_value="99.0.0")
    def test_upgrades_with_chosen_installer(self, _):
        menu = FakeMenu(1)
        self.executor.execute_command.return_value = ExecutionResult("pipx upgrade tella", 0, "upgraded tella\n", "")

        exit_code = perform_upgrade(self.console, self.executor, menu)

        self.assertEqual(exit_code, 0)
        self.assertEqual(menu.labels, ["pip", "pipx", "uv"])
        self.executor.execute_command.assert_called_once_with("pipx upgrade tella")
        printed = self.output.getvalue()
        self.assertIn("upgraded tella", printed)
        self.assertIn("Upgrade complete", printed)

    @patch("tella.updater.fetch_latest_version", return_value="99.0.0")
    def test_cancelled(self, _):
        exit_code = perform_upgrade(self.console, self.executor, FakeMenu(len(INSTALLERS)))

        self.assertEqual(exit_code, 0)
        self.executor.execute_command.assert_not_called()
        self.assertIn("Upgrade cancelled.", self.output.getvalue())

    @patch("tella.updater.fetch_latest_version", return_value="99.0.0")
    def test_failed_installer(self, _):
        self.executor.execute_command.return_value = ExecutionResult("uv tool upgrade tella", 2, "", "")

        exit_code = perform_upgrade(self.console, self.executor, FakeMenu(2))

        self.assertEqual(exit_code, 1)
        self.assertIn("Upgrade exited with status 2.", self.output.getvalue())


if __name__ == "__main__":
    unittest.main()
