import io
import unittest
from unittest.mock import MagicMock, patch

from rich.console import Console

from tella.cli import create_parser, run_cli
from tella.errors import BackendConnectionError, ConfigurationError
from tella.handlers import handle_ask


class TestCreateParser(unittest.TestCase):

    def test_question_words_are_collected(self):
        args = create_parser().parse_args(["list", "files", "in", "current", "directory"])

        self.assertEqual(args.question, ["list", "files", "in", "current", "directory"])
        self.assertFalse(args.settings)
        self.assertFalse(args.upgrade)

    def test_flags(self):
        args = create_parser().parse_args(["--settings", "-v"])

        self.assertTrue(args.settings)
        self.assertTrue(args.verbose)
        self.assertEqual(args.question, [])


@patch("tella.cli.setup_logging")
@patch("tella.cli.get_config")
class TestRunCli(unittest.TestCase):

    @patch("tella.cli.display_home_page")
    def test_no_question_shows_home_page(self, mock_home, mock_get_config, _):
        self.assertEqual(run_cli([]), 0)
        mock_home.assert_called_once()

    @patch("tella.cli.UpdateChecker")
    @patch("tella.cli.handle_ask", return_value=0)
    def test_question_is_joined(self, mock_ask, mock_checker, mock_get_config, _):
        exit_code = run_cli(["show", "disk", "usage"])

        self.assertEqual(exit_code, 0)
        question, config, _console = mock_ask.call_args[0]
        self.assertEqual(question, "show disk usage")
        self.assertIs(config, mock_get_config.return_value)
        mock_checker.return_value.start.return_value.notify.assert_called_once()

    @patch("tella.cli.handle_settings", return_value=0)
    def test_settings(self, mock_settings, mock_get_config, _):
        self.assertEqual(run_cli(["--settings"]), 0)
        mock_settings.assert_called_once()

    @patch("tella.cli.handle_upgrade", return_value=1)
    def test_upgrade(self, mock_upgrade, mock_get_config, _):
        self.assertEqual(run_cli(["--upgrade"]), 1)
        mock_upgrade.assert_called_once()


class TestHandleAsk(unittest.TestCase):

    def setUp(self):
        self.output = io.StringIO()
        self.console = Console(file=self.output, width=120)
        self.config = MagicMock()

    def test_configuration_error(self):
        self.config.validate.side_effect = ConfigurationError("Configuration file not found.")

        exit_code = handle_ask("list files", self.config, self.console)

        self.assertEqual(exit_code, 1)
        printed = self.output.getvalue()
        self.assertIn("❌ Error: Configuration file not found.", printed)
        self.assertIn("tella --settings", printed)

    @patch("tella.handlers.InteractiveSession")
    @patch("tella.handlers.create_backend")
    def test_provider_error(self, mock_create_backend, mock_session):
        mock_session.return_value.run.side_effect = BackendConnectionError("Could not connect to Ollama")

        exit_code = handle_ask("list files", self.config, self.console)

        self.assertEqual(exit_code, 1)
        self.assertIn("Could not connect to Ollama", self.output.getvalue())

    @patch("tella.handlers.InteractiveSession")
    @patch("tella.handlers.create_backend")
    def test_session_exit_code(self, mock_create_backend, mock_session):
        mock_session.return_value.run.return_value = 0

        self.assertEqual(handle_ask("list files", self.config, self.console), 0)
        mock_session.return_value.run.assert_called_once_with("list files")


if __name__ == "__main__":
    unittest.main()
