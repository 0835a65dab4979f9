import unittest
from unittest.mock import patch, MagicMock

from tella.errors import ExecutionError
from tella.executor import CommandExecutor, ExecutionResult, ShellKind, detect_shell_kind, shell_argv


class TestCommandExecutor(unittest.TestCase):
    """Test cases for the CommandExecutor class."""

    def setUp(self):
        """Set up test fixtures."""
        self.executor = CommandExecutor(ShellKind.BASH)

    def mock_process(self, mock_popen, returncode, stdout, stderr):
        process_mock = MagicMock()
        process_mock.returncode = returncode
        process_mock.communicate.return_value = (stdout, stderr)
        mock_popen.return_value = process_mock

    @patch('tella.executor.subprocess.Popen')
    def test_execute_command_success(self, mock_popen):
        """Test successful command execution."""
        self.mock_process(mock_popen, 0, "command output", "")

        result = self.executor.execute_command("echo 'hello' | wc -c")

        self.assertTrue(result.success)
        self.assertEqual(result.stdout, "command output")
        self.assertEqual(result.output, "command output")

        # The literal command string goes to the shell untouched
        mock_popen.assert_called_once()
        args, kwargs = mock_popen.call_args
        self.assertEqual(args[0], ["bash", "-c", "echo 'hello' | wc -c"])

    @patch('tella.executor.subprocess.Popen')
    def test_execute_command_failure_with_stderr(self, mock_popen):
        """Test that a failure with diagnostics is raised."""
        self.mock_process(mock_popen, 1, "", "command error\n")

        with self.assertRaises(ExecutionError) as ctx:
            self.executor.execute_command("invalid_command")

        self.assertEqual(str(ctx.exception), "command error")
        self.assertEqual(ctx.exception.returncode, 1)

    @patch('tella.executor.subprocess.Popen')
    def test_execute_command_failure_without_stderr(self, mock_popen):
        """A silent non-zero exit is returned rather than raised."""
        self.mock_process(mock_popen, 1, "", "")

        result = self.executor.execute_command("false")

        self.assertFalse(result.success)
        self.assertEqual(result.output, "")

    @patch('tella.executor.subprocess.Popen')
    def test_stderr_on_success_is_appended(self, mock_popen):
        self.mock_process(mock_popen, 0, "out", "warning: something")

        result = self.executor.execute_command("tool")

        self.assertEqual(result.output, "out\nwarning: something")

    @patch('tella.executor.subprocess.Popen', side_effect=FileNotFoundError("bash"))
    def test_missing_shell(self, mock_popen):
        with self.assertRaises(ExecutionError):
            self.executor.execute_command("ls")


class TestShellSelection(unittest.TestCase):

    def test_detect_shell_kind(self):
        self.assertEqual(detect_shell_kind("Windows"), ShellKind.POWERSHELL)
        self.assertEqual(detect_shell_kind("Linux"), ShellKind.BASH)
        self.assertEqual(detect_shell_kind("Darwin"), ShellKind.SH)

    def test_shell_argv(self):
        self.assertEqual(shell_argv("Get-ChildItem", ShellKind.POWERSHELL), ["powershell", "-Command", "Get-ChildItem"])
        self.assertEqual(shell_argv("ls -la", ShellKind.SH), ["sh", "-c", "ls -la"])

    def test_result_output(self):
        self.assertEqual(ExecutionResult("x", 0, "a", "").output, "a")


if __name__ == "__main__":
    unittest.main()
