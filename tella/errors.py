"""Exception types raised across tella.

Every error is reported to the user as a single line, so messages should read
well on their own.
"""
from typing import Optional


class TellaError(Exception):
    """Base class for all tella errors."""


class ConfigurationError(TellaError):
    """Settings are missing or invalid."""

    def __init__(self, message: str, hint: str = "Run 'tella --settings' to configure."):
        self.hint = hint
        super().__init__(f"{message} {hint}" if hint else message)


class ProviderError(TellaError):
    """The model backend could not produce a suggestion."""


class BackendConnectionError(ProviderError):
    """The backend could not be reached."""


class BackendTimeoutError(ProviderError):
    """The backend did not answer within the configured wait."""


class RateLimitError(ProviderError):
    """The backend rejected the request because of a rate limit or quota."""


class ResponseFormatError(ProviderError):
    """The backend answered with an unexpected payload shape."""


class SuggestionParseError(ProviderError):
    """The model's text could not be turned into a suggestion."""

    def __init__(self, error: Exception, snippet: str):
        self.error = error
        self.snippet = snippet
        super().__init__(f"Failed to parse command suggestion: {error} (model said: {snippet!r})")


class ExecutionError(TellaError):
    """The suggested command exited non-zero with diagnostic output."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)


class TerminalError(TellaError):
    """The terminal could not be switched into or out of raw mode."""
