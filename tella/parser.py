import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .errors import SuggestionParseError

logger = logging.getLogger(__name__)

ERROR_SENTINEL = "ERROR"
NO_COMMAND_SENTINEL = "no command returned"
_SENTINELS = {ERROR_SENTINEL.casefold(), NO_COMMAND_SENTINEL.casefold()}

SNIPPET_LENGTH = 200
FENCE = "```"


class Severity(Enum):
    """Risk classification of a suggested command."""

    SAFE = "safe"
    WARNING = "warning"
    DANGEROUS = "dangerous"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: Any) -> "Severity":
        """Map whatever the model sent to a severity, falling back to UNKNOWN."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.UNKNOWN


@dataclass(frozen=True)
class CommandSuggestion:
    """One recommended shell command plus what the model said about it."""

    command: str
    description: str = ""
    explanation: str = ""
    severity: Severity = Severity.UNKNOWN
    severity_description: str = ""

    @property
    def is_rejection(self) -> bool:
        """True when the model signalled that the input was not a task."""
        return is_sentinel(self.command)


def is_sentinel(command: str) -> bool:
    return command.strip().casefold() in _SENTINELS


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value)


def suggestion_from_dict(data: Dict[str, Any]) -> CommandSuggestion:
    """
    Build a suggestion from a decoded JSON object.

    Missing optional fields default to empty strings and an unknown severity.
    A missing or blank command becomes the "no command returned" sentinel so
    that nothing downstream ever tries to run an empty string.
    """
    command = _text(data.get("command"))
    if not command:
        command = NO_COMMAND_SENTINEL

    return CommandSuggestion(
        command=command,
        description=_text(data.get("description")),
        explanation=_text(data.get("explanation")),
        severity=Severity.from_value(data.get("severity")),
        severity_description=_text(data.get("severity_description")),
    )


def strip_fence(text: str) -> str:
    """
    Remove a surrounding markdown code fence, if there is one.

    Handles both ```json and bare ``` openers; the trailing fence is optional
    because models often stop early.
    """
    stripped = text.strip()
    if not stripped.startswith(FENCE):
        return text

    # Drop the opening fence line, including any language tag
    newline = stripped.find("\n")
    body = stripped[newline + 1:] if newline != -1 else stripped[len(FENCE):]

    body = body.rstrip()
    if body.endswith(FENCE):
        body = body[:-len(FENCE)]
    return body.strip()


def _decode_object(text: str) -> Dict[str, Any]:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _brace_span(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start:end + 1]


def parse_suggestion(text: str) -> CommandSuggestion:
    """
    Parse the model's raw text into a CommandSuggestion.

    Tries, in order: the full text, the text with a markdown fence removed,
    and the span between the first '{' and the last '}'.

    Args:
        text: Raw text returned by the model.

    Returns:
        The parsed suggestion.

    Raises:
        SuggestionParseError: If none of the attempts yield a JSON object.
    """
    try:
        return suggestion_from_dict(_decode_object(text))
    except ValueError as e:
        original_error = e

    logger.info("Model output was not plain JSON, attempting recovery")
    candidate = strip_fence(text)
    try:
        return suggestion_from_dict(_decode_object(candidate))
    except ValueError:
        pass

    span = _brace_span(candidate)
    if span is not None:
        try:
            return suggestion_from_dict(_decode_object(span))
        except ValueError:
            pass

    logger.error(f"Failed to parse model output: {text[:SNIPPET_LENGTH]!r}")
    raise SuggestionParseError(original_error, text[:SNIPPET_LENGTH])
