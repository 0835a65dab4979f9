import dataclasses
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

import google.generativeai as genai
import requests
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import GenerationConfig

from .config import Config, OutputSettings
from .errors import (
    BackendConnectionError,
    BackendTimeoutError,
    ConfigurationError,
    ProviderError,
    RateLimitError,
    ResponseFormatError,
)
from .executor import ShellKind, detect_shell_kind
from .parser import CommandSuggestion, parse_suggestion
from .prompts import command_prompt, explanation_prompt, explanation_system_prompt, system_prompt

# Configure logging
logger = logging.getLogger(__name__)

CEREBRAS_URL = "https://api.cerebras.ai/v1/chat/completions"
MODEL_LIST_TIMEOUT = 5.0

_RATE_LIMIT_MARKERS = (
    "rate limit",
    "rate_limit",
    "too many requests",
    "quota",
    "insufficient_quota",
    "exhausted",
)


def looks_like_rate_limit(text: str) -> bool:
    s = (text or "").lower()
    return any(marker in s for marker in _RATE_LIMIT_MARKERS)


class BackendKind(Enum):
    """Which backend serves suggestions; each has its own response shape."""

    CEREBRAS = "cerebras"
    OLLAMA = "ollama"
    GEMINI = "gemini"


class Backend:
    """
    Common interface of the model backends.

    complete() sends one prompt and returns the model's raw text. Subclasses
    implement the transport and the decoding of their response shape.
    """

    kind: BackendKind
    name: str
    # Whether the explanation is fetched with a second, separate call
    separate_explanation = False

    def __init__(self, model: str, timeout: Optional[float] = None):
        self.model = model
        self.timeout = timeout

    def complete(self, prompt: str, system: str, json_output: bool = True) -> str:
        raise NotImplementedError

    def _timeout_error(self) -> BackendTimeoutError:
        if self.timeout is None:
            return BackendTimeoutError(f"{self.name} did not respond in time.")
        return BackendTimeoutError(f"{self.name} did not respond within {self.timeout:g}s.")

    def _post(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Any:
        """POST a JSON payload and return the decoded JSON body."""
        logger.info(f"Sending request to {self.name} ({self.model})")
        try:
            response = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.ReadTimeout as e:
            raise self._timeout_error() from e
        except requests.exceptions.ConnectionError as e:
            raise BackendConnectionError(f"Could not connect to {self.name}: {e}") from e
        except requests.exceptions.Timeout as e:
            raise self._timeout_error() from e
        except requests.exceptions.RequestException as e:
            raise BackendConnectionError(f"Request to {self.name} failed: {e}") from e

        if response.status_code == 429 or (not response.ok and looks_like_rate_limit(response.text)):
            logger.warning(f"{self.name} rate limit hit: {response.text[:200]}")
            raise RateLimitError(
                f"{self.name} rate limit or quota reached. Wait a moment and try again."
            )
        if not response.ok:
            logger.error(f"{self.name} returned HTTP {response.status_code}: {response.text[:500]}")
            raise ProviderError(
                f"{self.name} request failed with HTTP {response.status_code}: {response.text[:200].strip()}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise ResponseFormatError(f"Failed to parse response from {self.name}: {e}") from e


class CerebrasBackend(Backend):
    """Chat-completion style backend (OpenAI-compatible Cerebras API)."""

    kind = BackendKind.CEREBRAS
    name = "Cerebras"

    def __init__(self, api_key: str, model: str, timeout: Optional[float] = None, url: str = CEREBRAS_URL):
        super().__init__(model, timeout)
        self.api_key = api_key
        self.url = url

    def complete(self, prompt: str, system: str, json_output: bool = True) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.7,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        return self.decode(self._post(self.url, payload, headers))

    @staticmethod
    def decode(body: Any) -> str:
        """Extract choices[0].message.content."""
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ResponseFormatError("Invalid response format from API") from e
        if not isinstance(content, str):
            raise ResponseFormatError("Invalid response format from API")
        return content


class OllamaBackend(Backend):
    """Generation style backend served by a local Ollama instance."""

    kind = BackendKind.OLLAMA
    name = "Ollama"
    separate_explanation = True

    def __init__(self, model: str, base_url: str, timeout: Optional[float] = None):
        super().__init__(model, timeout)
        self.base_url = base_url.rstrip("/")

    def _timeout_error(self) -> BackendTimeoutError:
        waited = f"within {self.timeout:g}s" if self.timeout is not None else "in time"
        return BackendTimeoutError(
            f"Ollama did not respond {waited}. The model may still be loading; "
            "try again in a moment or raise TELLA_REQUEST_TIMEOUT."
        )

    def complete(self, prompt: str, system: str, json_output: bool = True) -> str:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "system": system,
            "stream": False,
            "options": {"temperature": 0.2},
        }
        if json_output:
            payload["format"] = "json"
        return self.decode(self._post(f"{self.base_url}/api/generate", payload))

    @staticmethod
    def decode(body: Any) -> str:
        """Extract the single `response` field."""
        if not isinstance(body, dict) or not isinstance(body.get("response"), str):
            raise ResponseFormatError("Invalid response format from Ollama")
        return body["response"]

    def list_models(self) -> List[str]:
        """Names of the models installed on the Ollama server."""
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=MODEL_LIST_TIMEOUT)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout as e:
            raise BackendTimeoutError("Connection timeout") from e
        except requests.exceptions.RequestException as e:
            raise BackendConnectionError(f"Connection failed: {e}") from e
        except ValueError as e:
            raise ResponseFormatError(f"Failed to parse response: {e}") from e

        # schema: {"models": [{"name": "llama3.2:1b", ...}, ...]}
        models = data.get("models") if isinstance(data, dict) else None
        return [m["name"] for m in models or [] if isinstance(m, dict) and m.get("name")]


class GeminiBackend(Backend):
    """Google Gemini through the google-generativeai SDK."""

    kind = BackendKind.GEMINI
    name = "Gemini"

    def __init__(self, api_key: str, model: str, timeout: Optional[float] = None):
        super().__init__(model, timeout)
        genai.configure(api_key=api_key)
        self.client = genai.GenerativeModel(model)
        logger.info(f"Initialized Gemini client with model: {model}")

    def complete(self, prompt: str, system: str, json_output: bool = True) -> str:
        generation_config = GenerationConfig(
            temperature=0.7,
            response_mime_type="application/json" if json_output else "text/plain",
        )
        request_options = {"timeout": self.timeout} if self.timeout else None
        logger.info(f"Sending request to Gemini ({self.model})")
        try:
            response = self.client.generate_content(
                f"{system}\n\n{prompt}",
                generation_config=generation_config,
                request_options=request_options,
            )
        except google_exceptions.ResourceExhausted as e:
            raise RateLimitError("Gemini rate limit or quota reached. Wait a moment and try again.") from e
        except google_exceptions.DeadlineExceeded as e:
            raise self._timeout_error() from e
        except (google_exceptions.ServiceUnavailable, google_exceptions.RetryError) as e:
            raise BackendConnectionError(f"Could not connect to Gemini: {e}") from e
        except google_exceptions.GoogleAPIError as e:
            raise ProviderError(f"Gemini request failed: {e}") from e
        return self.decode(response)

    @staticmethod
    def decode(response: Any) -> str:
        """Extract response.text; blocked or empty candidates have none."""
        try:
            return response.text
        except (ValueError, AttributeError, IndexError) as e:
            raise ResponseFormatError(f"Gemini returned no text: {e}") from e


def create_backend(config: Config) -> Backend:
    """Build the backend selected in the settings."""
    try:
        kind = BackendKind(config.provider)
    except ValueError:
        raise ConfigurationError(f"Invalid provider {config.provider!r} in settings.") from None

    if kind is BackendKind.CEREBRAS:
        return CerebrasBackend(config.cerebras_api_key, config.model, config.request_timeout)
    if kind is BackendKind.OLLAMA:
        return OllamaBackend(config.model, config.ollama_base_url, config.request_timeout)
    return GeminiBackend(config.gemini_api_key, config.model, config.request_timeout)


class SuggestionProvider:
    """Turns a question into a CommandSuggestion using one backend."""

    def __init__(self, backend: Backend, output: Optional[OutputSettings] = None,
                 shell_kind: Optional[ShellKind] = None):
        self.backend = backend
        self.output = output or OutputSettings()
        self.shell_kind = shell_kind or detect_shell_kind()

    def suggest(self, question: str) -> CommandSuggestion:
        """
        Ask the backend for a command that accomplishes `question`.

        Args:
            question: The user's task in natural language

        Returns:
            The parsed suggestion; a rejection sentinel when the model decided
            the input was not a task

        Raises:
            ProviderError: If the backend fails or its answer cannot be parsed
        """
        prompt = command_prompt(
            question,
            self.shell_kind,
            self.output,
            include_explanation=not self.backend.separate_explanation,
        )
        text = self.backend.complete(prompt, system_prompt(self.shell_kind))
        suggestion = parse_suggestion(text)
        logger.info(f"Suggested command: {suggestion.command}")

        if (self.backend.separate_explanation
                and self.output.show_explanation
                and not suggestion.is_rejection):
            suggestion = dataclasses.replace(suggestion, explanation=self.explain(suggestion.command))
        return suggestion

    def explain(self, command: str) -> str:
        """Fetch an explanation for `command`; any failure yields ''."""
        try:
            text = self.backend.complete(
                explanation_prompt(command, self.shell_kind),
                explanation_system_prompt(self.shell_kind),
                json_output=False,
            )
        except ProviderError as e:
            logger.warning(f"Could not fetch explanation for '{command}': {e}")
            return ""
        return text.strip()
