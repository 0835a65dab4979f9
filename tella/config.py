import os
import toml
import logging
from dataclasses import dataclass, field
from typing import Optional, Any
from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)

PROVIDERS = ("cerebras", "ollama", "gemini")

CEREBRAS_MODELS = [
    "llama3.3-70b",
    "llama3.1-8b",
    "gpt-oss-120b",
    "qwen-3-235b-a22b-instruct-2507",
    "qwen-3-235b-a22b-thinking-2507",
    "qwen-3-coder-480b",
]

DEFAULT_MODELS = {
    "cerebras": "gpt-oss-120b",
    "gemini": "gemini-2.5-flash",
}

DEFAULT_OLLAMA_URL = "http://localhost:11434"

# Local models can take a while to load; cloud backends wait indefinitely
DEFAULT_OLLAMA_TIMEOUT = 120.0

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _default_config_dir() -> str:
    if os.name == "nt" and os.environ.get("APPDATA"):
        return os.path.join(os.environ["APPDATA"], "tella")
    return os.path.expanduser("~/.config/tella")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class OutputSettings:
    """Which suggestion fields are shown (and requested from the model)."""

    show_command: bool = True
    show_description: bool = True
    show_explanation: bool = True
    show_severity: bool = True


@dataclass
class Config:
    """Configuration handler for tella."""

    config_dir: str = field(default_factory=_default_config_dir)
    config_file: Optional[str] = None
    _file_config: dict = field(init=False, repr=False)
    _load_error: Optional[str] = field(init=False, repr=False, default=None)

    # API configuration
    provider: Optional[str] = field(init=False)
    cerebras_api_key: Optional[str] = field(init=False)
    gemini_api_key: Optional[str] = field(init=False)
    model: Optional[str] = field(init=False)
    ollama_base_url: str = field(init=False)
    request_timeout: Optional[float] = field(init=False)

    # Output configuration
    output: OutputSettings = field(init=False)

    # Application configuration
    log_dir: str = field(init=False)
    verbose: bool = field(init=False)

    def __post_init__(self):
        """Post-initialization to resolve every setting."""
        if self.config_file is None:
            self.config_file = os.path.join(self.config_dir, "config.toml")
        self._file_config = self._load_config_from_file()

        self.provider = self._get_config("TELLA_PROVIDER")
        if self.provider:
            self.provider = str(self.provider).strip().lower()
        self.cerebras_api_key = self._get_config("CEREBRAS_API_KEY")
        self.gemini_api_key = self._get_config("GEMINI_API_KEY")
        self.model = self._get_config("TELLA_MODEL") or DEFAULT_MODELS.get(self.provider)
        self.ollama_base_url = str(self._get_config("OLLAMA_BASE_URL", DEFAULT_OLLAMA_URL)).rstrip("/")
        self.request_timeout = self._resolve_timeout()

        self.output = OutputSettings(
            show_command=_as_bool(self._get_config("TELLA_SHOW_COMMAND", True)),
            show_description=_as_bool(self._get_config("TELLA_SHOW_DESCRIPTION", True)),
            show_explanation=_as_bool(self._get_config("TELLA_SHOW_EXPLANATION", True)),
            show_severity=_as_bool(self._get_config("TELLA_SHOW_SEVERITY", True)),
        )

        self.log_dir = self._get_config("TELLA_LOG_DIR", os.path.join(self.config_dir, "logs"))
        self.verbose = _as_bool(self._get_config("TELLA_VERBOSE", False))

    @property
    def exists(self) -> bool:
        return os.path.exists(self.config_file)

    def _load_config_from_file(self) -> dict:
        """Loads configuration from the TOML file."""
        if not self.exists:
            return {}
        try:
            with open(self.config_file, 'r') as f:
                return toml.load(f)
        except (toml.TomlDecodeError, IOError) as e:
            logger.warning(f"Could not read config file at {self.config_file}: {e}")
            self._load_error = f"Failed to read settings file {self.config_file}: {e}."
            return {}

    def _get_config(self, key: str, default: Optional[Any] = None) -> Any:
        """
        Get a configuration value, prioritizing environment variables,
        then the config file, and finally a default value.
        """
        # 1. Check environment variable
        value = os.environ.get(key)
        if value is not None:
            return value

        # 2. Check config file
        for section in self._file_config.values():
            if isinstance(section, dict) and key in section:
                return section[key]

        # 3. Return default
        return default

    def _resolve_timeout(self) -> Optional[float]:
        value = self._get_config("TELLA_REQUEST_TIMEOUT")
        if value is None or value == "":
            return DEFAULT_OLLAMA_TIMEOUT if self.provider == "ollama" else None
        try:
            timeout = float(value)
        except (TypeError, ValueError):
            self._load_error = f"TELLA_REQUEST_TIMEOUT must be a number of seconds, got {value!r}."
            return None
        return timeout if timeout > 0 else None

    def validate(self) -> None:
        """
        Validate the configuration for the query path.

        Raises:
            ConfigurationError: If the settings are missing or unusable.
        """
        if self._load_error:
            raise ConfigurationError(self._load_error)

        if not self.exists and not os.environ.get("TELLA_PROVIDER"):
            raise ConfigurationError("Settings file not found.")

        if self.provider not in PROVIDERS:
            raise ConfigurationError(
                f"Invalid provider {self.provider!r} in settings. Must be one of: {', '.join(PROVIDERS)}."
            )

        if self.provider == "cerebras" and not self.cerebras_api_key:
            raise ConfigurationError("CEREBRAS_API_KEY is not configured.")
        if self.provider == "gemini" and not self.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured.")
        if not self.model:
            raise ConfigurationError("No model is configured.")

    def to_dict(self) -> dict:
        """Settings in the layout written to config.toml."""
        api = {"TELLA_PROVIDER": self.provider or "", "TELLA_MODEL": self.model or ""}
        if self.cerebras_api_key:
            api["CEREBRAS_API_KEY"] = self.cerebras_api_key
        if self.gemini_api_key:
            api["GEMINI_API_KEY"] = self.gemini_api_key
        if self.provider == "ollama":
            api["OLLAMA_BASE_URL"] = self.ollama_base_url

        return {
            "api": api,
            "output": {
                "TELLA_SHOW_COMMAND": self.output.show_command,
                "TELLA_SHOW_DESCRIPTION": self.output.show_description,
                "TELLA_SHOW_EXPLANATION": self.output.show_explanation,
                "TELLA_SHOW_SEVERITY": self.output.show_severity,
            },
            "application": {
                "TELLA_LOG_DIR": self.log_dir,
                "TELLA_VERBOSE": self.verbose,
            },
        }

    def save(self) -> None:
        """Writes the current settings to the TOML file."""
        try:
            os.makedirs(self.config_dir, exist_ok=True)
            with open(self.config_file, 'w') as f:
                toml.dump(self.to_dict(), f)
        except IOError as e:
            raise ConfigurationError(f"Failed to write settings file {self.config_file}: {e}.", hint="")
        self._load_error = None
        logger.info(f"Settings saved to {self.config_file}")

    def __str__(self) -> str:
        """Return string representation of the configuration."""
        config_dict = self.__dict__.copy()
        for key in ("cerebras_api_key", "gemini_api_key"):
            secret = config_dict.get(key)
            if secret:
                config_dict[key] = f"{secret[:4]}...{secret[-4:]}" if len(secret) > 8 else "****"
        del config_dict['_file_config']  # Don't print the raw file contents
        return str(config_dict)


# Singleton instance holder
_config_instance: Optional[Config] = None

def get_config() -> Config:
    """Returns the singleton Config instance."""
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance
