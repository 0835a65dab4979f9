import logging
from typing import List, Optional

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt

from .api import OllamaBackend, SuggestionProvider, create_backend
from .config import (
    CEREBRAS_MODELS,
    DEFAULT_MODELS,
    DEFAULT_OLLAMA_URL,
    Config,
    OutputSettings,
    get_config,
)
from .errors import ConfigurationError, ProviderError, TellaError
from .session import InteractiveSession
from .ui import console as default_console, display_error
from .updater import perform_upgrade

logger = logging.getLogger(__name__)


def handle_ask(question: str, config: Optional[Config] = None, console: Optional[Console] = None) -> int:
    """Handler for a plain question: suggest a command and run the session."""
    console = console or default_console
    config = config or get_config()
    try:
        config.validate()
        provider = SuggestionProvider(create_backend(config), config.output)
        return InteractiveSession(provider, config.output, console).run(question)
    except TellaError as e:
        logger.error(f"{type(e).__name__}: {e}")
        display_error(console, str(e))
        return 1


def handle_upgrade(console: Optional[Console] = None) -> int:
    """Handler for '--upgrade'."""
    console = console or default_console
    try:
        return perform_upgrade(console)
    except TellaError as e:
        display_error(console, str(e))
        return 1


def handle_settings(console: Optional[Console] = None, config: Optional[Config] = None) -> int:
    """Handler for '--settings': interactive setup that writes config.toml."""
    console = console or default_console
    config = config or get_config()
    try:
        _run_setup(console, config)
    except TellaError as e:
        display_error(console, str(e))
        return 1

    console.print()
    console.print("✅ Settings saved successfully!", style="green")
    console.print(f"Settings location: {config.config_file}", style="dim", markup=False)
    return 0


def _heading(console: Console, title: str):
    console.print()
    console.print(title, style="bold cyan")
    console.print("━" * 50)
    console.print()


def _run_setup(console: Console, config: Config):
    _heading(console, "🔧 Tella Configuration Setup")
    console.print("[bold]Which model provider would you like to use?[/bold]\n")
    console.print("  [cyan]1.[/cyan] Ollama (Local, fully offline, free)")
    console.print("  [cyan]2.[/cyan] Cerebras (Cloud-based, requires API key)")
    console.print("  [cyan]3.[/cyan] Gemini (Cloud-based, requires API key)")
    console.print()
    choice = Prompt.ask("[bold]Choose[/bold]", choices=["1", "2", "3"], console=console)

    if choice == "1":
        _setup_ollama(console, config)
    elif choice == "2":
        _setup_cerebras(console, config)
    else:
        _setup_gemini(console, config)

    config.output = _setup_output_settings(console)
    config.save()


def _pick_from(console: Console, items: List[str], prompt: str) -> str:
    for i, item in enumerate(items, 1):
        console.print(f"  {i}) {item}")
    console.print()
    index = IntPrompt.ask(prompt, console=console)
    if not 1 <= index <= len(items):
        raise ConfigurationError("Invalid selection.", hint="")
    return items[index - 1]


def _setup_ollama(console: Console, config: Config):
    _heading(console, "🎯 Ollama Setup")
    console.print("Make sure Ollama is installed and running.", style="yellow")
    base_url = Prompt.ask(
        "[bold]Enter Ollama base URL[/bold]", default=DEFAULT_OLLAMA_URL, console=console
    ).strip().rstrip("/")

    console.print("\nFetching available Ollama models...", style="cyan")
    try:
        models = OllamaBackend("", base_url).list_models()
        console.print(f"✅ Found {len(models)} models", style="green")
    except ProviderError as e:
        console.print(f"⚠️  Could not fetch models: {e}", style="yellow")
        console.print("You may need to start Ollama first.", style="yellow")
        models = []

    console.print()
    if models:
        console.print("[bold]Available models:[/bold]")
        model = _pick_from(console, models, "[bold]Select model number[/bold]")
    else:
        console.print("No models found. Pull one with: [cyan]ollama pull llama3.2[/cyan]", style="yellow")
        model = Prompt.ask("[bold]Enter Ollama model name[/bold]", console=console).strip()
    if not model:
        raise ConfigurationError("Model name cannot be empty.", hint="")

    config.provider = "ollama"
    config.model = model
    config.ollama_base_url = base_url


def _setup_cerebras(console: Console, config: Config):
    _heading(console, "🎯 Cerebras Setup")
    console.print("Get your API key from: https://console.cerebras.ai/", style="yellow")
    api_key = Prompt.ask("[bold]Enter your Cerebras API key[/bold]", password=True, console=console).strip()
    if not api_key:
        raise ConfigurationError("API key cannot be empty.", hint="")

    console.print("\n[bold]Which Cerebras model would you like to use?[/bold]")
    config.provider = "cerebras"
    config.cerebras_api_key = api_key
    config.model = _pick_from(console, CEREBRAS_MODELS, "[bold]Select model number[/bold]")


def _setup_gemini(console: Console, config: Config):
    _heading(console, "🎯 Gemini Setup")
    console.print("Get your API key from: https://aistudio.google.com/app/apikey", style="yellow")
    api_key = Prompt.ask("[bold]Enter your Gemini API key[/bold]", password=True, console=console).strip()
    if not api_key:
        raise ConfigurationError("API key cannot be empty.", hint="")

    config.provider = "gemini"
    config.gemini_api_key = api_key
    config.model = Prompt.ask(
        "[bold]Gemini model[/bold]", default=DEFAULT_MODELS["gemini"], console=console
    ).strip()


def _setup_output_settings(console: Console) -> OutputSettings:
    _heading(console, "📋 Output Settings")
    console.print("[bold]Choose which fields you want to display:[/bold]\n")
    return OutputSettings(
        show_command=Confirm.ask("Show command?", default=True, console=console),
        show_description=Confirm.ask("Show description?", default=True, console=console),
        show_explanation=Confirm.ask("Show explanation?", default=True, console=console),
        show_severity=Confirm.ask("Show severity?", default=True, console=console),
    )
