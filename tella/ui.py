from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__
from .config import OutputSettings
from .parser import CommandSuggestion, Severity

console = Console()

SEVERITY_LABELS = {
    Severity.SAFE: ("🟢 SAFE", "green"),
    Severity.WARNING: ("🟡 WARNING", "yellow"),
    Severity.DANGEROUS: ("🔴 DANGEROUS", "red"),
    Severity.UNKNOWN: ("⚪ UNKNOWN", ""),
}


def display_suggestion(console: Console, suggestion: CommandSuggestion, output: OutputSettings):
    """Print the command and its one-line summary, as far as enabled."""
    if output.show_command:
        console.print(Text(suggestion.command, style="bold yellow"))

    summary = Text(style="dim")
    if output.show_severity:
        label, style = SEVERITY_LABELS[suggestion.severity]
        summary.append(label, style=style)
    if output.show_description and suggestion.description:
        if summary:
            summary.append(" - ")
        summary.append(suggestion.description)
    if summary:
        console.print(summary)


def display_rejection(console: Console, suggestion: CommandSuggestion):
    """The model decided the question was not a task."""
    if suggestion.description:
        console.print(Text(suggestion.description, style="red"))
    if suggestion.explanation:
        console.print(Text(suggestion.explanation, style="yellow"))
    if not (suggestion.description or suggestion.explanation):
        console.print(Text("No command was suggested for this request.", style="red"))


def display_explanation(console: Console, suggestion: CommandSuggestion):
    console.print()
    if suggestion.explanation:
        console.print(Text(suggestion.explanation))
    else:
        console.print(Text("No explanation available for this command.", style="dim"))
    console.print()


def display_command_output(console: Console, output: str):
    if output.strip():
        console.print()
        console.print(Text(output))
    else:
        console.print(Text("✅ Done!", style="green"))


def display_error(console: Console, message: str):
    console.print(Text(f"❌ Error: {message}", style="red"))


def display_farewell(console: Console):
    console.print(Text("Goodbye!", style="yellow"))


def display_update_notice(console: Console, current: str, latest: str):
    """Boxed hint that a newer release is on PyPI."""
    body = Text.assemble(
        "📦 Update available: ", (current, "bold"), " → ", (latest, "bold green"),
        "\nRun: tella --upgrade",
    )
    console.print()
    console.print(Panel(body, border_style="yellow", expand=False))


def display_home_page(console: Console):
    """Usage shown when tella is run without a question."""
    console.print(Text(f"tella - Command Assistant v{__version__}", style="bold cyan"))
    console.print("━" * 50)

    usage = Table.grid(padding=(0, 1))
    usage.add_column(style="cyan")
    usage.add_column()
    usage.add_row("$", "tella your question here")
    usage.add_row("$", "tella show me the last 5 git commits")
    usage.add_row("$", "tella --settings")
    usage.add_row("$", "tella --upgrade")
    console.print("\n[bold]Usage:[/bold]")
    console.print(usage)

    examples = Table.grid(padding=(0, 1))
    examples.add_column(style="cyan")
    examples.add_column()
    examples.add_row("$", "tella how to list files in directory")
    examples.add_row("$", "tella find large files on my system")
    examples.add_row("$", "tella create a backup of my files")
    console.print("\n[bold]Examples:[/bold]")
    console.print(examples)
