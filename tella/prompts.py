"""Prompt text sent to the model backends."""
import json
from typing import Dict

from .config import OutputSettings
from .executor import ShellKind
from .parser import ERROR_SENTINEL

SHELL_NAMES = {
    ShellKind.POWERSHELL: "Windows PowerShell",
    ShellKind.BASH: "Linux bash",
    ShellKind.SH: "POSIX sh (macOS/Unix)",
}

_FIELD_INSTRUCTIONS = {
    "command": "the exact {shell} command to run",
    "description": "brief description of what this command does",
    "explanation": "detailed explanation of how the command works",
    "severity": "one of: safe, warning, dangerous",
    "severity_description": "risk level explanation",
}


def system_prompt(shell_kind: ShellKind) -> str:
    shell = SHELL_NAMES[shell_kind]
    return (
        f"You are a strict {shell} command suggestion tool. ONLY respond to command requests. "
        "REJECT any conversational input, small talk, or non-command questions. "
        "Always respond with valid compact JSON only."
    )


def explanation_system_prompt(shell_kind: ShellKind) -> str:
    return f"You explain {SHELL_NAMES[shell_kind]} commands to users clearly and concisely."


def requested_fields(output: OutputSettings, include_explanation: bool = True) -> Dict[str, str]:
    """
    The JSON fields to ask the model for, in order.

    The command is always requested; everything else follows the output
    settings so disabled fields cost no tokens.
    """
    fields = ["command"]
    if output.show_description:
        fields.append("description")
    if output.show_explanation and include_explanation:
        fields.append("explanation")
    if output.show_severity:
        fields.extend(["severity", "severity_description"])
    return {name: _FIELD_INSTRUCTIONS[name] for name in fields}


def _rejection_example() -> str:
    return json.dumps({
        "command": ERROR_SENTINEL,
        "description": "This is not a command request. Please ask about a specific task you need help with.",
        "explanation": "tella is a command suggestion tool, not a chatbot. Please ask what command you need to run.",
        "severity": "warning",
        "severity_description": "Invalid input",
    })


def command_prompt(question: str, shell_kind: ShellKind, output: OutputSettings,
                   include_explanation: bool = True) -> str:
    """Prompt asking for a single command that accomplishes `question`."""
    shell = SHELL_NAMES[shell_kind]
    fields = requested_fields(output, include_explanation)
    shape = ", ".join(
        f'"{name}": "{hint.format(shell=shell)}"' for name, hint in fields.items()
    )

    return f"""You are ONLY a {shell} command suggestion tool. You MUST ONLY respond to legitimate command requests.

CRITICAL RULES:
1. You MUST provide ONLY actual {shell} commands to accomplish specific tasks
2. You MUST provide exactly ONE command (pipes and command chaining are allowed)
3. You MUST REJECT any non-command requests (small talk, questions, conversations, etc.)
4. If the user is not asking for a command, respond with: {_rejection_example()}
5. NEVER engage in conversation or provide non-command responses

User's request: {question}

If this IS a legitimate command request, respond with a compact JSON object (and ONLY the JSON, no markdown):
{{{shape}}}

If this is NOT a command request, respond with the ERROR format above."""


def explanation_prompt(command: str, shell_kind: ShellKind) -> str:
    """Prompt asking for a plain-text explanation of an already chosen command."""
    shell = SHELL_NAMES[shell_kind]
    return f"""Explain what the following {shell} command does, part by part, in a few short sentences.
Mention any side effects or risks. Respond with plain text only, no markdown and no JSON.

Command: {command}"""
