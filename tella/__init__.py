"""
tella: turn a plain-language task into a shell command.

Ask a question, get one command suggested by an LLM backend (Cerebras, a local
Ollama server, or Gemini), then run it, read an explanation, or walk away,
all from a small arrow-key menu in the terminal.
"""

__version__ = "0.1.19"
