"""
Utility functions for lmrepl.

Shared helpers with no session state of their own:
  - Version lookup from the installed package metadata
  - Local token estimates for the conversation history (used by /c tokens)
  - The welcome header printed when the REPL starts
"""

from importlib.metadata import PackageNotFoundError, version

import tiktoken
from rich import box
from rich.markup import escape
from rich.panel import Panel

from .config import Settings
from .console import console
from .llm import ChatEntry

DEFAULT_ENCODING = "cl100k_base"


def get_version() -> str:
    """Installed package version, or "dev" when running from a source checkout."""
    try:
        return version("lmrepl")
    except PackageNotFoundError:
        return "dev"


def count_tokens(entries: list[ChatEntry], encoding_name: str = DEFAULT_ENCODING) -> int:
    """Estimate the tokens a conversation occupies using tiktoken.

    Follows OpenAI's accounting for chat models: every message costs 4 tokens
    of envelope (<im_start>{role}\\n{content}<im_end>\\n) plus its encoded
    role and text, and the reply priming (<im_start>assistant) adds 2.

    Providers tokenize differently, Gemini included, so this is an estimate.
    It is close enough to tell a short conversation from one that is about
    to hit a context limit.
    """
    try:
        encoding = tiktoken.get_encoding(encoding_name)
    except ValueError:
        encoding = tiktoken.get_encoding(DEFAULT_ENCODING)

    num_tokens = 0
    for entry in entries:
        num_tokens += 4
        num_tokens += len(encoding.encode(entry.role))
        num_tokens += len(encoding.encode(entry.text))
    num_tokens += 2
    return num_tokens


def print_header(settings: Settings, model_name: str):
    """Print the welcome panel with provider, model and the command quick reference."""
    header_text = f"""[bold purple]lmrepl[/bold purple] [dim]v{get_version()}[/dim]
[dim]Provider: {escape(settings.provider)}[/dim]
[dim]Model: {escape(model_name)}[/dim]

[bold]Commands:[/bold]
  [green]/help[/green]         - Show all commands
  [green]/m <model>[/green]    - Switch model
  [green]/c history[/green]    - Summarize the conversation
  [green]/c clear[/green]      - Clear the conversation
  [green]...[/green]           - Start a multi-line message, end it with [green].[/green]
  [green]/quit[/green]         - Exit"""

    console.print(Panel(header_text, box=box.ROUNDED, expand=False))
