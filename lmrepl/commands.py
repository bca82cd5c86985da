"""
Commands: every effect a line of input can have on the REPL.

The parser (parser.py) never changes the session itself. It turns each line
into a Command object and the REPL loop calls `execute()` on it. Typing plain
text, entering multi-line mode, submitting, switching models and quitting
are all Commands. That keeps the parser a pure function of (line, mode) and
gives each effect one small, testable home.

Shape of the model:
  - `Command` is a Protocol with a single `execute() -> None` method. Failure
    is signalled by raising; the REPL loop catches and prints it.
  - Each command is an independent dataclass holding the session reference
    and its own parameters. There is no base class to inherit from.
  - `ChainCmd` runs several commands in order and stops at the first one that
    raises, so "append this line, then submit" is a chain of two.

This module also holds the metadata registry (COMMANDS) used for /help and
tab completion, and the CommandRegistry that resolves `/c <name>`
sub-commands.

Submit in detail (SubmitCmd.execute):
  1. Note the start time.
  2. Enter a try/finally whose `finally` resets the turn flags, so a one-shot
     flag like `/c suppress` never leaks into the following turn, whether this
     turn succeeds, fails, or turns out to be blank.
  3. Append the buffered text to history as a user entry.
  4. Reset the input buffer and prompt before touching the network, so a
     failure below cannot leave the terminal stuck in multi-line mode.
  5. Ask the provider for a response stream.
  6. BlankInputError (the message was nothing but @mentions): retract the
     user entry and return quietly.
  7. Any other request error: raise SubmitError. The user entry stays in
     history so the attempt remains visible in `/c history`.
  8. Stream the reply to the terminal (streaming.py).
  9. Append the reply to history as an assistant entry.
  If the stream breaks mid-reply, StreamInterruptedError propagates and the
  partial reply is not added to history.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Protocol, TypedDict

from rich.markup import escape

from .console import console
from .llm import (
    ROLE_ASSISTANT,
    ROLE_USER,
    TURN_FLAG_SUPPRESS_GROUNDING,
    BlankInputError,
    ChatEntry,
    LLMError,
    SolicitResponseInput,
)
from .session import SessionState
from .streaming import ResponseStreamConsumer
from .utils import count_tokens

logger = logging.getLogger(__name__)

SUBCOMMAND_PREFIX = "/c"
SUMMARY_MAX_LENGTH = 80
SUMMARY_ELLIPSIS = "..."


class SubmitError(LLMError):
    """The provider rejected a submission before any reply was streamed."""


class Command(Protocol):
    def execute(self) -> None: ...


@dataclass
class NoOpCmd:
    """Does nothing; the result of a blank line."""

    def execute(self) -> None:
        return None


@dataclass
class QuitCmd:
    session: SessionState

    def execute(self) -> None:
        self.session.stop_requested = True
        console.print("\n[green]Goodbye![/green]")


@dataclass
class PrintErrorCmd:
    """Show an error, by default forcing the input state back to single-line mode."""

    session: SessionState
    error: BaseException
    reset_input: bool = True

    def execute(self) -> None:
        if self.reset_input:
            try:
                self.session.reset_input()
            except Exception as e:
                console.print(
                    f"<Error>An error occurred when resetting the input buffer: {e}</Error>",
                    style="bold red",
                    markup=False,
                )
        console.print(f"<Error>{str(self.error).rstrip()}</Error>", style="bold red", markup=False)


@dataclass
class AppendCmd:
    session: SessionState
    text: str

    def execute(self) -> None:
        self.session.append_input(self.text)


@dataclass
class ChainCmd:
    commands: list[Command]

    def execute(self) -> None:
        for command in self.commands:
            command.execute()


@dataclass
class EnterMultiLineCmd:
    session: SessionState

    def execute(self) -> None:
        self.session.enter_multi_line()


@dataclass
class SubmitCmd:
    session: SessionState
    consumer: ResponseStreamConsumer | None = field(default=None, compare=False)

    def execute(self) -> None:
        session = self.session
        start_time = time.time()
        try:
            session.history.append(ChatEntry(role=ROLE_USER, text=session.pending_input))
            session.reset_input()

            request = SolicitResponseInput(
                entries=list(session.history),
                model_name=session.active_model,
                turn_flags=dict(session.turn_flags),
            )
            try:
                with console.status("[bold purple]Thinking...[/bold purple]", spinner="dots"):
                    stream = session.provider.solicit_response(request)
            except BlankInputError:
                logger.debug("blank input, retracting user entry")
                session.history.pop()
                return
            except Exception as e:
                logger.error("llm client error", exc_info=True)
                raise SubmitError(f"llm client error: {e}") from e

            console.print(f"[{session.active_model}]:", style="bold yellow", markup=False)
            consumer = self.consumer or ResponseStreamConsumer(console)
            result = consumer.consume(stream, start_time)
            logger.debug(
                "turn complete: %d tokens in %.2fs", result.token_count, result.elapsed
            )
            session.history.append(ChatEntry(role=ROLE_ASSISTANT, text=result.text))
        finally:
            session.reset_turn_flags()


@dataclass
class SetModelCmd:
    """Switch models. The name is not checked; a bad one fails on the next submit."""

    session: SessionState
    model_name: str

    def execute(self) -> None:
        self.session.set_model(self.model_name)
        console.print(f"[green]✓ Model set to {escape(self.model_name)}[/green]")


@dataclass
class SuppressCmd:
    session: SessionState

    def execute(self) -> None:
        self.session.turn_flags[TURN_FLAG_SUPPRESS_GROUNDING] = True
        console.print("[yellow]Grounding suppressed for the next message[/yellow]")


@dataclass
class ClearHistoryCmd:
    session: SessionState

    def execute(self) -> None:
        self.session.history.clear()
        console.print("[bold yellow]\\[Current conversation cleared][/bold yellow]")
        self.session.reset_input()


def _role_prefix(entry: ChatEntry) -> str:
    if entry.role == ROLE_USER:
        return f"{'[User]: ':>15}"
    if entry.role == ROLE_ASSISTANT:
        return f"{'[Assistant]: ':>15}"
    return "[Unknown]: "


def summarize_text(text: str) -> str:
    """One-line preview of a message: newlines become ¶, long text is cut at 80 chars."""
    summarized = text.strip().replace("\n", "¶ ")
    if len(summarized) > SUMMARY_MAX_LENGTH:
        return summarized[: SUMMARY_MAX_LENGTH - len(SUMMARY_ELLIPSIS)] + SUMMARY_ELLIPSIS
    return summarized


@dataclass
class SummarizeHistoryCmd:
    session: SessionState

    def execute(self) -> None:
        console.print("=== Conversation Summary ===", markup=False)
        for entry in self.session.history:
            console.print(
                f"{_role_prefix(entry)} {summarize_text(entry.text)}",
                markup=False,
                highlight=False,
                soft_wrap=True,
            )
        console.print("======= End Summary ========", markup=False)


@dataclass
class TokensCmd:
    """Local tiktoken estimate of how much context the history uses."""

    session: SessionState

    def execute(self) -> None:
        history = self.session.history
        console.print("\n[bold]Token usage (estimate):[/bold]")
        console.print(f"   Current: ~{count_tokens(history)} tokens")
        console.print(f"   Messages: {len(history)}\n")


@dataclass
class HelpCmd:
    def execute(self) -> None:
        console.print(get_help_text())


class CommandInfo(TypedDict):
    """Help and completion metadata for one command."""

    triggers: list[str]  # e.g. ["/quit", "/q"]
    args: str  # argument placeholder shown in /help, "" if none
    description: str  # one-line description for /help


COMMANDS: list[CommandInfo] = [
    {"triggers": ["/help", "/h"], "args": "", "description": "Show all available commands"},
    {"triggers": ["/quit", "/q"], "args": "", "description": "Exit the session"},
    {"triggers": ["/m"], "args": "<model>", "description": "Switch to another model"},
    {
        "triggers": ["/c history"],
        "args": "",
        "description": "Print a one-line summary of every message",
    },
    {"triggers": ["/c clear"], "args": "", "description": "Clear the conversation history"},
    {
        "triggers": ["/c suppress"],
        "args": "",
        "description": "Turn grounding off for the next message only",
    },
    {"triggers": ["/c tokens"], "args": "", "description": "Estimate the history's token usage"},
]


def get_help_text() -> str:
    """Rich-formatted text for /help."""
    lines = ["[bold]Available Commands:[/bold]"]

    for cmd in COMMANDS:
        trigger_str = ", ".join(cmd["triggers"])
        if cmd["args"]:
            trigger_str = f"{trigger_str} {cmd['args']}"
        # Pad to align descriptions; escape() keeps "<model>" and friends literal
        padding = " " * (18 - len(trigger_str))
        lines.append(f"  [cyan]{escape(trigger_str)}[/cyan]{padding}- {cmd['description']}")

    lines.append("")
    lines.append("[bold]Input:[/bold]")
    lines.append("  [cyan]...text[/cyan]           - Start a multi-line message")
    lines.append("  [cyan].[/cyan]                 - Submit a multi-line message (alone on a line)")
    lines.append("  [cyan]@ground[/cyan]           - At the end of a message: ground the answer with search")
    lines.append("")
    lines.append("[bold]Keyboard Shortcuts:[/bold]")
    lines.append("  [cyan]Ctrl+C[/cyan]            - Interrupt the current input or response")
    lines.append("  [cyan]Ctrl+D[/cyan]            - Exit")
    lines.append("  [cyan]Tab[/cyan]               - Complete a command")

    return "\n".join(lines)


def completion_candidates() -> list[str]:
    """Strings offered by Tab completion in single-line mode."""
    candidates = []
    for cmd in COMMANDS:
        for trigger in cmd["triggers"]:
            candidates.append(f"{trigger} " if cmd["args"] else trigger)
    return candidates


class CommandRegistry:
    """Resolves `/c <name>` to a command bound to the session.

    The set of names is fixed when the registry is built. Anything that is
    not `/c` followed by a known name resolves to None, and the parser then
    treats the line as ordinary text.
    """

    def __init__(self, session: SessionState):
        self._commands: dict[str, Command] = {
            "history": SummarizeHistoryCmd(session),
            "clear": ClearHistoryCmd(session),
            "suppress": SuppressCmd(session),
            "tokens": TokensCmd(session),
        }

    @property
    def names(self) -> list[str]:
        return sorted(self._commands)

    def lookup(self, line: str) -> Command | None:
        parts = line.split()
        if len(parts) != 2 or parts[0] != SUBCOMMAND_PREFIX:
            return None
        return self._commands.get(parts[1])
