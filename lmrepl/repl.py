"""
The REPL loop.

ReplEngine.run() reads a line, turns it into a Command, executes it, and
repeats until a QuitCmd sets `session.stop_requested`. Exactly one
command runs at a time, and the loop does not read the next line until the
current command (including a streamed reply) has finished.

Errors never end the session once the loop is running. Whatever a command
raises is shown by PrintErrorCmd, which also forces the input back to
single-line mode, and the loop carries on. Ctrl+C is handled the same way with
a gentler message: it abandons the current input or reply, not the session.

run_repl() is the wiring: terminal, session, registry, parser, engine.
"""

import logging

from .commands import CommandRegistry, PrintErrorCmd, completion_candidates
from .config import Settings
from .console import console
from .llm import Provider
from .parser import LineParser
from .session import SessionState
from .terminal import PrefixCompleter, Terminal

logger = logging.getLogger(__name__)


class ReplError(Exception):
    """The REPL could not be started."""


class ReplEngine:
    def __init__(self, session: SessionState, parser: LineParser):
        self.session = session
        self.parser = parser

    def run(self):
        session = self.session
        session.reset_input()
        while not session.stop_requested:
            try:
                command = self.parser.read_command()
                command.execute()
            except KeyboardInterrupt:
                session.reset_input()
                console.print(
                    "\n[yellow]Interrupted. Type /quit to exit or continue chatting.[/yellow]"
                )
            except Exception as e:
                logger.error("command failed: %s", e, exc_info=True)
                PrintErrorCmd(session, e).execute()


def run_repl(settings: Settings, provider: Provider, model_name: str | None = None):
    """Run an interactive session against `provider` until the user quits."""
    model = model_name or settings.model
    if not model:
        raise ReplError("failed to set model: no model name configured")

    terminal = Terminal(completer=PrefixCompleter(completion_candidates()))
    try:
        session = SessionState(terminal, provider, model)
        parser = LineParser(session, CommandRegistry(session))
        logger.info("repl started: provider=%s model=%s", provider.name, model)
        ReplEngine(session, parser).run()
    finally:
        terminal.close()
