"""
Turning raw input lines into Commands.

The parser is a two-state machine. The state lives on the session
(`session.multi_line`); the parser only reads it. Commands change it when they
execute.

single-line (the default):
    ""                   -> NoOpCmd
    "/quit", "/q"        -> QuitCmd
    "/help", "/h"        -> HelpCmd
    "/m <model>"         -> SetModelCmd
    "/c <name>"          -> the registered sub-command, if <name> is known
    "...rest"            -> EnterMultiLineCmd, then AppendCmd("rest")
    anything else        -> AppendCmd(line), then SubmitCmd

multi-line (after a "..." line):
    "."                  -> SubmitCmd (which resets back to single-line)
    anything else        -> AppendCmd(line), blank lines included

Reading:
    end of input         -> QuitCmd, from either state
    other read errors    -> PrintErrorCmd that leaves the buffer untouched

An unknown `/c` name is not an error: the line falls through and is sent to
the model as ordinary text.
"""

from .commands import (
    AppendCmd,
    ChainCmd,
    Command,
    CommandRegistry,
    EnterMultiLineCmd,
    HelpCmd,
    NoOpCmd,
    PrintErrorCmd,
    QuitCmd,
    SetModelCmd,
    SubmitCmd,
)
from .session import SessionState

MULTI_LINE_PREFIX = "..."
SUBMIT_TERMINATOR = "."

QUIT_TRIGGERS = ("/quit", "/q")
HELP_TRIGGERS = ("/help", "/h")
MODEL_TRIGGER = "/m"


class UsageError(Exception):
    """A reserved command was typed with the wrong arguments."""


class LineParser:
    def __init__(self, session: SessionState, registry: CommandRegistry):
        self.session = session
        self.registry = registry

    def read_command(self) -> Command:
        """Read one line from the session's terminal and parse it."""
        try:
            line = self.session.terminal.read_line()
        except EOFError:
            return QuitCmd(self.session)
        except OSError as e:
            return PrintErrorCmd(self.session, e, reset_input=False)
        return self.parse(line)

    def parse(self, line: str) -> Command:
        session = self.session

        if session.multi_line:
            if line == SUBMIT_TERMINATOR:
                return SubmitCmd(session)
            return AppendCmd(session, line)

        if not line:
            return NoOpCmd()

        command = self._parse_slash_command(line)
        if command is not None:
            return command

        if line.startswith(MULTI_LINE_PREFIX):
            return ChainCmd(
                [
                    EnterMultiLineCmd(session),
                    AppendCmd(session, line[len(MULTI_LINE_PREFIX) :]),
                ]
            )

        return ChainCmd([AppendCmd(session, line), SubmitCmd(session)])

    def _parse_slash_command(self, line: str) -> Command | None:
        stripped = line.strip()
        if stripped in QUIT_TRIGGERS:
            return QuitCmd(self.session)
        if stripped in HELP_TRIGGERS:
            return HelpCmd()

        parts = stripped.split(maxsplit=1)
        if parts and parts[0] == MODEL_TRIGGER:
            if len(parts) == 2:
                return SetModelCmd(self.session, parts[1].strip())
            return PrintErrorCmd(self.session, UsageError("usage: /m <model-name>"))

        return self.registry.lookup(stripped)
