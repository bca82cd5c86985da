"""
Line input for the REPL, built on the standard library's readline.

readline gives `input()` line editing, persistent history (saved to
~/.lmrepl/history on exit) and tab completion. This module wraps it in a
small Terminal object with the operations the REPL needs:

  - read_line(): read one line with the current prompt. Raises EOFError at
    end of input (Ctrl+D or a closed pipe).
  - set_prompt(): the prompt changes between single-line mode ("You [model]:")
    and multi-line mode (no prompt at all).
  - get_completer() / set_completer(): slash-command completion is switched
    off while composing a multi-line message, so Tab inserts nothing odd
    into the text, and restored afterwards.

Input filtering:
  Ctrl+Z would suspend the whole process and leave a half-streamed reply
  behind, so SIGTSTP is ignored while the terminal is open. The set of
  blocked signals is a constructor argument; close() restores the previous
  handlers.

Prompt escapes:
  ANSI color codes in the prompt are wrapped in \\001 ... \\002 so readline
  knows they take no screen width. Without the markers, long lines wrap at
  the wrong column and history recall redraws garbage.
"""

import atexit
import readline
import signal
from collections.abc import Callable, Iterable
from pathlib import Path

from .config import HISTORY_FILE, ensure_lmrepl_dir
from .console import console

Completer = Callable[[str, int], str | None]

DEFAULT_BLOCKED_SIGNALS = tuple(
    sig for sig in (getattr(signal, "SIGTSTP", None),) if sig is not None
)


def styled_prompt(text: str, ansi_style: str = "1;34") -> str:
    """Color a prompt for readline (non-printing codes wrapped in \\001/\\002)."""
    return f"\001\033[{ansi_style}m\002{text}\001\033[0m\002 "


class PrefixCompleter:
    """readline completer matching the whole line against known commands."""

    def __init__(self, candidates: Iterable[str]):
        self.candidates = sorted(set(candidates))
        self._matches: list[str] = []

    def __call__(self, text: str, state: int) -> str | None:
        if state == 0:
            self._matches = [c for c in self.candidates if c.startswith(text)]
        if state < len(self._matches):
            return self._matches[state]
        return None


class Terminal:
    def __init__(
        self,
        completer: Completer | None = None,
        history_file: Path = HISTORY_FILE,
        blocked_signals: Iterable[int] = DEFAULT_BLOCKED_SIGNALS,
    ):
        self.prompt = ""
        self.history_file = history_file
        self.blocked_signals = tuple(blocked_signals)
        self._previous_handlers: dict[int, object] = {}
        self._setup_readline(completer)
        self._block_signals()

    def _setup_readline(self, completer: Completer | None):
        """Setup command history and completion"""
        try:
            ensure_lmrepl_dir()
            if self.history_file.exists():
                readline.read_history_file(str(self.history_file))

            # Save history on exit
            atexit.register(readline.write_history_file, str(self.history_file))
        except Exception as e:
            console.print(f"[yellow]Warning: Could not setup command history: {e}[/yellow]")

        # Complete the whole line, so "/c hi" can become "/c history"
        readline.set_completer_delims("\n")
        readline.parse_and_bind("tab: complete")
        readline.set_completer(completer)

    def _block_signals(self):
        for sig in self.blocked_signals:
            self._previous_handlers[sig] = signal.signal(sig, signal.SIG_IGN)

    def close(self):
        """Restore the signal handlers replaced by input filtering."""
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler)  # type: ignore[arg-type]
        self._previous_handlers.clear()

    def read_line(self) -> str:
        return input(self.prompt)

    def set_prompt(self, prompt: str):
        self.prompt = prompt

    def get_completer(self) -> Completer | None:
        return readline.get_completer()

    def set_completer(self, completer: Completer | None):
        readline.set_completer(completer)
