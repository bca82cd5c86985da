"""
Per-invocation REPL state.

A SessionState is created when the REPL starts and dropped when the user
quits; nothing is saved between runs. Only the REPL loop writes to it, through
the Commands it executes (see commands.py).
"""

from .llm import DEFAULT_TURN_FLAGS, ChatEntry, Provider
from .terminal import Terminal, styled_prompt

MULTI_LINE_PROMPT = ""


class SessionState:
    """Everything one REPL invocation remembers between lines.

    Lives from startup until quit and is only ever touched by the REPL loop,
    so nothing here is locked.
    """

    def __init__(self, terminal: Terminal, provider: Provider, active_model: str):
        if not active_model:
            raise ValueError("a model name is required")
        self.terminal = terminal
        self.provider = provider
        self.active_model = active_model
        self.history: list[ChatEntry] = []
        self.turn_flags: dict[str, bool] = dict(DEFAULT_TURN_FLAGS)
        self.multi_line = False
        self.stop_requested = False
        self.stashed_completer = None
        self._input: list[str] = []

    @property
    def pending_input(self) -> str:
        return "".join(self._input)

    def append_input(self, text: str):
        """Add one line to the input buffer, keeping its line break."""
        self._input.append(text)
        self._input.append("\n")

    def first_line_prompt(self) -> str:
        return styled_prompt(f"You [{self.active_model}]:")

    def enter_multi_line(self):
        """Drop the prompt and stash the completer until the message is submitted."""
        self.multi_line = True
        self.terminal.set_prompt(MULTI_LINE_PROMPT)
        self.stashed_completer = self.terminal.get_completer()
        self.terminal.set_completer(None)

    def reset_input(self):
        """Empty the buffer and return the terminal to single-line mode."""
        self._input.clear()
        self.multi_line = False
        self.terminal.set_prompt(self.first_line_prompt())
        if self.stashed_completer is not None:
            self.terminal.set_completer(self.stashed_completer)
            self.stashed_completer = None

    def reset_turn_flags(self):
        self.turn_flags = dict(DEFAULT_TURN_FLAGS)

    def set_model(self, model_name: str):
        self.active_model = model_name
        if not self.multi_line:
            self.terminal.set_prompt(self.first_line_prompt())
