"""
Shared fakes for the REPL tests.

FakeTerminal replays a scripted list of input lines (an exception instance in
the script is raised instead of returned) and records prompt/completer
changes. ScriptedProvider answers every request with a fixed list of
StreamTokens and records what it was asked.
"""

import copy
import io
from unittest.mock import patch

import pytest
from rich.console import Console

from lmrepl.commands import CommandRegistry
from lmrepl.config import Settings
from lmrepl.llm import EndOfStream, ModelInfo, SolicitResponseInput, StreamToken, prepare_entries
from lmrepl.parser import LineParser
from lmrepl.session import SessionState


class FakeTerminal:
    def __init__(self, lines=()):
        self.lines = list(lines)
        self.prompt = None
        self.prompts: list[str] = []
        self.original_completer = object()
        self.completer = self.original_completer

    def read_line(self) -> str:
        if not self.lines:
            raise EOFError
        item = self.lines.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def set_prompt(self, prompt):
        self.prompt = prompt
        self.prompts.append(prompt)

    def get_completer(self):
        return self.completer

    def set_completer(self, completer):
        self.completer = completer


class ScriptedProvider:
    name = "scripted"

    def __init__(self, tokens=None, request_error=None, finish=True):
        self.tokens = list(tokens or [])
        self.request_error = request_error
        self.finish = finish
        self.requests: list[SolicitResponseInput] = []

    def list_models(self):
        return [ModelInfo(name="scripted-model")]

    def solicit_response(self, request):
        self.requests.append(copy.deepcopy(request))
        prepare_entries(request.entries)
        if self.request_error is not None:
            raise self.request_error
        return self._stream()

    def _stream(self):
        yield from self.tokens
        if self.finish:
            yield StreamToken(error=EndOfStream())

    def to_provider_role(self, generic_role):
        return generic_role

    def to_generic_role(self, provider_role):
        return provider_role


@pytest.fixture
def terminal():
    return FakeTerminal()


@pytest.fixture
def provider():
    return ScriptedProvider(tokens=[StreamToken(text="ok", token_count=1)])


@pytest.fixture
def session(terminal, provider):
    return SessionState(terminal, provider, "test-model")


@pytest.fixture
def parser(session):
    return LineParser(session, CommandRegistry(session))


@pytest.fixture
def output():
    """Route everything the REPL prints into one in-memory console; yields a getter."""
    buffer = io.StringIO()
    recording = Console(file=buffer, width=200, color_system=None, force_terminal=False)
    with (
        patch("lmrepl.commands.console", recording),
        patch("lmrepl.streaming.default_console", recording),
        patch("lmrepl.repl.console", recording),
    ):
        yield buffer.getvalue


@pytest.fixture
def make_session():
    """Build a session whose provider replays the given ScriptedProvider arguments."""

    def _make(**provider_kwargs):
        return SessionState(FakeTerminal(), ScriptedProvider(**provider_kwargs), "test-model")

    return _make


@pytest.fixture
def make_settings():
    """Settings factory with test defaults; keyword arguments replace fields."""

    def _make(**changes) -> Settings:
        values = {
            "command": "repl",
            "provider": "openai",
            "model": "test-model",
            "openai_api_key": "sk-test",
            "openai_base_url": "http://localhost:8000/v1",
            "gemini_api_key": "gm-test",
            "http_timeout": 30,
            "log_file": "",
            "system_prompt": "Be brief.",
            "grounding": False,
            "gemini_safety_threshold": "BLOCK_NONE",
        }
        values.update(changes)
        return Settings(**values)

    return _make
