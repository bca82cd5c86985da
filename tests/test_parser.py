"""Tests for the line parser state machine (lmrepl/parser.py)."""

import pytest

from lmrepl.commands import (
    AppendCmd,
    ChainCmd,
    EnterMultiLineCmd,
    HelpCmd,
    NoOpCmd,
    PrintErrorCmd,
    QuitCmd,
    SetModelCmd,
    SubmitCmd,
    SummarizeHistoryCmd,
    SuppressCmd,
)
from lmrepl.parser import UsageError


class TestSingleLineMode:
    def test_empty_line_is_noop(self, parser):
        assert isinstance(parser.parse(""), NoOpCmd)

    @pytest.mark.parametrize("line", ["/quit", "/q", "  /quit  "])
    def test_quit(self, parser, line):
        assert isinstance(parser.parse(line), QuitCmd)

    @pytest.mark.parametrize("line", ["/help", "/h"])
    def test_help(self, parser, line):
        assert isinstance(parser.parse(line), HelpCmd)

    def test_set_model(self, parser):
        command = parser.parse("/m gemini-2.0-flash")
        assert isinstance(command, SetModelCmd)
        assert command.model_name == "gemini-2.0-flash"

    @pytest.mark.parametrize("line", ["/m", "/m   "])
    def test_set_model_without_name_is_usage_error(self, parser, line):
        command = parser.parse(line)
        assert isinstance(command, PrintErrorCmd)
        assert isinstance(command.error, UsageError)

    def test_registered_subcommand(self, parser):
        assert isinstance(parser.parse("/c history"), SummarizeHistoryCmd)
        assert isinstance(parser.parse("/c suppress"), SuppressCmd)

    def test_unknown_subcommand_is_sent_as_text(self, parser, session):
        command = parser.parse("/c nonsense")
        assert command == ChainCmd([AppendCmd(session, "/c nonsense"), SubmitCmd(session)])

    def test_plain_text_appends_then_submits(self, parser, session):
        command = parser.parse("Hello there")
        assert command == ChainCmd([AppendCmd(session, "Hello there"), SubmitCmd(session)])

    def test_multi_line_prefix(self, parser, session):
        command = parser.parse("...Dear model,")
        assert command == ChainCmd([EnterMultiLineCmd(session), AppendCmd(session, "Dear model,")])

    def test_bare_multi_line_prefix_appends_empty_line(self, parser, session):
        command = parser.parse("...")
        assert command == ChainCmd([EnterMultiLineCmd(session), AppendCmd(session, "")])

    def test_parsing_does_not_touch_session(self, parser, session):
        parser.parse("...start")
        parser.parse("hello")
        assert session.multi_line is False
        assert session.pending_input == ""


class TestMultiLineMode:
    @pytest.fixture(autouse=True)
    def _multi_line(self, session):
        session.multi_line = True

    def test_terminator_submits(self, parser):
        assert isinstance(parser.parse("."), SubmitCmd)

    @pytest.mark.parametrize("line", ["", "/quit", "/m other", "/c history", "...more", " . "])
    def test_everything_else_is_appended(self, parser, session, line):
        assert parser.parse(line) == AppendCmd(session, line)


class TestReadCommand:
    def test_end_of_input_quits(self, parser):
        assert isinstance(parser.read_command(), QuitCmd)

    def test_end_of_input_quits_in_multi_line_mode(self, parser, session):
        session.multi_line = True
        assert isinstance(parser.read_command(), QuitCmd)

    def test_read_error_keeps_buffer(self, parser, session, terminal, output):
        session.enter_multi_line()
        session.append_input("draft")
        terminal.lines = [OSError("terminal gone")]

        command = parser.read_command()
        assert isinstance(command, PrintErrorCmd)
        command.execute()

        assert session.pending_input == "draft\n"
        assert session.multi_line is True
        assert "terminal gone" in output()

    def test_reads_and_parses(self, parser, terminal):
        terminal.lines = ["/q"]
        assert isinstance(parser.read_command(), QuitCmd)


class TestMultiLineFlow:
    """Driving the parser and executing its commands, the way the REPL does."""

    def test_accumulates_until_terminator(self, parser, session, terminal, output):
        for line in ["...first", "second", "", "third"]:
            parser.parse(line).execute()

        assert session.multi_line is True
        assert session.pending_input == "first\nsecond\n\nthird\n"
        assert terminal.prompt == ""
