import logging
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from lmrepl.llm import ROLE_ASSISTANT, ROLE_USER, ChatEntry
from lmrepl.log import PACKAGE_LOGGER, expand_log_path, setup_logging
from lmrepl.terminal import PrefixCompleter, styled_prompt
from lmrepl.utils import count_tokens, get_version, print_header


class TestCountTokens(unittest.TestCase):
    """Test token counting functionality"""

    def test_empty_history(self):
        # Only the reply priming
        self.assertEqual(count_tokens([]), 2)

    def test_single_message(self):
        tokens = count_tokens([ChatEntry(ROLE_USER, "Hello, world!")])
        self.assertGreater(tokens, 6)

    def test_grows_with_messages(self):
        one = count_tokens([ChatEntry(ROLE_USER, "Hello")])
        two = count_tokens([ChatEntry(ROLE_USER, "Hello"), ChatEntry(ROLE_ASSISTANT, "Hi there")])
        self.assertGreater(two, one)

    def test_unknown_encoding_falls_back(self):
        entries = [ChatEntry(ROLE_USER, "Hello")]
        self.assertEqual(count_tokens(entries, "no-such-encoding"), count_tokens(entries))


class TestPrintHeader:
    @patch("lmrepl.utils.console")
    def test_prints_once(self, mock_console, make_settings):
        print_header(make_settings(), "gpt-4o")
        mock_console.print.assert_called_once()

    @patch("lmrepl.utils.console")
    def test_contains_provider_and_model(self, mock_console, make_settings):
        print_header(make_settings(provider="gemini"), "gemini-2.0-flash")
        panel = mock_console.print.call_args.args[0]
        assert "Provider: gemini" in panel.renderable
        assert "Model: gemini-2.0-flash" in panel.renderable


class TestVersion(unittest.TestCase):
    def test_version_is_string(self):
        self.assertIsInstance(get_version(), str)
        self.assertTrue(get_version())


class TestLogging(unittest.TestCase):
    def tearDown(self):
        setup_logging("")

    def test_no_file_means_null_handler(self):
        logger = setup_logging("")
        self.assertEqual(len(logger.handlers), 1)
        self.assertIsInstance(logger.handlers[0], logging.NullHandler)
        self.assertFalse(logger.propagate)

    def test_file_handler_writes(self):
        with TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "lmrepl.log"
            setup_logging(str(path))
            logging.getLogger(f"{PACKAGE_LOGGER}.commands").error("stream failed")
            setup_logging("")  # closes the file handler
            self.assertIn("ERROR lmrepl.commands stream failed", path.read_text())

    def test_repeated_setup_replaces_handlers(self):
        setup_logging("")
        logger = setup_logging("")
        self.assertEqual(len(logger.handlers), 1)

    def test_expand_log_path(self):
        with patch.dict("os.environ", {"HOME": "/home/tester"}):
            self.assertEqual(expand_log_path("~/x.log"), Path("/home/tester/x.log"))


class TestTerminalHelpers(unittest.TestCase):
    def test_styled_prompt_marks_non_printing_codes(self):
        prompt = styled_prompt("You [m]:")
        self.assertTrue(prompt.startswith("\001\033[1;34m\002"))
        self.assertTrue(prompt.endswith("\001\033[0m\002 "))
        self.assertIn("You [m]:", prompt)

    def test_prefix_completer(self):
        completer = PrefixCompleter(["/quit", "/q", "/c history", "/c clear"])
        self.assertEqual(completer("/c", 0), "/c clear")
        self.assertEqual(completer("/c", 1), "/c history")
        self.assertIsNone(completer("/c", 2))
        self.assertIsNone(completer("/x", 0))
