"""lmrepl - interactive terminal chat client for OpenAI-compatible and Gemini models"""

from .commands import COMMANDS, CommandRegistry, get_help_text
from .config import DEFAULT_CONFIG, Settings, build_settings
from .console import console
from .llm import (
    BlankInputError,
    ChatEntry,
    EndOfStream,
    LLMError,
    ModelInfo,
    SolicitResponseInput,
    StreamToken,
)
from .mentions import mentions_from_end
from .parser import LineParser
from .repl import ReplEngine, run_repl
from .session import SessionState
from .streaming import ResponseStreamConsumer, StreamResult, tokens_per_second
from .utils import count_tokens, get_version

__all__ = [
    # Commands
    "COMMANDS",
    "CommandRegistry",
    "get_help_text",
    # Config
    "DEFAULT_CONFIG",
    "Settings",
    "build_settings",
    # Console
    "console",
    # LLM
    "BlankInputError",
    "ChatEntry",
    "EndOfStream",
    "LLMError",
    "ModelInfo",
    "SolicitResponseInput",
    "StreamToken",
    # REPL
    "LineParser",
    "ReplEngine",
    "SessionState",
    "mentions_from_end",
    "run_repl",
    # Streaming
    "ResponseStreamConsumer",
    "StreamResult",
    "tokens_per_second",
    # Utils
    "count_tokens",
    "get_version",
]
