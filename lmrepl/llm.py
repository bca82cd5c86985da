"""
Provider-neutral model types and the Provider interface.

The REPL never talks to an SDK directly. It speaks in the small vocabulary
defined here, and each provider module (lmrepl/providers/) translates that
vocabulary to and from its own SDK:

  - ChatEntry: one message of the conversation, tagged with a generic role.
  - SolicitResponseInput: everything a provider needs for one turn: the full
    history, the model name and the turn flags.
  - StreamToken: one increment of the reply. A token whose `error` is set is
    the last one the stream yields. An EndOfStream error means the stream
    finished normally; any other error means it failed.

Streaming model:
  `Provider.solicit_response()` sends the request eagerly, so a bad API key or
  unknown model fails at call time, and returns a pull iterator over
  StreamTokens. The iterator is the single producer, and the REPL's consumer
  loop is the single consumer. Tokens arrive strictly in the order the
  provider emits them.

Mentions:
  Users may end a message with `@word` annotations (see mentions.py).
  `prepare_entries()` strips them before anything is sent, reports the
  mentions of the newest user message, and raises BlankInputError when
  nothing is left to send. Every provider calls it, so the blank-input rule
  is the same no matter which backend is active.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from typing import Protocol

from .mentions import mentions_from_end

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"

# Turn flags affect exactly one submission and are reset afterwards
TURN_FLAG_SUPPRESS_GROUNDING = "suppress-grounding"
DEFAULT_TURN_FLAGS: dict[str, bool] = {TURN_FLAG_SUPPRESS_GROUNDING: False}

# Mention that asks the provider to ground its answer with a web search
MENTION_GROUND = "ground"


class LLMError(Exception):
    """Base class for provider errors."""


class BlankInputError(LLMError):
    """The message has no content once trailing mentions are removed."""

    def __init__(self, message: str = "no input"):
        super().__init__(message)


class ModelNotFoundError(LLMError):
    """The provider does not know the requested model."""


class APIKeyInvalidError(LLMError):
    """The provider rejected the configured API key."""


class ProviderNotFoundError(LLMError):
    """No provider is registered under the requested name."""


class StreamError(LLMError):
    """The reply stream failed after the request was accepted."""


class EndOfStream(Exception):
    """Benign end-of-stream marker carried by the final StreamToken."""


@dataclass
class ChatEntry:
    role: str
    text: str


@dataclass
class ModelInfo:
    name: str
    display_name: str = ""
    description: str = ""
    max_tokens: int = 0
    version: str = ""


@dataclass
class StreamToken:
    text: str = ""
    token_count: int = 0
    error: BaseException | None = None


@dataclass
class SolicitResponseInput:
    entries: list[ChatEntry]
    model_name: str
    turn_flags: dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_TURN_FLAGS))


class Provider(Protocol):
    """Capabilities the REPL needs from a model provider."""

    name: str

    def list_models(self) -> list[ModelInfo]: ...

    def solicit_response(self, request: SolicitResponseInput) -> Iterator[StreamToken]: ...

    def to_provider_role(self, generic_role: str) -> str: ...

    def to_generic_role(self, provider_role: str) -> str: ...


def prepare_entries(entries: list[ChatEntry]) -> tuple[list[ChatEntry], list[str]]:
    """Strip trailing mentions from user entries before they are sent.

    Returns the cleaned copies and the mentions found on the newest user
    entry. Raises BlankInputError when the newest user entry is empty after
    stripping. The caller's entries are not modified.
    """
    cleaned: list[ChatEntry] = []
    last_mentions: list[str] = []
    last_user_text: str | None = None

    for entry in entries:
        if entry.role != ROLE_USER:
            cleaned.append(entry)
            continue
        text, mentions = mentions_from_end(entry.text)
        cleaned.append(replace(entry, text=text))
        last_mentions = mentions
        last_user_text = text

    if last_user_text is None or not last_user_text.strip():
        raise BlankInputError()
    return cleaned, last_mentions
