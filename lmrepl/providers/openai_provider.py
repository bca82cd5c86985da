"""
OpenAI-compatible provider.

Works against api.openai.com and any server that speaks the same chat
completions API (vLLM, Ollama, the Gemini OpenAI endpoint, ...) by pointing
`openai-base-url` somewhere else.

Token counts come from the server: the request sets
stream_options={"include_usage": True}, which makes the server send one final
chunk with an empty `choices` list and a `usage` block. That chunk becomes a
StreamToken carrying `completion_tokens` and no text.
"""

import logging
from collections.abc import Iterator

import openai
from openai import OpenAI
from openai.types.chat import ChatCompletionMessageParam

from ..config import Settings
from ..llm import (
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_USER,
    APIKeyInvalidError,
    EndOfStream,
    LLMError,
    ModelInfo,
    ModelNotFoundError,
    SolicitResponseInput,
    StreamError,
    StreamToken,
    prepare_entries,
)

logger = logging.getLogger(__name__)

PROVIDER_NAME = "openai"

# OpenAI's role vocabulary
OPENAI_ROLE_USER = "user"
OPENAI_ROLE_ASSISTANT = "assistant"
OPENAI_ROLE_DEVELOPER = "developer"


class OpenAIProvider:
    name = PROVIDER_NAME

    def __init__(self, settings: Settings, client: OpenAI | None = None):
        self.settings = settings
        self.client = client or OpenAI(
            base_url=settings.openai_base_url,
            api_key=settings.openai_api_key or "EMPTY",
            timeout=float(settings.http_timeout),
        )

    def to_provider_role(self, generic_role: str) -> str:
        if generic_role == ROLE_ASSISTANT:
            return OPENAI_ROLE_ASSISTANT
        # System entries in the history are replayed as user text; the real
        # system prompt is sent separately as a developer message.
        return OPENAI_ROLE_USER

    def to_generic_role(self, provider_role: str) -> str:
        if provider_role == OPENAI_ROLE_ASSISTANT:
            return ROLE_ASSISTANT
        if provider_role == OPENAI_ROLE_DEVELOPER:
            return ROLE_SYSTEM
        return ROLE_USER

    def list_models(self) -> list[ModelInfo]:
        try:
            models = list(self.client.models.list())
        except openai.APIError as e:
            raise _map_api_error(e, "") from e
        return sorted(
            (ModelInfo(name=m.id, display_name=m.id, description=m.id) for m in models),
            key=lambda info: info.name,
        )

    def solicit_response(self, request: SolicitResponseInput) -> Iterator[StreamToken]:
        entries, _ = prepare_entries(request.entries)

        messages: list[ChatCompletionMessageParam] = []
        if self.settings.system_prompt:
            messages.append({"role": OPENAI_ROLE_DEVELOPER, "content": self.settings.system_prompt})
        for entry in entries:
            messages.append(
                {"role": self.to_provider_role(entry.role), "content": entry.text}  # type: ignore[misc]
            )

        logger.debug("chat completion request: model=%s messages=%d", request.model_name, len(messages))
        try:
            stream = self.client.chat.completions.create(
                model=request.model_name,
                messages=messages,
                stream=True,
                stream_options={"include_usage": True},
            )
        except openai.APIError as e:
            raise _map_api_error(e, request.model_name) from e

        return self._read_stream(stream)

    def _read_stream(self, stream) -> Iterator[StreamToken]:
        try:
            for chunk in stream:
                if chunk.choices:
                    content = chunk.choices[0].delta.content
                    if content:
                        yield StreamToken(text=content)
                if chunk.usage is not None:
                    yield StreamToken(token_count=chunk.usage.completion_tokens)
        except Exception as e:
            logger.error("response stream error", exc_info=True)
            yield StreamToken(error=StreamError(f"response stream error: {e}"))
            return
        yield StreamToken(error=EndOfStream())


def _map_api_error(error: openai.APIError, model_name: str) -> LLMError:
    if isinstance(error, openai.NotFoundError):
        return ModelNotFoundError(f"model [{model_name}] not found: {error.message}")
    if isinstance(error, openai.AuthenticationError):
        return APIKeyInvalidError(f"API key rejected: {error.message}")
    status = getattr(error, "status_code", None)
    if status is not None:
        return LLMError(f"request failed, status code: {status}, message: {error.message}")
    return LLMError(f"request failed: {error.message}")
