"""
Gemini provider built on the google-genai SDK.

Differences from the OpenAI-compatible provider worth knowing about:

  - Roles: Gemini only knows "user" and "model", so assistant entries are sent
    as "model" and system entries as "user". The system prompt travels in
    GenerateContentConfig.system_instruction instead.
  - Grounding: when a turn asks for it, a Google Search tool is attached to
    the request and Gemini may consult the web before answering. A turn asks
    for it by ending the message with `@ground`, or every turn does when the
    `grounding` setting is on. The one-shot `suppress-grounding` turn flag
    (set with `/c suppress`) switches it off for the next turn only.
  - Safety: the harm-category threshold comes from the
    `gemini-safety-threshold` setting handed to the constructor.
  - Errors: generate_content_stream() is lazy, so the HTTP request is only
    made when the first chunk is pulled. Request failures therefore surface as
    stream errors, mapped to ModelNotFoundError / APIKeyInvalidError where the
    API response makes that possible.
"""

import logging
from collections.abc import Iterator

from google import genai
from google.genai import errors, types

from ..config import Settings
from ..llm import (
    MENTION_GROUND,
    ROLE_ASSISTANT,
    ROLE_USER,
    TURN_FLAG_SUPPRESS_GROUNDING,
    APIKeyInvalidError,
    ChatEntry,
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

PROVIDER_NAME = "gemini"

GEMINI_ROLE_USER = "user"
GEMINI_ROLE_MODEL = "model"

HARM_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
)


def safety_settings(threshold: str) -> list[types.SafetySetting]:
    """Apply one block threshold (e.g. BLOCK_NONE) to every harm category."""
    # The SDK's enums accept unknown values with only a warning
    if threshold not in types.HarmBlockThreshold.__members__:
        raise ValueError(f"unknown harm block threshold: {threshold}")
    block_threshold = types.HarmBlockThreshold[threshold]
    return [
        types.SafetySetting(category=category, threshold=block_threshold)
        for category in HARM_CATEGORIES
    ]


class GeminiProvider:
    name = PROVIDER_NAME

    def __init__(self, settings: Settings, client: genai.Client | None = None):
        self.settings = settings
        if client is None:
            try:
                client = genai.Client(
                    api_key=settings.gemini_api_key or None,
                    http_options=types.HttpOptions(timeout=settings.http_timeout * 1000),
                )
            except ValueError as e:
                # Raised when neither the setting nor GOOGLE_API_KEY provides a key
                raise APIKeyInvalidError(f"gemini client error: {e}") from e
        self.client = client
        try:
            self.safety = safety_settings(settings.gemini_safety_threshold)
        except ValueError as e:
            raise LLMError(
                f"unknown gemini safety threshold: {settings.gemini_safety_threshold}"
            ) from e

    def to_provider_role(self, generic_role: str) -> str:
        if generic_role == ROLE_ASSISTANT:
            return GEMINI_ROLE_MODEL
        return GEMINI_ROLE_USER

    def to_generic_role(self, provider_role: str) -> str:
        if provider_role == GEMINI_ROLE_MODEL:
            return ROLE_ASSISTANT
        return ROLE_USER

    def list_models(self) -> list[ModelInfo]:
        results = []
        try:
            for model in self.client.models.list():
                display_name = model.display_name or ""
                if "gemini" not in display_name.lower():
                    continue
                results.append(
                    ModelInfo(
                        name=(model.name or "").removeprefix("models/"),
                        display_name=display_name,
                        description=f"{display_name}: {model.description or ''}",
                        max_tokens=model.input_token_limit or 0,
                        version=model.version or "",
                    )
                )
        except errors.APIError as e:
            raise map_api_error(e, "") from e
        except Exception as e:
            logger.error("gemini list models failed", exc_info=True)
            raise LLMError(f"failed to list models: {e}") from e
        return results

    def grounding_enabled(self, mentions: list[str], turn_flags: dict[str, bool]) -> bool:
        if turn_flags.get(TURN_FLAG_SUPPRESS_GROUNDING):
            return False
        return self.settings.grounding or MENTION_GROUND in mentions

    def build_config(self, grounding: bool) -> types.GenerateContentConfig:
        tools = [types.Tool(google_search=types.GoogleSearch())] if grounding else None
        return types.GenerateContentConfig(
            system_instruction=self.settings.system_prompt or None,
            safety_settings=self.safety,
            tools=tools,
        )

    def to_contents(self, entries: list[ChatEntry]) -> list[types.Content]:
        return [
            types.Content(role=self.to_provider_role(entry.role), parts=[types.Part(text=entry.text)])
            for entry in entries
        ]

    def solicit_response(self, request: SolicitResponseInput) -> Iterator[StreamToken]:
        entries, mentions = prepare_entries(request.entries)
        grounding = self.grounding_enabled(mentions, request.turn_flags)
        logger.debug(
            "generate content: model=%s entries=%d grounding=%s",
            request.model_name,
            len(entries),
            grounding,
        )
        stream = self.client.models.generate_content_stream(
            model=request.model_name,
            contents=self.to_contents(entries),
            config=self.build_config(grounding),
        )
        return self._read_stream(stream, request.model_name)

    def _read_stream(self, stream, model_name: str) -> Iterator[StreamToken]:
        try:
            for chunk in stream:
                if not chunk.candidates:
                    continue
                candidate = chunk.candidates[0]
                finish_reason = candidate.finish_reason
                if finish_reason is not None and finish_reason != types.FinishReason.STOP:
                    yield StreamToken(error=StreamError(f"model stopped: {finish_reason}"))
                    return
                if candidate.content is None or not candidate.content.parts:
                    continue
                text = "".join(part_to_text(part) for part in candidate.content.parts)
                yield StreamToken(text=text, token_count=token_count(chunk))
        except errors.APIError as e:
            logger.error("gemini stream error", exc_info=True)
            yield StreamToken(error=map_api_error(e, model_name))
            return
        except Exception as e:
            logger.error("gemini stream error", exc_info=True)
            yield StreamToken(error=StreamError(f"failed to generate content: {e}"))
            return
        yield StreamToken(error=EndOfStream())


def token_count(chunk: types.GenerateContentResponse) -> int:
    if chunk.usage_metadata is None:
        return 0
    return chunk.usage_metadata.candidates_token_count or 0


def part_to_text(part: types.Part) -> str:
    """Render a response part as text; non-text parts get a short description."""
    if part.text:
        return part.text
    if part.inline_data is not None:
        return f"(inline-data type: {part.inline_data.mime_type})\n"
    if part.function_response is not None:
        return (
            f"(function-response name: {part.function_response.name} "
            f"id: {part.function_response.id})\n"
        )
    if part.function_call is not None:
        return f"(function-call name: {part.function_call.name} id: {part.function_call.id})\n"
    if part.file_data is not None:
        return f"(file-data uri: {part.file_data.file_uri})\n"
    if part.executable_code is not None:
        return (
            f"(executable-code lang: {part.executable_code.language}, "
            f"code: {part.executable_code.code})\n"
        )
    if part.code_execution_result is not None:
        return f"(code-execution-result output: {part.code_execution_result.output})\n"
    return ""


def _error_reasons(error: errors.APIError) -> list[str]:
    details = error.details if isinstance(error.details, dict) else {}
    body = details.get("error", details)
    if not isinstance(body, dict):
        return []
    return [
        item.get("reason", "")
        for item in body.get("details", []) or []
        if isinstance(item, dict)
    ]


def map_api_error(error: errors.APIError, model_name: str) -> LLMError:
    """Turn a google-genai API error into something a user can act on."""
    if error.code == 404:
        return ModelNotFoundError(f"model [{model_name}] not found")
    if "API_KEY_INVALID" in _error_reasons(error):
        return APIKeyInvalidError("API key not valid. Please pass a valid API key.")
    return StreamError(error.message or str(error))
