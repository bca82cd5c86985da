"""Provider lookup by name."""

from ..config import Settings
from ..llm import Provider, ProviderNotFoundError
from .gemini import PROVIDER_NAME as GEMINI
from .gemini import GeminiProvider
from .openai_provider import PROVIDER_NAME as OPENAI
from .openai_provider import OpenAIProvider

PROVIDERS = {
    OPENAI: OpenAIProvider,
    GEMINI: GeminiProvider,
}


def list_providers() -> list[str]:
    return sorted(PROVIDERS)


def new_provider(settings: Settings, name: str | None = None) -> Provider:
    """Construct the provider called `name` (defaults to settings.provider)."""
    provider_name = (name or settings.provider).strip().lower()
    try:
        provider_class = PROVIDERS[provider_name]
    except KeyError:
        raise ProviderNotFoundError(f"unknown provider: {provider_name}") from None
    return provider_class(settings)
