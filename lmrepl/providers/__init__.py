"""Model providers: one module per backend, plus a name-based registry."""

from .registry import PROVIDERS, list_providers, new_provider

__all__ = ["PROVIDERS", "list_providers", "new_provider"]
