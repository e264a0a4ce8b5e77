"""Generative backends and provider fallback selection."""

from caretaker.providers.backends import (
    AnthropicBackend,
    GeminiBackend,
    OllamaBackend,
    OpenAICompatibleBackend,
    create_backend,
)
from caretaker.providers.base import GenerationResult, GenerativeBackend
from caretaker.providers.errors import ProviderError, classify_error
from caretaker.providers.offline import OfflineBackend
from caretaker.providers.secrets import SecretDecryptionError, SecretStore
from caretaker.providers.selector import FallbackEvent, FallbackStats, ProviderSelector

__all__ = [
    "AnthropicBackend",
    "FallbackEvent",
    "FallbackStats",
    "GeminiBackend",
    "GenerationResult",
    "GenerativeBackend",
    "OfflineBackend",
    "OllamaBackend",
    "OpenAICompatibleBackend",
    "ProviderError",
    "ProviderSelector",
    "SecretDecryptionError",
    "SecretStore",
    "classify_error",
    "create_backend",
]
