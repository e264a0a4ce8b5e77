"""Network generative backends: Ollama, OpenAI-compatible, Anthropic and Gemini."""

from __future__ import annotations

import logging
from typing import Any

import httpx
import ollama

from caretaker.constants import CaretakerConstants
from caretaker.database.models import ProviderConfig
from caretaker.providers.base import GenerationResult, GenerativeBackend
from caretaker.providers.errors import ProviderError, wrap_error

logger = logging.getLogger(__name__)

ProviderType = CaretakerConstants.ProviderType

DEFAULT_MODELS = {
    ProviderType.OLLAMA: "llama3.2",
    ProviderType.CLAUDE: "claude-3-5-sonnet-20241022",
    ProviderType.GEMINI: "gemini-1.5-pro",
    ProviderType.DEEPSEEK: "deepseek-chat",
    ProviderType.KIMI: "moonshot-v1-8k",
}

DEFAULT_BASE_URLS = {
    ProviderType.OLLAMA: "http://localhost:11434",
    ProviderType.CLAUDE: "https://api.anthropic.com/v1",
    ProviderType.GEMINI: "https://generativelanguage.googleapis.com/v1beta",
    ProviderType.DEEPSEEK: "https://api.deepseek.com/v1",
    ProviderType.KIMI: "https://api.moonshot.cn/v1",
}

DEFAULT_MAX_TOKENS = 1024
DEFAULT_TEMPERATURE = 0.7
REQUEST_TIMEOUT = 60.0


class OllamaBackend(GenerativeBackend):
    """Local or self-hosted model served by Ollama, via the official SDK."""

    provider = ProviderType.OLLAMA

    def __init__(self, model: str, host: str):
        self.model = model
        self.client = ollama.AsyncClient(host=host)
        logger.info("Initialized Ollama backend: url=%s, model=%s", host, model)

    async def generate_content(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        system_instruction: str | None = None,
    ) -> GenerationResult:
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})

        options: dict[str, Any] = {}
        if max_tokens is not None:
            options["num_predict"] = max_tokens
        if temperature is not None:
            options["temperature"] = temperature

        try:
            response = await self.client.chat(model=self.model, messages=messages, options=options)
        except Exception as e:
            raise wrap_error(self.name, e) from e

        usage = None
        if response.prompt_eval_count is not None and response.eval_count is not None:
            usage = {
                "prompt_tokens": response.prompt_eval_count,
                "completion_tokens": response.eval_count,
                "total_tokens": response.prompt_eval_count + response.eval_count,
            }
        return GenerationResult(text=response.message.content or "", usage=usage)

    async def close(self) -> None:
        # ollama.AsyncClient wraps an httpx.AsyncClient
        await self.client._client.aclose()


class HttpBackend(GenerativeBackend):
    """Shared plumbing for backends spoken to over plain HTTPS."""

    def __init__(self, api_key: str, model: str, base_url: str):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(timeout=REQUEST_TIMEOUT)

    async def _post(self, path: str, payload: dict, headers: dict[str, str]) -> dict:
        try:
            response = await self._http.post(
                f"{self.base_url}{path}", json=payload, headers=headers
            )
            response.raise_for_status()
            return response.json()
        except Exception as e:
            raise wrap_error(self.name, e) from e

    def _missing_text(self) -> ProviderError:
        return ProviderError(self.name, "response contained no text")

    async def close(self) -> None:
        await self._http.aclose()


class OpenAICompatibleBackend(HttpBackend):
    """Chat-completions APIs (DeepSeek, Kimi)."""

    def __init__(self, provider: ProviderType, api_key: str, model: str, base_url: str):
        super().__init__(api_key, model, base_url)
        self.provider = provider

    async def generate_content(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        system_instruction: str | None = None,
    ) -> GenerationResult:
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})

        data = await self._post(
            "/chat/completions",
            {
                "model": self.model,
                "messages": messages,
                "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
                "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
            },
            {"Authorization": f"Bearer {self.api_key}"},
        )
        try:
            text = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise self._missing_text() from e

        usage = data.get("usage") or {}
        return GenerationResult(
            text=text,
            usage={
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
        )


class AnthropicBackend(HttpBackend):
    """Claude via the Messages API."""

    provider = ProviderType.CLAUDE
    API_VERSION = "2023-06-01"

    async def generate_content(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        system_instruction: str | None = None,
    ) -> GenerationResult:
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_instruction:
            payload["system"] = system_instruction

        data = await self._post(
            "/messages",
            payload,
            {"x-api-key": self.api_key, "anthropic-version": self.API_VERSION},
        )
        try:
            text = data["content"][0]["text"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise self._missing_text() from e

        usage = data.get("usage") or {}
        prompt_tokens = usage.get("input_tokens", 0)
        completion_tokens = usage.get("output_tokens", 0)
        return GenerationResult(
            text=text,
            usage={
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
        )


class GeminiBackend(HttpBackend):
    """Gemini via the generateContent REST endpoint."""

    provider = ProviderType.GEMINI

    async def generate_content(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        system_instruction: str | None = None,
    ) -> GenerationResult:
        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": max_tokens or DEFAULT_MAX_TOKENS,
                "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
            },
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        data = await self._post(
            f"/models/{self.model}:generateContent", payload, {"x-goog-api-key": self.api_key}
        )
        try:
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError) as e:
            raise self._missing_text() from e

        usage = data.get("usageMetadata") or {}
        return GenerationResult(
            text=text,
            usage={
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
                "total_tokens": usage.get("totalTokenCount", 0),
            },
        )


def create_backend(config: ProviderConfig, api_key: str | None) -> GenerativeBackend:
    """
    Build the backend described by a provider configuration.

    Args:
        config: Stored provider configuration
        api_key: Decrypted API key, None for keyless backends

    Raises:
        ValueError: If the provider is unknown or a required key is missing
    """
    provider = ProviderType(config.provider)
    model = config.model or DEFAULT_MODELS.get(provider, "")
    base_url = config.base_url or DEFAULT_BASE_URLS.get(provider, "")

    if provider == ProviderType.OLLAMA:
        return OllamaBackend(model, base_url)
    if provider == ProviderType.OFFLINE:
        raise ValueError("The offline backend is not configurable")
    if not api_key:
        raise ValueError(f"Provider {provider} requires an API key")

    match provider:
        case ProviderType.CLAUDE:
            return AnthropicBackend(api_key, model, base_url)
        case ProviderType.GEMINI:
            return GeminiBackend(api_key, model, base_url)
        case ProviderType.DEEPSEEK | ProviderType.KIMI:
            return OpenAICompatibleBackend(provider, api_key, model, base_url)
    raise ValueError(f"Unknown provider: {config.provider}")
