"""Generative backend contract."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from caretaker.constants import CaretakerConstants


class GenerationResult(BaseModel):
    """Text produced by a backend, with token usage when the backend reports it."""

    text: str
    usage: dict[str, int] | None = None


class GenerativeBackend(ABC):
    """A configured model that can turn a prompt into text."""

    provider: CaretakerConstants.ProviderType

    @property
    def name(self) -> str:
        return str(self.provider)

    @abstractmethod
    async def generate_content(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        system_instruction: str | None = None,
    ) -> GenerationResult:
        """
        Generate a completion for a single prompt.

        Raises:
            ProviderError: On any failure talking to the backend
        """
        pass

    async def close(self) -> None:
        """Release network resources. Safe to call more than once."""
        return None
