"""Deterministic stand-in used when no configured backend works."""

from __future__ import annotations

from caretaker.constants import CaretakerConstants
from caretaker.incident_parsing import keyword_parse, read_parse_prompt
from caretaker.providers.base import GenerationResult, GenerativeBackend

OFFLINE_REPLY = (
    "Offline mode: no AI provider is reachable right now. "
    "Your message was received and will be handled with basic rules."
)


class OfflineBackend(GenerativeBackend):
    """Always answers, never touches the network.

    Incident-parsing prompts get a keyword-based JSON answer; anything else
    gets a fixed notice. ``max_tokens`` truncates the way a model would.
    """

    provider = CaretakerConstants.ProviderType.OFFLINE

    async def generate_content(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        system_instruction: str | None = None,
    ) -> GenerationResult:
        parse_request = read_parse_prompt(prompt)
        if parse_request and parse_request[1]:
            message, categories = parse_request
            text = keyword_parse(message, categories).model_dump_json()
        else:
            text = OFFLINE_REPLY
            if max_tokens and len(text) > max_tokens * 4:
                text = text[: max_tokens * 4]

        return GenerationResult(
            text=text,
            usage={
                "prompt_tokens": len(prompt) // 4,
                "completion_tokens": len(text) // 4,
                "total_tokens": (len(prompt) + len(text)) // 4,
            },
        )
