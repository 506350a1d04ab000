"""LLM client boundary used by LLM-backed node executors.

Public API:
    LLMClient.complete(messages, **kwargs) -> LLMResponse
    create_llm_client(settings) -> LLMClient | None

The default backend is the openai SDK (``AsyncOpenAI``). Executors only see the
abstract ``LLMClient`` so tests and alternative backends can be injected.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..core.config import Settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Classes
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """Standardized response from an LLM call."""

    text: str | None = None
    model: str | None = None


# ---------------------------------------------------------------------------
# Client interface
# ---------------------------------------------------------------------------


class LLMClient(ABC):
    """Minimal chat-completion interface."""

    model: str = "unknown"

    @abstractmethod
    async def complete(self, messages: list[dict[str, Any]], **kwargs: Any) -> LLMResponse:
        """Send OpenAI-format messages and return the assistant's reply."""
        ...


# ---------------------------------------------------------------------------
# Backend: OpenAI
# ---------------------------------------------------------------------------


class OpenAIChatClient(LLMClient):
    """Chat completions through ``openai.AsyncOpenAI``."""

    def __init__(
        self,
        client: Any = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.0,
        api_key: str | None = None,
    ) -> None:
        if client is None:
            from openai import AsyncOpenAI

            client = AsyncOpenAI(api_key=api_key)
        self.client = client
        self.model = model
        self.temperature = temperature

    async def complete(self, messages: list[dict[str, Any]], **kwargs: Any) -> LLMResponse:
        completion_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.get("temperature", self.temperature),
        }
        if kwargs.get("max_tokens"):
            completion_kwargs["max_tokens"] = kwargs["max_tokens"]

        rf = kwargs.get("response_format")
        if rf and rf.get("type") == "json_object":
            completion_kwargs["response_format"] = {"type": "json_object"}

        completion = await self.client.chat.completions.create(**completion_kwargs)

        choice = completion.choices[0] if completion.choices else None
        if not choice:
            return LLMResponse(model=self.model)
        return LLMResponse(text=choice.message.content, model=getattr(completion, "model", self.model))


def create_llm_client(settings: Settings) -> LLMClient | None:
    """Build the configured client, or None when no API key is set (stub mode)."""
    if not settings.openai_api_key:
        logger.info("No OpenAI API key configured; LLM executors run in stub mode")
        return None
    return OpenAIChatClient(
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        api_key=settings.openai_api_key,
    )
