"""Provider dispatcher — routes prompts to the backend a model belongs to."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar

from sourcelens.backends.base import GenerationConfig, LLMBackend, Message
from sourcelens.backends.claude import ClaudeBackend
from sourcelens.backends.gemini import GeminiBackend
from sourcelens.backends.openai import OpenAIBackend
from sourcelens.errors import ConfigurationError, FallbackExhausted, SourceLensError
from sourcelens.models.model_config import ModelConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 700


def default_backends() -> dict[str, LLMBackend]:
    return {
        "anthropic": ClaudeBackend(),
        "google": GeminiBackend(),
        "openai": OpenAIBackend(),
    }


class Dispatcher:
    """Selects a backend by the model's provider and applies its defaults."""

    def __init__(self, backends: Mapping[str, LLMBackend] | None = None) -> None:
        self.backends = dict(backends) if backends is not None else default_backends()

    def backend_for(self, model: ModelConfig) -> LLMBackend:
        backend = self.backends.get(model.provider)
        if backend is None:
            raise ConfigurationError(
                "Server configuration error.", f"No backend for provider {model.provider!r}"
            )
        return backend

    def build_config(self, model: ModelConfig, **overrides: Any) -> GenerationConfig:
        config = GenerationConfig(
            model=model.api_model,
            temperature=model.temperature or DEFAULT_TEMPERATURE,
            max_tokens=model.max_tokens or DEFAULT_MAX_TOKENS,
        )
        for key, value in overrides.items():
            setattr(config, key, value)
        return config

    async def generate(self, model: ModelConfig, prompt: str, **overrides: Any) -> str:
        """Send one prompt to the model's provider and return the text."""
        backend = self.backend_for(model)
        config = self.build_config(model, **overrides)
        logger.info(
            "Dispatching to %s model %s (prompt %d chars)",
            backend.name, config.model, len(prompt),
        )
        return await backend.generate(prompt, config)

    async def converse(
        self,
        model: ModelConfig,
        messages: list[Message],
        system: str | None = None,
        **overrides: Any,
    ) -> str:
        backend = self.backend_for(model)
        config = self.build_config(model, system=system, **overrides)
        logger.info("Dispatching %d-message conversation to %s", len(messages), backend.name)
        return await backend.converse(messages, config)

    async def generate_with_fallback(
        self,
        chain: Sequence[tuple[ModelConfig, dict[str, Any]]],
        prompt: str,
    ) -> tuple[str, ModelConfig]:
        """Try each (model, overrides) in order; return the first success.

        Raises FallbackExhausted carrying every provider's error when the
        whole chain fails.
        """
        _, text, model = await self.parse_with_fallback(chain, prompt, _identity)
        return text, model

    async def parse_with_fallback(
        self,
        chain: Sequence[tuple[ModelConfig, dict[str, Any]]],
        prompt: str,
        parse: Callable[[str], T],
        timeout: float | None = None,
    ) -> tuple[T, str, ModelConfig]:
        """Like generate_with_fallback, but a reply that fails ``parse`` or
        exceeds ``timeout`` seconds also moves on to the next model.

        Returns (parsed value, raw text, model that answered).
        """
        errors: dict[str, str] = {}
        for model, overrides in chain:
            try:
                text = await asyncio.wait_for(self.generate(model, prompt, **overrides), timeout)
                return parse(text), text, model
            except asyncio.TimeoutError:
                message = f"Timed out after {timeout}s"
            except SourceLensError as exc:
                message = _describe(exc)
            logger.error("%s failed, trying next provider: %s", model.id, message)
            errors[model.id] = message
        raise FallbackExhausted("All providers in the fallback chain failed", errors)


def _identity(text: str) -> str:
    return text


def _describe(exc: SourceLensError) -> str:
    if exc.detail is None:
        return exc.message
    return f"{exc.message}: {exc.detail}"
