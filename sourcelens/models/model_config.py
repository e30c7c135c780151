"""Model table — maps app-level model ids to provider and API settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

Provider = Literal["anthropic", "openai", "google"]


@dataclass(frozen=True)
class ModelConfig:
    """A selectable model and its default generation parameters."""

    id: str
    name: str
    provider: Provider
    api_model: str
    description: str = ""
    max_tokens: int | None = None
    temperature: float | None = None


MODELS: list[ModelConfig] = [
    ModelConfig(
        id="claude-haiku",
        name="Claude 3.5 Haiku",
        provider="anthropic",
        api_model="claude-3-5-haiku-latest",
        description="Fast and efficient for quick analyses",
        max_tokens=30000,
        temperature=0.2,
    ),
    ModelConfig(
        id="claude-sonnet",
        name="Claude 3.7 Sonnet",
        provider="anthropic",
        api_model="claude-3-7-sonnet-latest",
        description="Advanced with deeper context understanding",
        max_tokens=30000,
        temperature=0.5,
    ),
    ModelConfig(
        id="gpt-4o-mini",
        name="GPT-4o Mini",
        provider="openai",
        api_model="gpt-4o-mini",
        description="Small, inexpensive chat model",
        max_tokens=800,
        temperature=0.7,
    ),
    ModelConfig(
        id="gpt-4o",
        name="GPT-4o",
        provider="openai",
        api_model="gpt-4o",
        description="Character sketches for author roleplay",
        max_tokens=400,
        temperature=0.6,
    ),
    ModelConfig(
        id="gpt-4.1-nano",
        name="GPT-4.1 Nano",
        provider="openai",
        api_model="gpt-4.1-nano",
        description="A low-latency model",
        max_tokens=32000,
        temperature=0.3,
    ),
    ModelConfig(
        id="gpt-4.1",
        name="GPT-4.1",
        provider="openai",
        api_model="gpt-4.1-2025-04-14",
        description="Flagship OpenAI model",
        max_tokens=32000,
        temperature=0.3,
    ),
    ModelConfig(
        id="o3-mini",
        name="O3 Mini",
        provider="openai",
        api_model="o3-mini-2025-01-31",
        description="Fast reasoning model for complex analysis",
        temperature=0.3,
    ),
    ModelConfig(
        id="gemini-flash",
        name="Gemini 2.0 Flash",
        provider="google",
        api_model="gemini-2.0-flash",
        description="Long texts with a 1M token context window",
        max_tokens=400000,
        temperature=0.2,
    ),
    ModelConfig(
        id="gemini-flash-lite",
        name="Gemini 2.0 Flash Lite",
        provider="google",
        api_model="gemini-2.0-flash-lite",
        description="The smaller version of Flash. Good all-arounder.",
        max_tokens=600000,
        temperature=0.2,
    ),
    ModelConfig(
        id="gemini-2.0-pro-exp-02-05",
        name="Gemini 2.0 Pro Experimental",
        provider="google",
        api_model="gemini-2.0-pro-exp-02-05",
        description="Experimental Gemini Pro with stronger document processing",
        max_tokens=500000,
        temperature=0.2,
    ),
]

DEFAULT_MODEL_ID = "gemini-flash-lite"

LEGACY_MODEL_MAPPING: dict[str, str] = {
    "claude": "claude-haiku",
    "gpt": "gpt-4o-mini",
    "o3-mini-2025-01-31": "o3-mini",
}

# Input character budget per provider for whole-document prompts
PROVIDER_CHAR_BUDGETS: dict[str, int] = {
    "google": 300_000,
    "anthropic": 150_000,
    "openai": 100_000,
}

_BY_ID = {m.id: m for m in MODELS}
_BY_API_MODEL = {m.api_model: m for m in MODELS}


def get_model_by_id(model_id: str | None) -> ModelConfig:
    """Resolve a model id, legacy alias or API model name.

    Unknown ids resolve to the default model rather than failing.
    """
    mapped = LEGACY_MODEL_MAPPING.get(model_id or "", model_id or "")
    model = _BY_ID.get(mapped) or _BY_API_MODEL.get(mapped)
    if model is None:
        logger.warning("Model %r not found, using default %r", model_id, DEFAULT_MODEL_ID)
        return _BY_ID[DEFAULT_MODEL_ID]
    logger.debug("Resolved model %r to %s (%s)", model_id, model.name, model.id)
    return model


def get_models_by_provider(provider: Provider) -> list[ModelConfig]:
    return [m for m in MODELS if m.provider == provider]


def char_budget(model: ModelConfig) -> int:
    return PROVIDER_CHAR_BUDGETS[model.provider]
