"""Gemini backend — Google Generative Language API via httpx."""

from __future__ import annotations

import logging

import httpx

from sourcelens.backends.base import GenerationConfig, HTTPBackend, Message
from sourcelens.config import settings
from sourcelens.errors import ProviderError

logger = logging.getLogger(__name__)

GENERATE_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

# Gemini calls the assistant role "model"
_ROLES = {"user": "user", "assistant": "model"}


class GeminiBackend(HTTPBackend):
    """Backend using Google's Gemini models."""

    name = "Gemini"
    provider = "google"
    key_env_var = "GOOGLE_API_KEY"
    timeout = 300.0

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(api_key or settings.google_api_key, transport)

    async def converse(self, messages: list[Message], config: GenerationConfig) -> str:
        api_key = self._require_key()
        generation_config: dict = {
            "temperature": config.temperature,
            "maxOutputTokens": config.max_tokens,
        }
        if config.json_mode:
            generation_config["responseMimeType"] = "application/json"

        payload: dict = {
            "contents": [
                {"role": _ROLES.get(m.role, "user"), "parts": [{"text": m.content}]}
                for m in messages
            ],
            "generationConfig": generation_config,
        }
        if config.system:
            payload["systemInstruction"] = {"parts": [{"text": config.system}]}
        if config.safety_threshold:
            payload["safetySettings"] = [
                {"category": category, "threshold": config.safety_threshold}
                for category in HARM_CATEGORIES
            ]

        logger.info("Calling Google model %s (%d messages)", config.model, len(messages))
        data = await self._post(
            GENERATE_URL.format(model=config.model),
            headers={"Content-Type": "application/json", "x-goog-api-key": api_key},
            payload=payload,
        )
        return self._extract_text(data)

    def _extract_text(self, data: dict) -> str:
        """Pull the candidate text, surfacing safety blocks as provider errors."""
        feedback = data.get("promptFeedback") or {}
        block_reason = feedback.get("blockReason")
        if block_reason:
            logger.error(
                "Gemini blocked the prompt: %s (ratings: %s)",
                block_reason, feedback.get("safetyRatings"),
            )
            raise ProviderError(f"Content generation failed. Reason: {block_reason}", block_reason)

        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        candidate = candidates[0]
        if candidate.get("finishReason") == "SAFETY":
            raise ProviderError("Content generation failed. Reason: SAFETY", "SAFETY")
        parts = (candidate.get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)
