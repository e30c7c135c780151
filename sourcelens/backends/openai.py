"""OpenAI backend — Chat Completions API via httpx."""

from __future__ import annotations

import logging

import httpx

from sourcelens.backends.base import GenerationConfig, HTTPBackend, Message
from sourcelens.config import settings

logger = logging.getLogger(__name__)

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"


class OpenAIBackend(HTTPBackend):
    """Backend using OpenAI's chat models."""

    name = "OpenAI"
    provider = "openai"
    key_env_var = "OPENAI_API_KEY"

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(api_key or settings.openai_api_key, transport)

    async def converse(self, messages: list[Message], config: GenerationConfig) -> str:
        api_key = self._require_key()
        chat: list[dict[str, str]] = []
        if config.system:
            chat.append({"role": "system", "content": config.system})
        chat.extend(m.to_dict() for m in messages)

        payload: dict = {
            "model": config.model,
            "messages": chat,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
        }
        if config.json_mode:
            payload["response_format"] = {"type": "json_object"}

        logger.info("Calling OpenAI model %s (%d messages)", config.model, len(chat))
        data = await self._post(
            OPENAI_API_URL,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            payload=payload,
        )
        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""
