"""Claude backend — Anthropic Messages API via httpx."""

from __future__ import annotations

import logging

import httpx

from sourcelens.backends.base import GenerationConfig, HTTPBackend, Message
from sourcelens.config import settings

logger = logging.getLogger(__name__)

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

JSON_SYSTEM_PROMPT = (
    "You are a JSON API that returns valid JSON only, with no text outside the JSON."
)


class ClaudeBackend(HTTPBackend):
    """Backend using Anthropic's Claude API."""

    name = "Claude"
    provider = "anthropic"
    key_env_var = "ANTHROPIC_API_KEY"
    timeout = 300.0

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(api_key or settings.anthropic_api_key, transport)

    async def converse(self, messages: list[Message], config: GenerationConfig) -> str:
        api_key = self._require_key()
        payload: dict = {
            "model": config.model,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "messages": [m.to_dict() for m in messages],
        }
        system = config.system
        if config.json_mode:
            system = f"{system}\n\n{JSON_SYSTEM_PROMPT}" if system else JSON_SYSTEM_PROMPT
        if system:
            payload["system"] = system

        logger.info("Calling Anthropic model %s (%d messages)", config.model, len(messages))
        data = await self._post(
            ANTHROPIC_API_URL,
            headers={
                "x-api-key": api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
            payload=payload,
        )

        for block in data.get("content", []):
            if block.get("type") == "text":
                return block["text"]
        return ""
