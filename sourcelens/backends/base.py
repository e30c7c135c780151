"""Base protocol for all LLM provider backends."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from sourcelens.errors import ConfigurationError, ProviderError


@dataclass
class GenerationConfig:
    """Per-call generation parameters shared by every provider."""

    model: str
    temperature: float = 0.7
    max_tokens: int = 700
    system: str | None = None
    json_mode: bool = False
    # Gemini harm-block threshold, e.g. "BLOCK_MEDIUM_AND_ABOVE"
    safety_threshold: str | None = None


@dataclass
class Message:
    role: str  # "user" | "assistant"
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@runtime_checkable
class LLMBackend(Protocol):
    """Interface that all LLM provider backends must implement."""

    name: str
    provider: str

    async def generate(self, prompt: str, config: GenerationConfig) -> str:
        """Send a single user prompt and return the response text."""
        ...

    async def converse(self, messages: list[Message], config: GenerationConfig) -> str:
        """Send a multi-turn conversation and return the assistant's reply."""
        ...


class HTTPBackend:
    """Shared plumbing for backends that talk to a provider over httpx."""

    name: str = ""
    provider: str = ""
    key_env_var: str = ""
    timeout: float = 120.0

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.transport = transport

    async def generate(self, prompt: str, config: GenerationConfig) -> str:
        return await self.converse([Message(role="user", content=prompt)], config)

    async def converse(self, messages: list[Message], config: GenerationConfig) -> str:
        raise NotImplementedError

    def _require_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "Server configuration error.", f"{self.key_env_var} is not set"
            )
        return self.api_key

    async def _post(self, url: str, headers: dict, payload: dict) -> dict:
        """POST a JSON payload and return the decoded body.

        Transport and HTTP failures surface as ProviderError carrying the
        provider's own message.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, headers=headers, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"{self.name} request failed",
                f"{exc.response.status_code}: {_error_message(exc.response)}",
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"{self.name} request failed", str(exc) or type(exc).__name__) from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{self.name} returned a non-JSON body", response.text[:500]) from exc


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or error)
    if error:
        return str(error)
    return response.text[:500]
