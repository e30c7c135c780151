import asyncio

import pytest
from fastapi.testclient import TestClient

from sourcelens.backends.base import GenerationConfig, Message
from sourcelens.config import settings
from sourcelens.main import app
from sourcelens.orchestrator.dispatcher import Dispatcher


class FakeBackend:
    """In-process backend that records calls and returns a canned reply."""

    def __init__(self, name: str, provider: str, reply: str = "") -> None:
        self.name = name
        self.provider = provider
        self.reply = reply
        self.error: Exception | None = None
        self.delay = 0.0
        self.calls: list[tuple[list[Message], GenerationConfig]] = []

    async def generate(self, prompt: str, config: GenerationConfig) -> str:
        return await self.converse([Message(role="user", content=prompt)], config)

    async def converse(self, messages: list[Message], config: GenerationConfig) -> str:
        self.calls.append((list(messages), config))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply

    @property
    def last_prompt(self) -> str:
        return self.calls[-1][0][-1].content

    @property
    def last_config(self) -> GenerationConfig:
        return self.calls[-1][1]


@pytest.fixture
def backends():
    return {
        "anthropic": FakeBackend("Claude", "anthropic"),
        "google": FakeBackend("Gemini", "google"),
        "openai": FakeBackend("OpenAI", "openai"),
    }


@pytest.fixture
def dispatcher(backends):
    return Dispatcher(backends)


@pytest.fixture
def client(tmp_path, monkeypatch, backends):
    monkeypatch.setattr(settings, "database_path", str(tmp_path / "sourcelens.db"))
    monkeypatch.setattr(settings, "local_storage_path", str(tmp_path / "local.json"))
    monkeypatch.setattr(settings, "google_api_key", "test-google-key")
    monkeypatch.setattr(settings, "portraits_dir", str(tmp_path / "portraits"))
    with TestClient(app) as test_client:
        test_client.app.state.dispatcher = Dispatcher(backends)
        yield test_client


@pytest.fixture
def metadata():
    return {
        "title": "Letter to the Editor",
        "author": "Jane Doe",
        "date": "1851-03-02",
        "researchGoals": "Abolitionist rhetoric",
    }
