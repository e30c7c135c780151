import json

import pytest

from sourcelens.errors import ProviderError
from sourcelens.models.source import SourceMetadata
from sourcelens.orchestrator import references
from sourcelens.orchestrator.references import (
    ReferenceSuggester,
    ResponseCache,
    fallback_references,
    post_process_references,
    scholar_url,
)

REPLY = json.dumps(
    {
        "references": [
            {
                "citation": 'Blight, David W., "Frederick Douglass: Prophet of Freedom" (2018)',
                "type": "book",
                "relevance": "Standard biography.",
                "sourceQuote": "Dear Sir",
                "importance": 5,
            },
            {"citation": "Foner, Eric, Gateway to Freedom, 2015", "type": "pamphlet"},
        ]
    }
)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def test_cache_entries_expire():
    clock = FakeClock()
    cache = ResponseCache(ttl_seconds=60, clock=clock)
    key = ResponseCache.key("source", {"author": "Jane Doe"}, "", "gemini-flash")
    assert key == ResponseCache.key("source", {"author": "Jane Doe"}, "", "gemini-flash")

    cache.set(key, {"references": []})
    clock.now = 59
    assert cache.get(key) == {"references": []}
    clock.now = 60
    assert cache.get(key) is None
    assert len(cache) == 0


def test_scholar_url_uses_author_and_title_words():
    url = scholar_url('Blight, David W., "Frederick Douglass: Prophet of Freedom and More" (2018)')
    assert url == (
        "https://scholar.google.com/scholar?q="
        "Blight%20Frederick%20Douglass%3A%20Prophet%20of%20Freedom"
    )
    assert scholar_url("Foner, Eric, Gateway").endswith("q=Foner%20Eric")


def test_post_process_fills_defaults():
    processed = post_process_references(json.loads(REPLY)["references"] + ["junk"])
    assert len(processed) == 2
    second = processed[1]
    assert second["type"] == "other"
    assert second["importance"] == 3
    assert second["reliability"].startswith("Reliability assessment not available")
    assert processed[0]["importance"] == 5


def test_fallback_reference_names_the_author():
    [ref] = fallback_references(SourceMetadata(author="Jane Doe", date="1851"))
    assert ref["citation"] == "Secondary literature about Jane Doe (1851)"
    assert ref["url"].endswith("q=Jane%20Doe%201851")


@pytest.mark.asyncio
async def test_suggest_parses_and_caches(dispatcher, backends, metadata):
    backends["google"].reply = "Here you go:\n" + REPLY
    suggester = ReferenceSuggester(dispatcher, ResponseCache())

    first = await suggester.suggest("x" * 6000, metadata)
    assert first["modelUsed"] == "Gemini 2.0 Flash"
    assert first["citationStyle"] == "chicago"
    assert len(first["references"]) == 2
    assert "x" * 5000 + "..." in first["rawPrompt"]
    assert "x" * 5001 not in first["rawPrompt"]

    second = await suggester.suggest("x" * 6000, metadata)
    assert second == first
    assert len(backends["google"].calls) == 1


@pytest.mark.asyncio
async def test_suggest_falls_back_to_gpt_mini(dispatcher, backends, metadata):
    backends["anthropic"].reply = "I cannot produce JSON today."
    backends["openai"].reply = REPLY
    suggester = ReferenceSuggester(dispatcher, ResponseCache())

    result = await suggester.suggest("A letter.", metadata, model_id="claude-sonnet")
    assert result["modelUsed"] == "GPT-4o Mini (fallback)"
    assert backends["anthropic"].last_config.max_tokens == 800
    assert backends["openai"].last_config.json_mode is True


@pytest.mark.asyncio
async def test_suggest_times_out_slow_models(dispatcher, backends, metadata, monkeypatch):
    monkeypatch.setattr(references, "REQUEST_TIMEOUT_SECONDS", 0.05)
    backends["google"].reply = REPLY
    backends["google"].delay = 1.0
    backends["openai"].reply = REPLY

    result = await ReferenceSuggester(dispatcher, ResponseCache()).suggest("A letter.", metadata)
    assert result["modelUsed"] == "GPT-4o Mini (fallback)"


@pytest.mark.asyncio
async def test_suggest_uses_generated_reference_when_everything_fails(dispatcher, backends, metadata):
    backends["google"].error = ProviderError("Gemini request failed")
    backends["openai"].error = ProviderError("OpenAI request failed")
    cache = ResponseCache()

    result = await ReferenceSuggester(dispatcher, cache).suggest("A letter.", metadata)
    assert result["modelUsed"] == "Fallback Generator"
    assert result["message"] == "Using fallback references due to an error"
    assert result["references"][0]["citation"] == "Secondary literature about Jane Doe (1851-03-02)"
    assert len(cache) == 0
