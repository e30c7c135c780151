"""Suggested scholarly references for a source, with a short-lived cache."""

from __future__ import annotations

import hashlib
import json
import logging
import re
import time
from typing import Any
from urllib.parse import quote

from sourcelens.errors import FallbackExhausted
from sourcelens.models.model_config import ModelConfig, get_model_by_id
from sourcelens.models.source import SourceMetadata
from sourcelens.orchestrator.dispatcher import Dispatcher
from sourcelens.orchestrator.parsing import parse_json_response
from sourcelens.orchestrator.prompts import JSON_ONLY_SYSTEM_PROMPT, build_references_prompt
from sourcelens.orchestrator.text import truncate_text

logger = logging.getLogger(__name__)

DEFAULT_REFERENCES_MODEL_ID = "gemini-flash"
FALLBACK_MODEL_ID = "gpt-4o-mini"
EXCERPT_LIMIT = 5000
REQUEST_TIMEOUT_SECONDS = 8.0
CACHE_TTL_SECONDS = 30 * 60
SCHOLAR_SEARCH_URL = "https://scholar.google.com/scholar?q="
REFERENCE_TYPES = ("book", "journal", "website", "other")

_QUOTED_TITLE_RE = re.compile(r'"([^"]+)"')


class ResponseCache:
    """In-memory cache of response bodies that expire after ``ttl_seconds``."""

    def __init__(self, ttl_seconds: float = CACHE_TTL_SECONDS, clock=time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def key(*parts: Any) -> str:
        raw = "|".join(json.dumps(part, sort_keys=True, default=str) for part in parts)
        return hashlib.md5(raw.encode("utf-8")).hexdigest()

    def get(self, key: str) -> dict[str, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, data = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return data

    def set(self, key: str, data: dict[str, Any]) -> None:
        self._entries[key] = (self._clock(), data)
        self.prune()

    def prune(self) -> int:
        now = self._clock()
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for k in expired:
            del self._entries[k]
        return len(expired)


def scholar_url(citation: str) -> str:
    """Build a Google Scholar search from the citation's author and title words."""
    parts = citation.split(",")
    author = parts[0]
    title = ""
    quoted = _QUOTED_TITLE_RE.search(citation)
    if quoted:
        title = " ".join(quoted.group(1).split(" ")[:5])
    elif len(parts) > 1:
        title = " ".join(parts[1].strip().split(" ")[:5])
    return SCHOLAR_SEARCH_URL + quote(f"{author} {title}".strip(), safe="")


def post_process_references(references: list[Any]) -> list[dict[str, Any]]:
    processed = []
    for ref in references:
        if not isinstance(ref, dict):
            continue
        citation = str(ref.get("citation") or "")
        importance = ref.get("importance")
        processed.append(
            {
                **ref,
                "citation": citation,
                "type": ref.get("type") if ref.get("type") in REFERENCE_TYPES else "other",
                "reliability": ref.get("reliability")
                or "Reliability assessment not available for this source.",
                "importance": importance if isinstance(importance, int) and importance else 3,
                "url": scholar_url(citation),
            }
        )
    return processed


def fallback_references(metadata: SourceMetadata) -> list[dict[str, Any]]:
    author = metadata.author or "Unknown"
    date = metadata.date or "Unknown date"
    return [
        {
            "citation": f"Secondary literature about {author} ({date})",
            "type": "other",
            "relevance": "This reference would provide context about the author and time period.",
            "reliability": "Unable to assess reliability due to generation error.",
            "sourceQuote": "No specific quote available",
            "importance": 4,
            "url": SCHOLAR_SEARCH_URL + quote(f"{author} {date}", safe=""),
        }
    ]


def parse_references(text: str) -> list[Any]:
    data = parse_json_response(text, expect=dict)
    references = data.get("references") or []
    return references if isinstance(references, list) else []


def reference_overrides(model: ModelConfig) -> dict[str, Any]:
    if model.provider == "anthropic":
        return {"temperature": 0.3, "max_tokens": 800, "system": JSON_ONLY_SYSTEM_PROMPT}
    if model.provider == "openai":
        return {"temperature": 0.2, "max_tokens": 1000, "json_mode": True}
    return {"temperature": 0.2, "max_tokens": 1000}


class ReferenceSuggester:
    """Asks the chosen model for five references, then GPT-4o mini, then
    falls back to a single Google Scholar search entry."""

    def __init__(self, dispatcher: Dispatcher, cache: ResponseCache) -> None:
        self.dispatcher = dispatcher
        self.cache = cache

    async def suggest(
        self,
        source: str,
        metadata: dict[str, Any],
        perspective: str = "",
        model_id: str | None = None,
    ) -> dict[str, Any]:
        started = time.monotonic()
        model_id = model_id or DEFAULT_REFERENCES_MODEL_ID
        excerpt = truncate_text(source, EXCERPT_LIMIT, "...")

        cache_key = ResponseCache.key(excerpt, metadata, perspective, model_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info("Cache hit for references")
            return cached

        meta = SourceMetadata.from_dict(metadata)
        prompt = build_references_prompt(excerpt, meta, perspective)
        model = get_model_by_id(model_id)
        fallback = get_model_by_id(FALLBACK_MODEL_ID)
        chain = [
            (model, reference_overrides(model)),
            (fallback, {"temperature": 0.2, "max_tokens": 1000, "json_mode": True}),
        ]
        logger.info("Using %s for references", model.name)

        try:
            references, raw, used = await self.dispatcher.parse_with_fallback(
                chain, prompt, parse_references, timeout=REQUEST_TIMEOUT_SECONDS
            )
        except FallbackExhausted as exc:
            logger.error("Reference generation failed on every model: %s", exc.errors)
            return {
                "references": fallback_references(meta),
                "rawPrompt": prompt,
                "rawResponse": "",
                "citationStyle": "chicago",
                "modelUsed": "Fallback Generator",
                "processingTime": _elapsed_ms(started),
                "message": "Using fallback references due to an error",
                "error": exc.errors,
            }

        model_used = used.name if used is model else f"{used.name} (fallback)"
        data = {
            "references": post_process_references(references),
            "rawPrompt": prompt,
            "rawResponse": raw,
            "citationStyle": "chicago",
            "modelUsed": model_used,
            "processingTime": _elapsed_ms(started),
        }
        self.cache.set(cache_key, data)
        return data


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
