"""Author roleplay: a cached character sketch plus in-character replies."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sourcelens.errors import FallbackExhausted, SourceLensError
from sourcelens.models.model_config import get_model_by_id
from sourcelens.models.source import SourceMetadata
from sourcelens.orchestrator.dispatcher import Dispatcher
from sourcelens.orchestrator.prompts import build_character_sketch_prompt, build_roleplay_prompt

logger = logging.getLogger(__name__)

SKETCH_MODEL_ID = "gpt-4o"
FALLBACK_MODEL_ID = "gpt-4o-mini"
DEFAULT_EMOJI = "👤"
FALLBACK_SKETCH = "A historical figure from their time period, knowledgeable about their work."
FALLBACK_NOTE = " [Note: Generated using fallback model due to Gemini error]"
REPLY_MAX_TOKENS = 400

_EMOJI_RE = re.compile(r"EMOJI:\s*(\S+)")
_BIRTH_YEAR_RE = re.compile(r"BIRTH_YEAR:\s*(\S+)")
_DEATH_YEAR_RE = re.compile(r"DEATH_YEAR:\s*(\S+)")
_BIRTHPLACE_RE = re.compile(r"BIRTHPLACE:\s*([^\n]+)")


@dataclass
class CharacterProfile:
    sketch: str
    emoji: str = ""
    birth_year: str | None = None
    death_year: str | None = None
    birthplace: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"characterSketch": self.sketch, "authorEmoji": self.emoji}
        for key, value in (
            ("birthYear", self.birth_year),
            ("deathYear", self.death_year),
            ("birthplace", self.birthplace),
        ):
            if value is not None:
                data[key] = value
        return data


def parse_character_sketch(text: str, want_emoji: bool) -> CharacterProfile:
    """Read the labeled lines that follow a character sketch.

    "Unknown" values are dropped. Without ``want_emoji`` the emoji is left
    empty, since a portrait will be shown instead.
    """

    def field(pattern: re.Pattern[str]) -> str | None:
        match = pattern.search(text)
        value = match.group(1).strip() if match else "Unknown"
        return None if value == "Unknown" else value

    emoji = ""
    if want_emoji:
        match = _EMOJI_RE.search(text)
        emoji = match.group(1).strip() if match else DEFAULT_EMOJI
    return CharacterProfile(
        sketch=text,
        emoji=emoji,
        birth_year=field(_BIRTH_YEAR_RE),
        death_year=field(_DEATH_YEAR_RE),
        birthplace=field(_BIRTHPLACE_RE),
    )


def portrait_filename(author: str) -> str:
    return re.sub(r"\s+", "", author.lower()) + ".jpg"


def has_portrait(author: str, portraits_dir: str | Path) -> bool:
    if not author:
        return False
    return (Path(portraits_dir) / portrait_filename(author)).is_file()


class CharacterCache:
    """Character profiles keyed by author and date, kept for the process lifetime."""

    def __init__(self) -> None:
        self._profiles: dict[str, CharacterProfile] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._profiles

    @staticmethod
    def key(metadata: SourceMetadata) -> str:
        return f"{metadata.author}-{metadata.date}"

    def get(self, key: str) -> CharacterProfile | None:
        return self._profiles.get(key)

    def set(self, key: str, profile: CharacterProfile) -> None:
        self._profiles[key] = profile


class AuthorRoleplay:
    def __init__(self, dispatcher: Dispatcher, cache: CharacterCache, portraits_dir: str | Path) -> None:
        self.dispatcher = dispatcher
        self.cache = cache
        self.portraits_dir = portraits_dir

    def has_portrait(self, metadata: SourceMetadata) -> bool:
        return has_portrait(metadata.author, self.portraits_dir)

    async def character(self, source: str, metadata: SourceMetadata, refresh: bool = False) -> CharacterProfile:
        """Return the cached profile, generating one when missing or refreshed.

        A failed sketch falls back to a generic profile, which is not cached.
        """
        key = CharacterCache.key(metadata)
        cached = self.cache.get(key)
        if cached is not None and not refresh:
            logger.info("Using cached character sketch for %s", metadata.author)
            return cached

        want_emoji = not self.has_portrait(metadata)
        prompt = build_character_sketch_prompt(source, metadata, want_emoji)
        try:
            raw = await self.dispatcher.generate(get_model_by_id(SKETCH_MODEL_ID), prompt)
        except SourceLensError as exc:
            logger.error("Error generating character sketch: %s", exc.message)
            return CharacterProfile(sketch=FALLBACK_SKETCH, emoji=DEFAULT_EMOJI)

        profile = parse_character_sketch(raw, want_emoji)
        self.cache.set(key, profile)
        logger.info("Generated new character sketch for %s", metadata.author)
        return profile

    async def reply(
        self,
        source: str,
        metadata: SourceMetadata,
        message: str,
        conversation: list[tuple[str, str]],
        profile: CharacterProfile,
        model_id: str | None = None,
    ) -> tuple[str, str, str]:
        """Answer in character. Returns (response, raw response, prompt).

        Gemini models fall back to GPT-4o mini, and the response then
        carries a note saying so.
        """
        model = get_model_by_id(model_id)
        prompt = build_roleplay_prompt(source, metadata, message, conversation, profile.sketch)

        if model.provider != "google":
            raw = await self.dispatcher.generate(
                model, prompt, temperature=0.7, max_tokens=REPLY_MAX_TOKENS
            )
            return raw, raw, prompt

        chain = [
            (model, {"temperature": model.temperature or 0.8, "max_tokens": model.max_tokens or 10000}),
            (get_model_by_id(FALLBACK_MODEL_ID), {"temperature": 0.7, "max_tokens": REPLY_MAX_TOKENS}),
        ]
        try:
            raw, used = await self.dispatcher.generate_with_fallback(chain, prompt)
        except FallbackExhausted as exc:
            raise FallbackExhausted("Error processing roleplay request", exc.errors) from exc
        response = raw if used is model else raw + FALLBACK_NOTE
        return response, raw, prompt
