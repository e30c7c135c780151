"""Draft and section models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Section:
    """One LLM-identified section of a document or draft."""

    id: str
    title: str
    summary: str
    full_text: str

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int) -> Section:
        return cls(
            id=str(data.get("id") or f"section-{index + 1}"),
            title=str(data.get("title") or f"Section {index + 1}"),
            summary=str(data.get("summary") or ""),
            full_text=str(data.get("fullText") or ""),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "fullText": self.full_text,
        }


@dataclass
class DocumentSummary:
    overall_summary: str
    sections: list[Section] = field(default_factory=list)


@dataclass
class Draft:
    """A user-authored document stored in the library."""

    id: str
    title: str
    content: str
    sections: list[Section] = field(default_factory=list)

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> Draft:
        raw_sections = item.get("sections") or []
        sections = [
            Section.from_dict(s, i)
            for i, s in enumerate(raw_sections)
            if isinstance(s, dict)
        ]
        return cls(
            id=str(item.get("id", "")),
            title=str(item.get("title") or "Untitled Draft"),
            content=str(item.get("content") or ""),
            sections=sections,
        )
