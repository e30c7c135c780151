"""Source metadata and analysis result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SourceMetadata:
    """Descriptive fields a researcher supplies alongside a document."""

    title: str = ""
    author: str = ""
    date: str = ""
    research_goals: str = ""
    additional_info: str = ""
    document_emoji: str = ""
    type: str = ""
    document_type: str = ""
    genre: str = ""
    place_of_publication: str = ""
    academic_subfield: str = ""
    language: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SourceMetadata:
        data = data or {}
        return cls(
            title=_text(data.get("title")),
            author=_text(data.get("author")),
            date=_text(data.get("date")),
            research_goals=_text(data.get("researchGoals")),
            additional_info=_text(data.get("additionalInfo")),
            document_emoji=_text(data.get("documentEmoji")),
            type=_text(data.get("type")),
            document_type=_text(data.get("documentType")),
            genre=_text(data.get("genre")),
            place_of_publication=_text(data.get("placeOfPublication")),
            academic_subfield=_text(data.get("academicSubfield")),
            language=_text(data.get("language")),
        )

    @property
    def context(self) -> str:
        return self.research_goals or self.additional_info


@dataclass
class AnalysisResult:
    """The labeled fields extracted from an initial-analysis response."""

    summary: str
    analysis: str
    followup_questions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "analysis": self.analysis,
            "followupQuestions": list(self.followup_questions),
        }


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)
