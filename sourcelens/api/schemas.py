"""Request bodies for the JSON API.

Fields are optional at the schema level so that missing values reach the
route and are rejected with a 400 before any provider is called.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from sourcelens.models.model_config import DEFAULT_MODEL_ID, ModelConfig, get_model_by_id


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class SourceAnalysisRequest(CamelModel):
    source: str | None = None
    metadata: dict[str, Any] | None = None
    perspective: str = ""
    model_id: str | None = None
    # Older clients send "gpt" / "claude" here instead of a model id
    model: str | None = None

    def resolve_model(self, legacy_default: str | None = None) -> ModelConfig:
        return get_model_by_id(self.model_id or self.model or legacy_default or DEFAULT_MODEL_ID)


class ConnectionsRequest(CamelModel):
    source: Any = None
    metadata: Any = None
    model_id: str | None = None
    parent_node_id: str | None = None


class ExpandConnectionsRequest(CamelModel):
    source_node: Any = None
    original_source: Any = None
    existing_connections: list[Any] = []
    graph_data: dict[str, Any] | None = None
    model_id: str | None = None


class DraftAssistRequest(CamelModel):
    action: str | None = None
    highlighted_text: str | None = None
    draft_id: str | None = None
    draft_title: str | None = None
    section_id: str | None = None
    source_id: str | None = None
    analytic_framework: str = ""
    feedback: str = ""
    model_id: str | None = None


class SummarizeTextRequest(CamelModel):
    text: str | None = None
    metadata: dict[str, Any] | None = None
    model_id: str | None = None


class DraftPayload(CamelModel):
    content: str | None = None
    title: str | None = None


class SummarizeDraftRequest(CamelModel):
    draft: DraftPayload | None = None
    model_id: str | None = None


class SuggestExtractionRequest(CamelModel):
    content: str | None = None
    model_id: str | None = None


class ExtractInfoRequest(CamelModel):
    content: str | None = None
    query: str | None = None
    model_id: str | None = None
    format: str = "list"


class ChatMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(CamelModel):
    message: str | None = None
    source: str | None = None
    metadata: dict[str, Any] | None = None
    model: str = "gpt"
    conversation_id: str | None = None
    history: list[ChatMessage] = []


class WikiOverviewRequest(CamelModel):
    title: str | None = None
    source_context: dict[str, Any] | None = None
    type: str | None = None


class ExpandAnalysisRequest(CamelModel):
    section_key: str | None = None
    section_title: str | None = None
    original_content: str | None = None
    user_input: str | None = None
    full_analysis: str | None = None
    metadata: dict[str, Any] | None = None


class ExtractMetadataRequest(CamelModel):
    text: str | None = None


class HighlightSegmentsRequest(CamelModel):
    content: str | None = None
    query: str | None = None
    model_id: str | None = None
    num_segments: int = 5


class SuggestedReferencesRequest(CamelModel):
    source: str | None = None
    metadata: dict[str, Any] | None = None
    perspective: str = ""
    model_id: str | None = None


class TranslateRequest(CamelModel):
    source: str | None = None
    metadata: dict[str, Any] | None = None
    target_language: str = "en"
    translation_scope: str = "all"
    explanation_level: str = "minimal"
    literal_to_poetic: float = 0.5
    preserve_line_breaks: bool = True
    include_alternatives: bool = False
    model_id: str | None = None
    is_continuation: bool = False
    continuation_context: str = ""
    continuation_index: int = 0


class RoleplayRequest(CamelModel):
    source: str | None = None
    metadata: dict[str, Any] | None = None
    message: str = ""
    initialize: bool = False
    conversation: list[ChatMessage] = []
    model: str = "claude"


class NextStepsRequest(CamelModel):
    stats: dict[str, Any] | None = None
    recent_sources: list[str] = []
    recent_notes: list[str] = []
