"""Connections graph generator — entity nodes and star links from one LLM call."""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import Any

from sourcelens.config import settings
from sourcelens.errors import ConfigurationError, ParsingError, ProviderError, RequestValidationFailed
from sourcelens.models.connection import (
    DEFAULT_DISTANCE,
    DEFAULT_NODE_COLOR,
    MAX_DISTANCE,
    MIN_DISTANCE,
    NODE_TYPE_COLORS,
    NODE_TYPE_EMOJIS,
    RELATIONSHIPS,
    SOURCE_NODE_COLOR,
    SOURCE_NODE_SIZE,
    ConnectionLink,
    ConnectionNode,
    NodeType,
)
from sourcelens.models.model_config import ModelConfig, get_model_by_id
from sourcelens.models.source import SourceMetadata
from sourcelens.orchestrator.dispatcher import Dispatcher
from sourcelens.orchestrator.parsing import parse_json_response
from sourcelens.orchestrator.prompts import build_connections_prompt, build_expand_prompt
from sourcelens.orchestrator.text import truncate_text

logger = logging.getLogger(__name__)

DEFAULT_CONNECTIONS_MODEL_ID = "gemini-flash-lite"
EXCERPT_LIMIT = 8000
EXCERPT_NOTICE = "... [content truncated]"
MIN_CONNECTIONS = 8
MAX_CONNECTIONS = 10
SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"
OUTPUT_TOKENS = 8192


@dataclass
class ConnectionGraph:
    connections: list[ConnectionNode]
    links: list[ConnectionLink]
    source_node: dict[str, Any] | None = None
    raw_response: str = field(default="", repr=False)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "connections": [c.to_dict() for c in self.connections],
            "links": [link.to_dict() for link in self.links],
        }
        if self.source_node is not None:
            data = {"sourceNode": self.source_node, **data}
        return data


def clamp_distance(value: Any) -> int:
    """Clamp a numeric distance into 1..5; anything non-numeric becomes 3."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return DEFAULT_DISTANCE
    return int(min(MAX_DISTANCE, max(MIN_DISTANCE, round(value))))


def normalize_node(raw: Any, index: int, min_size: float | None = None) -> ConnectionNode:
    """Coerce one model-produced object into a styled ConnectionNode."""
    data = raw if isinstance(raw, dict) else {}
    node_type = NodeType.coerce(data.get("type"))
    relationship = data.get("relationship")
    if relationship not in RELATIONSHIPS:
        relationship = "indirect"
    distance = clamp_distance(data.get("distance"))
    name = str(data.get("name") or f"Connection {index + 1}")

    size = 22 - distance * 2.5
    if min_size is not None:
        size = max(min_size, size)

    return ConnectionNode(
        id=str(uuid.uuid4()),
        name=name,
        type=node_type,
        relationship=relationship,
        distance=distance,
        description=str(data.get("description") or "No description provided."),
        emoji=str(data.get("emoji") or NODE_TYPE_EMOJIS.get(node_type, "🔗")),
        year=str(data.get("year") or "N/A"),
        location=str(data.get("location") or "N/A"),
        wikipedia_title=str(data.get("wikipediaTitle") or name),
        field=str(data.get("field") or "General"),
        color=NODE_TYPE_COLORS.get(node_type, DEFAULT_NODE_COLOR),
        size=size,
    )


def star_links(parent_id: str, nodes: list[ConnectionNode]) -> list[ConnectionLink]:
    return [
        ConnectionLink(
            source=parent_id,
            target=node.id,
            distance=node.distance,
            relationship=node.relationship,
            type=node.type,
        )
        for node in nodes
    ]


def _connections_array(text: str) -> list[Any]:
    """Accept a bare array or an object wrapping exactly one array."""
    try:
        return parse_json_response(text, expect=list)
    except ParsingError:
        wrapped = parse_json_response(text, expect=dict)
        arrays = [v for v in wrapped.values() if isinstance(v, list)]
        if len(arrays) != 1:
            raise
        return arrays[0]


class ConnectionsGenerator:
    """Builds connection graphs for a source and expands individual nodes."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self.dispatcher = dispatcher

    def _resolve_model(self, model_id: str | None) -> ModelConfig:
        if not settings.google_api_key:
            logger.error("GOOGLE_API_KEY is not set")
            raise ConfigurationError("Server configuration error.", "GOOGLE_API_KEY is not set")
        model = get_model_by_id(model_id or DEFAULT_CONNECTIONS_MODEL_ID)
        if model.provider != "google":
            raise RequestValidationFailed(
                "Only Google models are supported for connections at this time."
            )
        return model

    async def _request_nodes(self, model: ModelConfig, prompt: str, temperature: float) -> tuple[list[Any], str]:
        raw = await self.dispatcher.generate(
            model,
            prompt,
            temperature=temperature,
            max_tokens=OUTPUT_TOKENS,
            json_mode=True,
            safety_threshold=SAFETY_THRESHOLD,
        )
        if not raw or not raw.strip():
            logger.error("Gemini returned an empty response")
            raise ProviderError("Content generation failed. Reason: Empty Response", "Empty Response")
        logger.debug("Raw connections response: %.500s", raw)
        try:
            return _connections_array(raw), raw
        except ParsingError as exc:
            logger.error("Failed to parse connections, raw response: %.1000s", raw)
            raise ParsingError("Failed to parse connections from AI response.", exc.detail) from exc

    async def generate(
        self,
        source: Any,
        metadata: Any,
        model_id: str | None = None,
        parent_node_id: str | None = None,
    ) -> ConnectionGraph:
        """Generate 8-10 entities related to a source, linked to it in a star."""
        if not source or not isinstance(source, str) or not isinstance(metadata, dict):
            raise RequestValidationFailed(
                "Missing required fields: source (string) and metadata (object) are required."
            )
        model = self._resolve_model(model_id)
        meta = SourceMetadata.from_dict(metadata)
        parent_id = parent_node_id or "source"

        source_node = {
            "id": parent_id,
            "name": meta.title or meta.author or "Primary Source",
            "type": NodeType.SOURCE.value,
            "metadata": {**metadata, "emoji": meta.document_emoji or NODE_TYPE_EMOJIS[NodeType.SOURCE]},
            "x": 0,
            "y": 0,
            "fx": None,
            "fy": None,
            "color": SOURCE_NODE_COLOR,
            "size": SOURCE_NODE_SIZE,
        }

        excerpt = truncate_text(source, EXCERPT_LIMIT, EXCERPT_NOTICE)
        prompt = build_connections_prompt(excerpt, meta)
        raw_nodes, raw = await self._request_nodes(model, prompt, temperature=0.25)

        if len(raw_nodes) < MIN_CONNECTIONS:
            raise ParsingError(
                "Failed to parse connections from AI response.",
                f"expected {MIN_CONNECTIONS}-{MAX_CONNECTIONS} connections, got {len(raw_nodes)}",
            )
        nodes = [normalize_node(r, i) for i, r in enumerate(raw_nodes[:MAX_CONNECTIONS])]
        logger.info("Generated %d connections for %r", len(nodes), source_node["name"])
        return ConnectionGraph(
            connections=nodes,
            links=star_links(parent_id, nodes),
            source_node=source_node,
            raw_response=raw,
        )

    async def expand(
        self,
        source_node: Any,
        original_source: Any,
        existing_connections: list[Any] | None = None,
        graph_data: dict[str, Any] | None = None,
        model_id: str | None = None,
    ) -> ConnectionGraph:
        """Generate connections radiating from an existing node.

        Existing names are only passed to the model as things to avoid; the
        result is not deduplicated against them.
        """
        if not isinstance(source_node, dict) or not source_node or not original_source:
            raise RequestValidationFailed(
                "Missing required fields: sourceNode and originalSource are required"
            )
        if not isinstance(original_source, dict) or not isinstance(
            original_source.get("metadata"), (dict, type(None))
        ):
            raise RequestValidationFailed(
                "Invalid originalSource: expected an object with an object metadata field"
            )
        model = self._resolve_model(model_id)

        if graph_data and isinstance(graph_data.get("connections"), list):
            existing = graph_data["connections"]
        else:
            existing = existing_connections or []
        existing_names = [str(c.get("name")) for c in existing if isinstance(c, dict) and c.get("name")]

        meta = SourceMetadata.from_dict(original_source.get("metadata"))
        prompt = build_expand_prompt(source_node, meta, existing_names)
        logger.info(
            "Expanding %r with %d existing connections", source_node.get("name"), len(existing_names)
        )
        raw_nodes, raw = await self._request_nodes(model, prompt, temperature=0.2)
        if not raw_nodes:
            raise ParsingError("Failed to parse connections from AI response.", "no connections returned")

        raw_nodes = raw_nodes[:MAX_CONNECTIONS]
        origin_x = _coordinate(source_node.get("x"))
        origin_y = _coordinate(source_node.get("y"))
        nodes: list[ConnectionNode] = []
        for index, raw_node in enumerate(raw_nodes):
            node = normalize_node(raw_node, index, min_size=15)
            angle = index / len(raw_nodes) * 2 * math.pi
            radius = 120 + node.distance * 20
            node.x = origin_x + math.cos(angle) * radius
            node.y = origin_y + math.sin(angle) * radius
            nodes.append(node)

        parent_id = str(source_node.get("id") or "source")
        return ConnectionGraph(connections=nodes, links=star_links(parent_id, nodes), raw_response=raw)


def _coordinate(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return 0.0
