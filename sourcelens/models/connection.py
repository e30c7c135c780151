"""Connection graph data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class NodeType(Enum):
    PERSON = "person"
    EVENT = "event"
    CONCEPT = "concept"
    PLACE = "place"
    WORK = "work"
    ORGANIZATION = "organization"
    FACT = "fact"
    SOURCE = "source"

    @classmethod
    def coerce(cls, value: Any) -> NodeType:
        """Map free-form model output onto a known type, defaulting to concept."""
        for member in cls:
            if member.value == value:
                return member
        return cls.CONCEPT


NODE_TYPE_EMOJIS: dict[NodeType, str] = {
    NodeType.PERSON: "👤",
    NodeType.EVENT: "🗓️",
    NodeType.CONCEPT: "💡",
    NodeType.PLACE: "📍",
    NodeType.WORK: "📚",
    NodeType.ORGANIZATION: "🏛️",
    NodeType.FACT: "📋",
    NodeType.SOURCE: "📄",
}

NODE_TYPE_COLORS: dict[NodeType, str] = {
    NodeType.PERSON: "#EC4899",
    NodeType.EVENT: "#F97316",
    NodeType.CONCEPT: "#8B5CF6",
    NodeType.PLACE: "#10B981",
    NodeType.WORK: "#3B82F6",
    NodeType.ORGANIZATION: "#F59E0B",
    NodeType.FACT: "#06B6D4",
}

DEFAULT_NODE_COLOR = "#6B7280"
SOURCE_NODE_COLOR = "#6366F1"
SOURCE_NODE_SIZE = 25

RELATIONSHIPS = ("direct", "indirect")
MIN_DISTANCE, MAX_DISTANCE, DEFAULT_DISTANCE = 1, 5, 3


@dataclass
class ConnectionNode:
    """An entity related to the source, rendered as a graph node."""

    id: str
    name: str
    type: NodeType
    relationship: str
    distance: int
    description: str
    emoji: str
    year: str
    location: str
    wikipedia_title: str
    field: str
    color: str
    size: float
    x: float | None = None
    y: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "relationship": self.relationship,
            "distance": self.distance,
            "description": self.description,
            "emoji": self.emoji,
            "year": self.year,
            "location": self.location,
            "wikipediaTitle": self.wikipedia_title,
            "field": self.field,
            "color": self.color,
            "size": self.size,
        }
        if self.x is not None and self.y is not None:
            data["x"] = self.x
            data["y"] = self.y
        return data


@dataclass
class ConnectionLink:
    """An edge from a parent node to one of its generated connections."""

    source: str
    target: str
    distance: int
    relationship: str
    type: NodeType

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "distance": self.distance,
            "relationship": self.relationship,
            "type": self.type.value,
        }
