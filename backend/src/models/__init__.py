"""Pydantic models for data validation and serialization."""

from .canvas import CanvasBounds, CanvasScene, Connector, ConnectorLine, Point
from .payload import (
    PayloadBranch,
    PayloadCharacter,
    PayloadNode,
    SaveResponse,
    StoryPayload,
    StorySummary,
    ValidationReport,
)
from .story import (
    Branch,
    Character,
    NewNodeSpec,
    NodeShape,
    NodeType,
    Position,
    StoryDocument,
    StoryNode,
)

__all__ = [
    "NodeType",
    "NodeShape",
    "Position",
    "Branch",
    "StoryNode",
    "NewNodeSpec",
    "Character",
    "StoryDocument",
    "PayloadNode",
    "PayloadBranch",
    "PayloadCharacter",
    "StoryPayload",
    "StorySummary",
    "SaveResponse",
    "ValidationReport",
    "Point",
    "ConnectorLine",
    "Connector",
    "CanvasBounds",
    "CanvasScene",
]
