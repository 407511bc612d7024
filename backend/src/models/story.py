"""Story graph models used by the editor core."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NodeType(str, Enum):
    """Node kinds; the kind bounds how many branches a node may own."""

    REGULAR = "regular"
    BRANCH = "branch"
    END = "end"


class NodeShape(str, Enum):
    """Footprint used when routing connectors."""

    RECTANGLE = "rectangle"
    CIRCLE = "circle"


class EditorModel(BaseModel):
    """Base for in-memory editor models (camelCase when exported)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(EditorModel):
    """Top-left corner of a node on the canvas."""

    x: float = Field(default=0.0, description="Horizontal canvas coordinate")
    y: float = Field(default=0.0, description="Vertical canvas coordinate")


class Branch(EditorModel):
    """A labeled choice leading from its owning node to another node."""

    id: str = Field(..., description="Unique branch identifier")
    text: str = Field(default="", description="Choice label shown to the reader")
    target_id: str = Field(default="", description="ID of the node this choice leads to")


class StoryNode(EditorModel):
    """A unit of narrative content on the canvas."""

    id: str = Field(..., description="Unique node identifier")
    title: str = ""
    content: str = ""
    type: NodeType = NodeType.REGULAR
    position: Position = Field(default_factory=Position)
    is_root: bool = False
    shape: NodeShape = NodeShape.RECTANGLE
    media: List[str] = Field(default_factory=list)
    branches: List[Branch] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class NewNodeSpec(EditorModel):
    """Options for the node created as the target of a new branch."""

    type: NodeType = NodeType.REGULAR
    title: Optional[str] = None
    content: Optional[str] = None
    shape: NodeShape = NodeShape.RECTANGLE


class Character(EditorModel):
    """Story character (not part of the graph)."""

    id: str
    name: str = ""
    description: str = ""


class StoryDocument(EditorModel):
    """The full in-memory story, as exported to JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Forest Adventure",
                "description": "A short story about choices.",
                "nodes": [
                    {
                        "id": "root_1",
                        "title": "The forest edge",
                        "content": "You stand at the edge of a dense forest.",
                        "type": "regular",
                        "position": {"x": 100, "y": 100},
                        "isRoot": True,
                        "branches": [
                            {"id": "branch_1", "text": "Step inside", "targetId": "node_2"}
                        ],
                    }
                ],
                "characters": [],
            }
        },
    )

    id: Optional[str] = None
    title: str = ""
    description: str = ""
    cover_image: Optional[str] = None
    nodes: List[StoryNode] = Field(default_factory=list)
    characters: List[Character] = Field(default_factory=list)
    current_node_id: Optional[str] = None


__all__ = [
    "NodeType",
    "NodeShape",
    "Position",
    "Branch",
    "StoryNode",
    "NewNodeSpec",
    "Character",
    "StoryDocument",
    "utcnow",
]
