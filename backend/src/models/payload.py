"""Persistence payload models (the shape handed to storage)."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .story import NodeType


class PayloadNode(BaseModel):
    """Node row without its branches."""

    id: str
    title: str
    content: str
    type: NodeType = NodeType.REGULAR
    x: float
    y: float
    is_root: bool = False
    media: List[str] = Field(default_factory=list)


class PayloadBranch(BaseModel):
    """Branch flattened out of its owning node."""

    id: str
    source_node_id: str
    target_node_id: str
    context: str


class PayloadCharacter(BaseModel):
    id: str
    name: str = Field(..., max_length=100)
    description: str = Field(default="", max_length=1000)


class StoryPayload(BaseModel):
    """Normalized story handed to the persistence collaborator."""

    title: str
    description: str
    cover_image: Optional[str] = None
    nodes: List[PayloadNode] = Field(default_factory=list)
    branches: List[PayloadBranch] = Field(default_factory=list)
    characters: List[PayloadCharacter] = Field(default_factory=list)


class StorySummary(BaseModel):
    """Lightweight representation used for listings."""

    id: str
    title: str
    description: str
    node_count: int = Field(..., ge=0)
    updated: datetime


class SaveResponse(BaseModel):
    """Returned after a story was validated and stored."""

    id: str
    node_count: int
    branch_count: int


class ValidationReport(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)


__all__ = [
    "PayloadNode",
    "PayloadBranch",
    "PayloadCharacter",
    "StoryPayload",
    "StorySummary",
    "SaveResponse",
    "ValidationReport",
]
