"""Canvas geometry models consumed by renderers."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class ConnectorLine(BaseModel):
    """Boundary-to-boundary segment between two nodes."""

    model_config = ConfigDict(frozen=True)

    start: Point
    end: Point
    length: float = Field(..., ge=0, description="Euclidean length of the segment")
    angle: float = Field(..., description="Rotation of the segment in degrees")

    @property
    def midpoint(self) -> Point:
        return Point(x=(self.start.x + self.end.x) / 2, y=(self.start.y + self.end.y) / 2)


class Connector(BaseModel):
    """A rendered branch: line geometry plus its label."""

    branch_id: str
    source_id: str
    target_id: str
    line: ConnectorLine
    label: str = ""
    label_position: Point


class CanvasBounds(BaseModel):
    min_x: float
    min_y: float
    width: float
    height: float


class CanvasScene(BaseModel):
    """Everything a renderer needs to redraw the canvas."""

    connectors: List[Connector] = Field(default_factory=list)
    skipped_branches: List[str] = Field(
        default_factory=list, description="Branch IDs whose target could not be resolved"
    )
    bounds: CanvasBounds


__all__ = ["Point", "ConnectorLine", "Connector", "CanvasBounds", "CanvasScene"]
