"""Boundary-to-boundary routing for connector lines between nodes."""

from __future__ import annotations

import math

from ..models.canvas import ConnectorLine, Point
from ..models.story import NodeShape, Position, StoryNode

# Connector routing uses the rendered card height, which is shorter than the
# box reserved by the layout engine.
CONNECTOR_NODE_WIDTH = 180.0
CONNECTOR_NODE_HEIGHT = 60.0


def _sign(value: float) -> float:
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0


class ConnectorGeometry:
    """
    Pure geometry for drawing a branch between two nodes.

    A renderer draws a line of ``length`` rotated by ``angle`` degrees,
    anchored at ``start``, and places the branch label at the midpoint.
    """

    def __init__(
        self,
        node_width: float = CONNECTOR_NODE_WIDTH,
        node_height: float = CONNECTOR_NODE_HEIGHT,
    ) -> None:
        self.node_width = node_width
        self.node_height = node_height
        self.half_width = node_width / 2
        self.half_height = node_height / 2
        self.radius = min(node_width, node_height) / 2

    def center(self, position: Position) -> Point:
        return Point(x=position.x + self.half_width, y=position.y + self.half_height)

    def connect(self, source: StoryNode, target: StoryNode) -> ConnectorLine:
        """Connector for a branch from ``source`` to ``target``."""
        return self.line_between(
            self.center(source.position),
            source.shape,
            self.center(target.position),
            target.shape,
        )

    def line_between(
        self,
        source_center: Point,
        source_shape: NodeShape,
        target_center: Point,
        target_shape: NodeShape,
    ) -> ConnectorLine:
        delta_x = target_center.x - source_center.x
        delta_y = target_center.y - source_center.y
        distance = math.hypot(delta_x, delta_y)
        if distance == 0:
            return ConnectorLine(start=source_center, end=source_center, length=0.0, angle=0.0)

        theta = math.atan2(delta_y, delta_x)
        dx = delta_x / distance
        dy = delta_y / distance

        start = self.boundary_point(source_center, source_shape, dx, dy, theta)
        end = self.boundary_point(target_center, target_shape, -dx, -dy, theta + math.pi)

        segment_x = end.x - start.x
        segment_y = end.y - start.y
        return ConnectorLine(
            start=start,
            end=end,
            length=math.hypot(segment_x, segment_y),
            angle=math.degrees(math.atan2(segment_y, segment_x)),
        )

    def boundary_point(
        self, center: Point, shape: NodeShape, dx: float, dy: float, angle: float
    ) -> Point:
        """
        Point where a connector heading along unit vector ``(dx, dy)`` crosses
        the node outline. ``angle`` is only used for circular nodes.
        """
        if shape == NodeShape.CIRCLE:
            return Point(
                x=center.x + self.radius * math.cos(angle),
                y=center.y + self.radius * math.sin(angle),
            )
        if abs(dx) > abs(dy):
            # Left or right side.
            return Point(
                x=center.x + self.half_width * _sign(dx),
                y=center.y + self.half_height * dy / abs(dx) * _sign(dy),
            )
        # Top or bottom side.
        return Point(
            x=center.x + self.half_width * dx / abs(dy) * _sign(dx),
            y=center.y + self.half_height * _sign(dy),
        )


__all__ = ["ConnectorGeometry", "CONNECTOR_NODE_WIDTH", "CONNECTOR_NODE_HEIGHT"]
