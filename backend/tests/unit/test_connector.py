import math

import pytest

from backend.src.models.canvas import Point
from backend.src.models.story import NodeShape, Position, StoryNode
from backend.src.services.connector import ConnectorGeometry


@pytest.fixture
def geometry() -> ConnectorGeometry:
    return ConnectorGeometry()


def _node(x: float, y: float, shape: NodeShape = NodeShape.RECTANGLE) -> StoryNode:
    return StoryNode(id=f"n-{x}-{y}", title="t", content="c", position=Position(x=x, y=y), shape=shape)


def test_center_is_offset_by_half_the_card(geometry: ConnectorGeometry) -> None:
    assert geometry.center(Position(x=100, y=100)) == Point(x=190, y=130)


def test_horizontal_connector_runs_between_facing_sides(geometry: ConnectorGeometry) -> None:
    line = geometry.connect(_node(0, 0), _node(400, 0))

    assert line.start.x == pytest.approx(180)
    assert line.start.y == pytest.approx(30)
    assert line.end.x == pytest.approx(400)
    assert line.end.y == pytest.approx(30)
    assert line.length == pytest.approx(220)
    assert line.angle == pytest.approx(0)


def test_vertical_connector_uses_top_and_bottom_edges(geometry: ConnectorGeometry) -> None:
    line = geometry.connect(_node(0, 0), _node(0, 300))

    assert (line.start.x, line.start.y) == pytest.approx((90, 60))
    assert (line.end.x, line.end.y) == pytest.approx((90, 300))
    assert line.length == pytest.approx(240)
    assert line.angle == pytest.approx(90)


def test_circular_source_leaves_along_the_radius(geometry: ConnectorGeometry) -> None:
    line = geometry.connect(_node(0, 0, NodeShape.CIRCLE), _node(400, 0))

    assert (line.start.x, line.start.y) == pytest.approx((120, 30))
    assert (line.end.x, line.end.y) == pytest.approx((400, 30))
    assert line.length == pytest.approx(280)


def test_identical_centers_give_zero_length_segment(geometry: ConnectorGeometry) -> None:
    line = geometry.connect(_node(50, 50), _node(50, 50))

    assert line.start == line.end == Point(x=140, y=80)
    assert line.length == 0
    assert line.angle == 0


@pytest.mark.parametrize(
    "a, b",
    [
        (Point(x=0, y=0), Point(x=400, y=100)),
        (Point(x=0, y=0), Point(x=-100, y=350)),
        (Point(x=10, y=20), Point(x=-300, y=-40)),
    ],
)
def test_swapping_endpoints_reverses_the_segment(geometry: ConnectorGeometry, a: Point, b: Point) -> None:
    forward = geometry.line_between(a, NodeShape.RECTANGLE, b, NodeShape.CIRCLE)
    backward = geometry.line_between(b, NodeShape.CIRCLE, a, NodeShape.RECTANGLE)

    assert (forward.start.x, forward.start.y) == pytest.approx((backward.end.x, backward.end.y))
    assert (forward.end.x, forward.end.y) == pytest.approx((backward.start.x, backward.start.y))
    assert forward.length == pytest.approx(backward.length)


def test_midpoint_sits_halfway_along_the_line(geometry: ConnectorGeometry) -> None:
    line = geometry.connect(_node(0, 0), _node(400, 0))

    assert line.midpoint == Point(x=290, y=30)


def test_diagonal_connector_between_rectangles(geometry: ConnectorGeometry) -> None:
    # Centers (90, 30) and (490, 130): shallow slope, so both ends sit on side edges.
    line = geometry.connect(_node(0, 0), _node(400, 100))

    assert (line.start.x, line.start.y) == pytest.approx((180, 37.5))
    assert (line.end.x, line.end.y) == pytest.approx((400, 137.5))
    assert line.length == pytest.approx(math.hypot(220, 100))
    assert line.angle == pytest.approx(math.degrees(math.atan2(100, 220)))
