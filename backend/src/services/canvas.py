"""Read-only canvas scene assembly for renderers."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..models.canvas import CanvasBounds, CanvasScene, Connector
from ..models.story import Branch, StoryNode
from .connector import ConnectorGeometry
from .graph_store import GraphStore
from .layout import NODE_HEIGHT, NODE_WIDTH

logger = logging.getLogger(__name__)

CANVAS_MARGIN = 200.0
DEFAULT_VIEWPORT_WIDTH = 800.0
DEFAULT_VIEWPORT_HEIGHT = 600.0


def _connector(
    geometry: ConnectorGeometry, source: StoryNode, target: StoryNode, branch: Branch
) -> Connector:
    line = geometry.connect(source, target)
    return Connector(
        branch_id=branch.id,
        source_id=source.id,
        target_id=target.id,
        line=line,
        label=branch.text,
        label_position=line.midpoint,
    )


def canvas_bounds(
    nodes: Iterable[StoryNode],
    *,
    viewport_width: float = DEFAULT_VIEWPORT_WIDTH,
    viewport_height: float = DEFAULT_VIEWPORT_HEIGHT,
    node_width: float = NODE_WIDTH,
    node_height: float = NODE_HEIGHT,
    margin: float = CANVAS_MARGIN,
) -> CanvasBounds:
    """Scrollable area that fits every node box plus a margin, never smaller than the viewport."""
    nodes = list(nodes)
    if not nodes:
        return CanvasBounds(min_x=0.0, min_y=0.0, width=viewport_width, height=viewport_height)

    min_x = min(node.position.x for node in nodes)
    min_y = min(node.position.y for node in nodes)
    max_x = max(node.position.x for node in nodes) + node_width
    max_y = max(node.position.y for node in nodes) + node_height

    min_x = min(min_x - margin, 0.0)
    min_y = min(min_y - margin, 0.0)
    max_x += margin
    max_y += margin

    return CanvasBounds(
        min_x=min_x,
        min_y=min_y,
        width=max(viewport_width, max_x - min_x),
        height=max(viewport_height, max_y - min_y),
    )


def build_scene(
    store: GraphStore,
    geometry: Optional[ConnectorGeometry] = None,
    *,
    viewport_width: float = DEFAULT_VIEWPORT_WIDTH,
    viewport_height: float = DEFAULT_VIEWPORT_HEIGHT,
) -> CanvasScene:
    """
    Connector geometry for every branch plus the canvas bounds.

    Branches whose target cannot be resolved are skipped with a warning;
    the rest of the scene is still produced.
    """
    geometry = geometry or ConnectorGeometry()
    connectors: List[Connector] = []
    skipped: List[str] = []

    for source in store.nodes:
        for branch in source.branches:
            if not store.has_node(branch.target_id):
                logger.warning(
                    "Skipping connector for branch %s: target %s not found",
                    branch.id,
                    branch.target_id,
                )
                skipped.append(branch.id)
                continue
            target = store.get_node(branch.target_id)
            connectors.append(_connector(geometry, source, target, branch))

    return CanvasScene(
        connectors=connectors,
        skipped_branches=skipped,
        bounds=canvas_bounds(
            store.nodes, viewport_width=viewport_width, viewport_height=viewport_height
        ),
    )


def connectors_for_node(
    store: GraphStore, node_id: str, geometry: Optional[ConnectorGeometry] = None
) -> List[Connector]:
    """Connectors leaving or entering ``node_id`` (redrawn while it is dragged)."""
    geometry = geometry or ConnectorGeometry()
    node = store.get_node(node_id)
    connectors: List[Connector] = []

    for branch in node.branches:
        if store.has_node(branch.target_id):
            connectors.append(_connector(geometry, node, store.get_node(branch.target_id), branch))

    for source, branch in store.branches_into(node_id):
        if source.id == node_id:
            continue
        connectors.append(_connector(geometry, source, node, branch))
    return connectors


__all__ = [
    "build_scene",
    "connectors_for_node",
    "canvas_bounds",
    "CANVAS_MARGIN",
    "DEFAULT_VIEWPORT_WIDTH",
    "DEFAULT_VIEWPORT_HEIGHT",
]
