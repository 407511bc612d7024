"""Canvas placement for story nodes."""

from __future__ import annotations

from collections import deque
import logging
from typing import Deque, Dict, Iterable, Optional, Sequence, Set, Tuple

from ..models.story import Position, StoryNode

logger = logging.getLogger(__name__)

NODE_WIDTH = 180.0
NODE_HEIGHT = 100.0
NODE_SPACING = 20.0
HORIZONTAL_OFFSET = 200.0
MAX_PLACEMENT_ATTEMPTS = 20

AUTO_LAYOUT_SPACING = 30.0
AUTO_LAYOUT_MAX_CHECKS = 50
AUTO_LAYOUT_ORIGIN = (100.0, 100.0)
ORPHAN_ORIGIN = (500.0, 100.0)


def boxes_overlap(a: Position, b: Position, width: float, height: float) -> bool:
    """Strict AABB intersection of two equally sized boxes (touching edges do not count)."""
    return (
        b.x < a.x + width
        and b.x + width > a.x
        and b.y < a.y + height
        and b.y + height > a.y
    )


class LayoutEngine:
    """Chooses canvas positions so new nodes do not sit on top of existing ones."""

    def __init__(
        self,
        node_width: float = NODE_WIDTH,
        node_height: float = NODE_HEIGHT,
        spacing: float = NODE_SPACING,
        horizontal_offset: float = HORIZONTAL_OFFSET,
        max_attempts: int = MAX_PLACEMENT_ATTEMPTS,
    ) -> None:
        self.node_width = node_width
        self.node_height = node_height
        self.spacing = spacing
        self.horizontal_offset = horizontal_offset
        self.max_attempts = max_attempts

    def overlaps(self, candidate: Position, others: Iterable[Position]) -> bool:
        return any(
            boxes_overlap(candidate, other, self.node_width, self.node_height) for other in others
        )

    def place_child(self, parent: Position, existing: Iterable[Position]) -> Position:
        """
        Position for a node created as a branch target of ``parent``.

        Starts one column to the right of the parent and steps straight down
        until the box is clear. The search is bounded; once the bound is hit
        the last candidate is returned even if it still overlaps.
        """
        occupied = list(existing)
        candidate = Position(x=parent.x + self.horizontal_offset, y=parent.y)
        step = self.node_height + self.spacing

        for _ in range(self.max_attempts):
            if not self.overlaps(candidate, occupied):
                return candidate
            candidate = Position(x=candidate.x, y=candidate.y + step)

        if self.overlaps(candidate, occupied):
            logger.warning(
                "Placement gave up after %d attempts; node at (%.1f, %.1f) overlaps",
                self.max_attempts,
                candidate.x,
                candidate.y,
            )
        return candidate

    def auto_layout(
        self,
        nodes: Sequence[StoryNode],
        *,
        spacing: float = AUTO_LAYOUT_SPACING,
        max_checks: int = AUTO_LAYOUT_MAX_CHECKS,
    ) -> None:
        """
        Re-position every node in place, breadth-first from the root.

        Children of a node go to the next column, stacked below the parent's
        row in branch order; a child that would overlap an existing box is
        pushed to the right of it. Nodes unreachable from the root are stacked
        downward in a separate column.
        """
        if not nodes:
            return

        by_id: Dict[str, StoryNode] = {node.id: node for node in nodes}
        root = next((node for node in nodes if node.is_root), nodes[0])
        width, height = self.node_width, self.node_height

        visited: Set[str] = {root.id}
        queue: Deque[Tuple[StoryNode, float, float]] = deque(
            [(root, AUTO_LAYOUT_ORIGIN[0], AUTO_LAYOUT_ORIGIN[1])]
        )
        row_bottoms: Dict[int, float] = {}

        while queue:
            node, x, y = queue.popleft()
            node.position = Position(x=x, y=y)

            row = int(y // (height + spacing))
            row_bottoms[row] = max(row_bottoms.get(row, y + height), y + height)

            if not node.branches:
                continue

            column_x = x + width + spacing * 2
            next_row_y = row_bottoms[row] + spacing
            for index, branch in enumerate(node.branches):
                target = by_id.get(branch.target_id)
                if target is None or target.id in visited:
                    continue
                visited.add(target.id)

                candidate = Position(x=column_x, y=next_row_y + index * (height + spacing))
                candidate = self._push_right(candidate, nodes, target.id, spacing, max_checks)
                queue.append((target, candidate.x, candidate.y))

        orphan_x, orphan_y = ORPHAN_ORIGIN
        for node in nodes:
            if node.id in visited:
                continue
            candidate = Position(x=orphan_x, y=orphan_y)
            candidate = self._push_down(candidate, nodes, node.id, spacing, max_checks)
            node.position = candidate
            orphan_y = candidate.y + height + spacing

        logger.info(
            "Auto layout placed %d node(s), %d unreachable from root",
            len(nodes),
            len(nodes) - len(visited),
        )

    def _first_blocker(
        self, candidate: Position, nodes: Sequence[StoryNode], skip_id: str
    ) -> Optional[StoryNode]:
        for other in nodes:
            if other.id == skip_id:
                continue
            if boxes_overlap(candidate, other.position, self.node_width, self.node_height):
                return other
        return None

    def _push_right(
        self,
        candidate: Position,
        nodes: Sequence[StoryNode],
        skip_id: str,
        spacing: float,
        max_checks: int,
    ) -> Position:
        for _ in range(max_checks):
            blocker = self._first_blocker(candidate, nodes, skip_id)
            if blocker is None:
                break
            candidate = Position(x=blocker.position.x + self.node_width + spacing, y=candidate.y)
        return candidate

    def _push_down(
        self,
        candidate: Position,
        nodes: Sequence[StoryNode],
        skip_id: str,
        spacing: float,
        max_checks: int,
    ) -> Position:
        for _ in range(max_checks):
            blocker = self._first_blocker(candidate, nodes, skip_id)
            if blocker is None:
                break
            candidate = Position(x=candidate.x, y=blocker.position.y + self.node_height + spacing)
        return candidate


__all__ = [
    "LayoutEngine",
    "boxes_overlap",
    "NODE_WIDTH",
    "NODE_HEIGHT",
    "NODE_SPACING",
    "HORIZONTAL_OFFSET",
    "MAX_PLACEMENT_ATTEMPTS",
]
