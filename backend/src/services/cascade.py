"""Cascading node deletion."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Dict, List, Set

from ..models.story import StoryNode
from .errors import NotFound, RootProtected

logger = logging.getLogger(__name__)


@dataclass
class DeletionResult:
    """What a cascading delete removed."""

    removed_node_ids: List[str] = field(default_factory=list)
    stripped_branch_ids: List[str] = field(default_factory=list)


class CascadeDeleter:
    """
    Removes a node together with every node reachable through its branches.

    The branch graph is treated as a tree: a node reachable from the deleted
    node is removed even when another surviving node also branches into it;
    that other node's branch is then stripped by the dangling-branch sweep.
    The root is never removed, including when a descendant branches back
    into it.
    """

    def delete(self, nodes: Dict[str, StoryNode], node_id: str) -> DeletionResult:
        """
        Delete ``node_id`` and its descendants from the ``nodes`` index in place.

        Raises RootProtected for the root (leaving ``nodes`` untouched) and
        NotFound if the node does not exist.
        """
        target = nodes.get(node_id)
        if target is None:
            raise NotFound(f"Node not found: {node_id}")
        if target.is_root:
            raise RootProtected("The root node cannot be deleted")

        result = DeletionResult()
        self._remove_subtree(nodes, node_id, result)
        result.stripped_branch_ids = self.strip_dangling_branches(nodes)

        logger.info(
            "Deleted node %s: %d node(s) removed, %d dangling branch(es) stripped",
            node_id,
            len(result.removed_node_ids),
            len(result.stripped_branch_ids),
        )
        return result

    def _remove_subtree(
        self, nodes: Dict[str, StoryNode], node_id: str, result: DeletionResult
    ) -> None:
        # Depth-first over an explicit stack; removal is by id, so order only
        # affects the order of result.removed_node_ids.
        seen: Set[str] = set()
        stack: List[str] = [node_id]
        while stack:
            current_id = stack.pop()
            if current_id in seen:
                continue
            seen.add(current_id)

            node = nodes.get(current_id)
            if node is None:
                continue
            if node.is_root:
                logger.warning("Cascade from %s reached the root; root kept", node_id)
                continue

            stack.extend(branch.target_id for branch in reversed(node.branches))
            del nodes[current_id]
            result.removed_node_ids.append(current_id)

    @staticmethod
    def strip_dangling_branches(nodes: Dict[str, StoryNode]) -> List[str]:
        """Drop every branch whose target no longer resolves; returns the dropped IDs."""
        stripped: List[str] = []
        for node in nodes.values():
            kept = []
            for branch in node.branches:
                if branch.target_id in nodes:
                    kept.append(branch)
                else:
                    stripped.append(branch.id)
            if len(kept) != len(node.branches):
                node.branches = kept
        return stripped


__all__ = ["CascadeDeleter", "DeletionResult"]
