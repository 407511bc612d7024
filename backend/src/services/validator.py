"""Pre-save structural validation of a story graph."""

from __future__ import annotations

import math
from typing import Any, List, Set

from ..models.story import NodeType, StoryDocument

STORY_TITLE_MAX_LENGTH = 50
STORY_DESCRIPTION_MAX_LENGTH = 500
CHARACTER_NAME_MAX_LENGTH = 100
CHARACTER_DESCRIPTION_MAX_LENGTH = 1000


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_coordinate(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


class StoryValidator:
    """
    Collects every violation that should block a save or export.

    Validation never short-circuits and never modifies the story; an empty
    list means the story may be persisted.
    """

    def validate(self, document: StoryDocument) -> List[str]:
        errors: List[str] = []
        self._check_story_info(document, errors)
        self._check_nodes(document, errors)
        errors.extend(self.duplicate_id_errors(document))
        self._check_characters(document, errors)
        return errors

    def duplicate_id_errors(self, document: StoryDocument) -> List[str]:
        """Ids used more than once: nodes, branches (story-wide) and characters."""
        errors: List[str] = []
        seen_nodes: Set[str] = set()
        seen_branches: Set[str] = set()
        for node in document.nodes:
            if node.id in seen_nodes:
                errors.append(f"Duplicate node id {node.id}")
            seen_nodes.add(node.id)
            for branch in node.branches:
                if branch.id in seen_branches:
                    errors.append(f"Duplicate branch id {branch.id} on node {node.id}")
                seen_branches.add(branch.id)
        seen_characters: Set[str] = set()
        for character in document.characters:
            if character.id in seen_characters:
                errors.append(f"Duplicate character id {character.id}")
            seen_characters.add(character.id)
        return errors

    def _check_story_info(self, document: StoryDocument, errors: List[str]) -> None:
        title = (document.title or "").strip()
        if not title:
            errors.append("Story title is required")
        elif len(title) > STORY_TITLE_MAX_LENGTH:
            errors.append(
                f"Story title must be at most {STORY_TITLE_MAX_LENGTH} characters "
                f"(currently {len(title)})"
            )

        description = (document.description or "").strip()
        if not description:
            errors.append("Story description is required")
        elif len(description) > STORY_DESCRIPTION_MAX_LENGTH:
            errors.append(
                f"Story description must be at most {STORY_DESCRIPTION_MAX_LENGTH} characters "
                f"(currently {len(description)})"
            )

    def _check_nodes(self, document: StoryDocument, errors: List[str]) -> None:
        if not document.nodes:
            errors.append("Story needs at least one node")
            return

        roots = [node for node in document.nodes if node.is_root]
        if not roots:
            errors.append("Story is missing a root node")
        elif len(roots) > 1:
            errors.append(f"Story has multiple root nodes ({len(roots)})")

        node_ids = {node.id for node in document.nodes}
        for node in document.nodes:
            if _blank(node.title):
                errors.append(f"Node {node.id} title is required")
            if _blank(node.content):
                errors.append(f"Node {node.id} content is required")
            if not (_is_coordinate(node.position.x) and _is_coordinate(node.position.y)):
                errors.append(f"Node {node.id} position is invalid")
            if node.type == NodeType.END and node.branches:
                errors.append(f"End node {node.id} cannot have branches")
            elif node.type == NodeType.REGULAR and len(node.branches) > 1:
                errors.append(
                    f"Regular node {node.id} can only have one branch ({len(node.branches)})"
                )

            for branch in node.branches:
                if _blank(branch.text):
                    errors.append(f"Branch {branch.id} on node {node.id} text is required")
                if not branch.target_id:
                    errors.append(f"Branch {branch.id} on node {node.id} has no target")
                elif branch.target_id not in node_ids:
                    errors.append(
                        f"Branch {branch.id} on node {node.id} targets missing node "
                        f"{branch.target_id}"
                    )

    def _check_characters(self, document: StoryDocument, errors: List[str]) -> None:
        for character in document.characters:
            if _blank(character.name):
                errors.append(f"Character {character.id} name is required")
            elif len(character.name.strip()) > CHARACTER_NAME_MAX_LENGTH:
                errors.append(
                    f"Character {character.id} name must be at most "
                    f"{CHARACTER_NAME_MAX_LENGTH} characters"
                )
            if len(character.description or "") > CHARACTER_DESCRIPTION_MAX_LENGTH:
                errors.append(
                    f"Character {character.id} description must be at most "
                    f"{CHARACTER_DESCRIPTION_MAX_LENGTH} characters"
                )


__all__ = [
    "StoryValidator",
    "STORY_TITLE_MAX_LENGTH",
    "STORY_DESCRIPTION_MAX_LENGTH",
    "CHARACTER_NAME_MAX_LENGTH",
    "CHARACTER_DESCRIPTION_MAX_LENGTH",
]
