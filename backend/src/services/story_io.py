"""Validated hand-off of a story graph to storage and to JSON export."""

from __future__ import annotations

from collections import defaultdict
import logging
from pathlib import Path
import re
import time
from typing import Dict, List, Optional

from ..models.payload import PayloadBranch, PayloadCharacter, PayloadNode, StoryPayload
from ..models.story import Branch, Character, Position, StoryDocument, StoryNode
from .config import get_config
from .errors import StoryValidationError
from .graph_store import GraphStore
from .story_repository import StoryPersistence
from .validator import StoryValidator

logger = logging.getLogger(__name__)

DEFAULT_BRANCH_CONTEXT = "Continue"
_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def build_payload(store: GraphStore) -> StoryPayload:
    """Normalize the store into the persistence shape, flattening branches out of nodes."""
    nodes: List[PayloadNode] = []
    branches: List[PayloadBranch] = []
    for node in store.nodes:
        nodes.append(
            PayloadNode(
                id=node.id,
                title=node.title.strip(),
                content=node.content.strip(),
                type=node.type,
                x=node.position.x,
                y=node.position.y,
                is_root=node.is_root,
                media=list(node.media),
            )
        )
        branches.extend(
            PayloadBranch(
                id=branch.id,
                source_node_id=node.id,
                target_node_id=branch.target_id,
                context=branch.text.strip(),
            )
            for branch in node.branches
        )

    return StoryPayload(
        title=store.title.strip(),
        description=store.description.strip(),
        cover_image=store.cover_image,
        nodes=nodes,
        branches=branches,
        characters=[
            PayloadCharacter(
                id=character.id,
                name=character.name.strip(),
                description=(character.description or "").strip(),
            )
            for character in store.characters
        ],
    )


def store_from_payload(payload: StoryPayload, story_id: Optional[str] = None) -> GraphStore:
    """Rebuild an editable store from a stored payload, regrouping branches by source."""
    by_source: Dict[str, List[Branch]] = defaultdict(list)
    for branch in payload.branches:
        by_source[branch.source_node_id].append(
            Branch(
                id=branch.id,
                text=branch.context or DEFAULT_BRANCH_CONTEXT,
                target_id=branch.target_node_id,
            )
        )

    orphaned = set(by_source) - {node.id for node in payload.nodes}
    if orphaned:
        logger.warning(
            "Dropping branches from %d unknown source node(s): %s",
            len(orphaned),
            ", ".join(sorted(orphaned)),
        )

    document = StoryDocument(
        id=story_id,
        title=payload.title,
        description=payload.description,
        cover_image=payload.cover_image,
        nodes=[
            StoryNode(
                id=node.id,
                title=node.title,
                content=node.content,
                type=node.type,
                position=Position(x=node.x, y=node.y),
                is_root=node.is_root,
                media=list(node.media),
                branches=by_source.get(node.id, []),
            )
            for node in payload.nodes
        ],
        characters=[
            Character(id=character.id, name=character.name, description=character.description)
            for character in payload.characters
        ],
    )
    return GraphStore.from_document(document)


def document_json(store: GraphStore) -> str:
    """Formatted JSON of the full in-memory model, UI fields included."""
    return store.to_document().model_dump_json(by_alias=True, indent=2)


def ensure_valid(store: GraphStore, validator: StoryValidator | None = None) -> None:
    """Raise StoryValidationError carrying every violation, if there are any."""
    errors = (validator or StoryValidator()).validate(store.to_document())
    if errors:
        logger.info("Story %s blocked by %d validation error(s)", store.story_id, len(errors))
        raise StoryValidationError(errors)


def save_story(
    store: GraphStore,
    persistence: StoryPersistence,
    story_id: Optional[str] = None,
    *,
    validator: StoryValidator | None = None,
) -> str:
    """
    Validate the story and hand its payload to ``persistence``.

    Nothing is saved when validation fails; the store is never modified.
    """
    ensure_valid(store, validator)
    saved_id = persistence.save(build_payload(store), story_id or store.story_id)
    store.story_id = saved_id
    return saved_id


def export_filename(title: str, timestamp_ms: Optional[int] = None) -> str:
    stem = _UNSAFE_FILENAME_CHARS.sub("_", (title or "").strip()) or "story"
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{stem}_{timestamp_ms}.json"


def export_story(
    store: GraphStore,
    directory: Path | None = None,
    *,
    validator: StoryValidator | None = None,
) -> Path:
    """Write the validated story document to ``directory`` and return the file path."""
    ensure_valid(store, validator)
    target_dir = directory or get_config().export_base_path
    target_dir.mkdir(parents=True, exist_ok=True)

    path = target_dir / export_filename(store.title)
    path.write_text(document_json(store), encoding="utf-8")
    logger.info("Exported story to %s", path)
    return path


__all__ = [
    "build_payload",
    "store_from_payload",
    "document_json",
    "ensure_valid",
    "save_story",
    "export_story",
    "export_filename",
    "DEFAULT_BRANCH_CONTEXT",
]
