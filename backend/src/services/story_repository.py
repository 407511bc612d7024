"""SQLite-backed storage for validated story payloads."""

from __future__ import annotations

import abc
from datetime import datetime, timezone
import json
import logging
import sqlite3
from typing import List, Optional
import uuid

from ..models.payload import (
    PayloadBranch,
    PayloadCharacter,
    PayloadNode,
    StoryPayload,
    StorySummary,
)
from .database import DatabaseService
from .errors import NotFound, PersistenceError

logger = logging.getLogger(__name__)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class StoryPersistence(abc.ABC):
    """Collaborator receiving normalized payloads from the editor core."""

    @abc.abstractmethod
    def save(self, payload: StoryPayload, story_id: Optional[str] = None) -> str:
        """Store ``payload`` (replacing any previous version) and return the story id."""


class StoryRepository(StoryPersistence):
    """Stores each story as rows of nodes, flattened branches and characters."""

    def __init__(self, db_service: DatabaseService | None = None) -> None:
        self._db = db_service or DatabaseService()

    def save(self, payload: StoryPayload, story_id: Optional[str] = None) -> str:
        story_id = story_id or uuid.uuid4().hex
        now = _utcnow_iso()
        try:
            conn = self._db.connect()
        except sqlite3.Error as exc:
            logger.exception("Could not open story database")
            raise PersistenceError(f"Could not open story database: {exc}") from exc

        try:
            with conn:
                row = conn.execute(
                    "SELECT created FROM stories WHERE id = ?", (story_id,)
                ).fetchone()
                created = row["created"] if row else now
                conn.execute(
                    """
                    INSERT OR REPLACE INTO stories (id, title, description, cover_image, created, updated)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (story_id, payload.title, payload.description, payload.cover_image, created, now),
                )
                self._delete_children(conn, story_id)
                conn.executemany(
                    """
                    INSERT INTO story_nodes
                    (story_id, node_id, title, content, type, x, y, is_root, media, sort_order)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            story_id,
                            node.id,
                            node.title,
                            node.content,
                            node.type.value,
                            node.x,
                            node.y,
                            int(node.is_root),
                            json.dumps(node.media),
                            order,
                        )
                        for order, node in enumerate(payload.nodes)
                    ],
                )
                conn.executemany(
                    """
                    INSERT INTO story_branches
                    (story_id, branch_id, source_node_id, target_node_id, context, sort_order)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            story_id,
                            branch.id,
                            branch.source_node_id,
                            branch.target_node_id,
                            branch.context,
                            order,
                        )
                        for order, branch in enumerate(payload.branches)
                    ],
                )
                conn.executemany(
                    """
                    INSERT INTO story_characters
                    (story_id, character_id, name, description, sort_order)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    [
                        (story_id, character.id, character.name, character.description, order)
                        for order, character in enumerate(payload.characters)
                    ],
                )
        except sqlite3.Error as exc:
            logger.exception("Failed to save story %s", story_id)
            raise PersistenceError(f"Failed to save story: {exc}") from exc
        finally:
            conn.close()

        logger.info(
            "Saved story %s (%d nodes, %d branches, %d characters)",
            story_id,
            len(payload.nodes),
            len(payload.branches),
            len(payload.characters),
        )
        return story_id

    def load(self, story_id: str) -> StoryPayload:
        try:
            conn = self._db.connect()
        except sqlite3.Error as exc:
            logger.exception("Could not open story database")
            raise PersistenceError(f"Could not open story database: {exc}") from exc

        try:
            story = conn.execute(
                "SELECT title, description, cover_image FROM stories WHERE id = ?",
                (story_id,),
            ).fetchone()
            if story is None:
                raise NotFound(f"Story not found: {story_id}")

            node_rows = conn.execute(
                """
                SELECT node_id, title, content, type, x, y, is_root, media
                FROM story_nodes WHERE story_id = ? ORDER BY sort_order
                """,
                (story_id,),
            ).fetchall()
            branch_rows = conn.execute(
                """
                SELECT branch_id, source_node_id, target_node_id, context
                FROM story_branches WHERE story_id = ? ORDER BY sort_order
                """,
                (story_id,),
            ).fetchall()
            character_rows = conn.execute(
                """
                SELECT character_id, name, description
                FROM story_characters WHERE story_id = ? ORDER BY sort_order
                """,
                (story_id,),
            ).fetchall()
        except sqlite3.Error as exc:
            logger.exception("Failed to load story %s", story_id)
            raise PersistenceError(f"Failed to load story: {exc}") from exc
        finally:
            conn.close()

        return StoryPayload(
            title=story["title"],
            description=story["description"],
            cover_image=story["cover_image"],
            nodes=[
                PayloadNode(
                    id=row["node_id"],
                    title=row["title"],
                    content=row["content"],
                    type=row["type"],
                    x=row["x"],
                    y=row["y"],
                    is_root=bool(row["is_root"]),
                    media=json.loads(row["media"] or "[]"),
                )
                for row in node_rows
            ],
            branches=[
                PayloadBranch(
                    id=row["branch_id"],
                    source_node_id=row["source_node_id"],
                    target_node_id=row["target_node_id"],
                    context=row["context"],
                )
                for row in branch_rows
            ],
            characters=[
                PayloadCharacter(
                    id=row["character_id"], name=row["name"], description=row["description"]
                )
                for row in character_rows
            ],
        )

    def list_stories(self) -> List[StorySummary]:
        try:
            with self._db.connection() as conn:
                rows = conn.execute(
                    """
                    SELECT s.id, s.title, s.description, s.updated,
                           (SELECT COUNT(*) FROM story_nodes n WHERE n.story_id = s.id) AS node_count
                    FROM stories s
                    ORDER BY s.updated DESC, s.id
                    """
                ).fetchall()
        except sqlite3.Error as exc:
            logger.exception("Failed to list stories")
            raise PersistenceError(f"Failed to list stories: {exc}") from exc
        return [
            StorySummary(
                id=row["id"],
                title=row["title"],
                description=row["description"],
                node_count=row["node_count"],
                updated=datetime.fromisoformat(row["updated"]),
            )
            for row in rows
        ]

    def count(self) -> int:
        try:
            with self._db.connection() as conn:
                return conn.execute("SELECT COUNT(*) FROM stories").fetchone()[0]
        except sqlite3.Error as exc:
            logger.exception("Failed to count stories")
            raise PersistenceError(f"Failed to count stories: {exc}") from exc

    def delete(self, story_id: str) -> None:
        try:
            with self._db.connection() as conn, conn:
                cursor = conn.execute("DELETE FROM stories WHERE id = ?", (story_id,))
                if cursor.rowcount == 0:
                    raise NotFound(f"Story not found: {story_id}")
                self._delete_children(conn, story_id)
        except sqlite3.Error as exc:
            logger.exception("Failed to delete story %s", story_id)
            raise PersistenceError(f"Failed to delete story: {exc}") from exc
        logger.info("Deleted story %s", story_id)

    @staticmethod
    def _delete_children(conn: sqlite3.Connection, story_id: str) -> None:
        conn.execute("DELETE FROM story_nodes WHERE story_id = ?", (story_id,))
        conn.execute("DELETE FROM story_branches WHERE story_id = ?", (story_id,))
        conn.execute("DELETE FROM story_characters WHERE story_id = ?", (story_id,))


__all__ = ["StoryPersistence", "StoryRepository"]
