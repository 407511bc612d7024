"""SQLite database helpers for story persistence schema."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import logging
import sqlite3
from typing import Iterable, Iterator

from .config import get_config

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

DDL_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS stories (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        cover_image TEXT,
        created TEXT NOT NULL,
        updated TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_stories_updated ON stories(updated DESC)",
    """
    CREATE TABLE IF NOT EXISTS story_nodes (
        story_id TEXT NOT NULL,
        node_id TEXT NOT NULL,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        type TEXT NOT NULL DEFAULT 'regular',
        x REAL NOT NULL DEFAULT 0,
        y REAL NOT NULL DEFAULT 0,
        is_root INTEGER NOT NULL DEFAULT 0,
        media TEXT NOT NULL DEFAULT '[]',
        sort_order INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (story_id, node_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_nodes_story ON story_nodes(story_id, sort_order)",
    """
    CREATE TABLE IF NOT EXISTS story_branches (
        story_id TEXT NOT NULL,
        branch_id TEXT NOT NULL,
        source_node_id TEXT NOT NULL,
        target_node_id TEXT NOT NULL,
        context TEXT NOT NULL,
        sort_order INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (story_id, branch_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_branches_story ON story_branches(story_id, sort_order)",
    "CREATE INDEX IF NOT EXISTS idx_branches_source ON story_branches(story_id, source_node_id)",
    """
    CREATE TABLE IF NOT EXISTS story_characters (
        story_id TEXT NOT NULL,
        character_id TEXT NOT NULL,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        sort_order INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (story_id, character_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_characters_story ON story_characters(story_id, sort_order)",
)


class DatabaseService:
    """Manage SQLite connections and schema initialization."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path) if db_path else get_config().database_path

    def _ensure_directory(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        """Return a sqlite3 connection with the proper data directory created."""
        self._ensure_directory()
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Connection closed on exit; wrap statements in ``with conn:`` for a transaction."""
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()

    def schema_version(self) -> int:
        with self.connection() as conn:
            return conn.execute("PRAGMA user_version").fetchone()[0]

    def initialize(self, statements: Iterable[str] | None = None) -> Path:
        """Create all schema artifacts required for story storage."""
        with self.connection() as conn:
            with conn:
                for statement in statements or DDL_STATEMENTS:
                    conn.execute(statement)
                conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        logger.debug("Story schema v%d ready at %s", SCHEMA_VERSION, self.db_path)
        return self.db_path


def init_database(db_path: str | Path | None = None) -> Path:
    """Convenience wrapper used at application startup."""
    return DatabaseService(db_path).initialize()


__all__ = ["DatabaseService", "init_database", "DDL_STATEMENTS", "SCHEMA_VERSION"]
