from pathlib import Path
import sqlite3

import pytest

from backend.src.models.payload import (
    PayloadBranch,
    PayloadCharacter,
    PayloadNode,
    StoryPayload,
)
from backend.src.services.database import SCHEMA_VERSION, DatabaseService
from backend.src.services.errors import NotFound, PersistenceError
from backend.src.services.story_repository import StoryRepository


@pytest.fixture
def db_service(tmp_path: Path) -> DatabaseService:
    service = DatabaseService(tmp_path / "stories.db")
    service.initialize()
    return service


@pytest.fixture
def repository(db_service: DatabaseService) -> StoryRepository:
    return StoryRepository(db_service)


def _payload(title: str = "Story") -> StoryPayload:
    return StoryPayload(
        title=title,
        description="Desc",
        nodes=[
            PayloadNode(id="root", title="R", content="R", x=100, y=100, is_root=True),
            PayloadNode(id="a", title="A", content="A", type="end", x=300, y=100, media=["a.png"]),
        ],
        branches=[
            PayloadBranch(id="b1", source_node_id="root", target_node_id="a", context="go"),
        ],
        characters=[PayloadCharacter(id="c1", name="Hero", description="Brave")],
    )


def test_initialize_creates_tables(db_service: DatabaseService) -> None:
    conn = db_service.connect()
    try:
        tables = {
            row["name"]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
    finally:
        conn.close()

    assert {"stories", "story_nodes", "story_branches", "story_characters"} <= tables
    assert db_service.schema_version() == SCHEMA_VERSION


def test_save_and_load_preserves_payload(repository: StoryRepository) -> None:
    story_id = repository.save(_payload())

    assert repository.load(story_id) == _payload()
    assert repository.count() == 1


def test_save_with_existing_id_replaces_children(repository: StoryRepository) -> None:
    story_id = repository.save(_payload())
    smaller = StoryPayload(
        title="Renamed",
        description="Desc",
        nodes=[PayloadNode(id="root", title="R", content="R", x=0, y=0, is_root=True)],
    )

    assert repository.save(smaller, story_id) == story_id

    loaded = repository.load(story_id)
    assert loaded.title == "Renamed"
    assert [node.id for node in loaded.nodes] == ["root"]
    assert loaded.branches == []
    assert loaded.characters == []


def test_list_stories_reports_node_counts(repository: StoryRepository) -> None:
    story_id = repository.save(_payload("First"))

    summaries = repository.list_stories()

    assert [(s.id, s.title, s.node_count) for s in summaries] == [(story_id, "First", 2)]


def test_delete_removes_story_and_rows(repository: StoryRepository, db_service: DatabaseService) -> None:
    story_id = repository.save(_payload())

    repository.delete(story_id)

    assert repository.count() == 0
    with pytest.raises(NotFound):
        repository.load(story_id)
    with pytest.raises(NotFound):
        repository.delete(story_id)
    conn = db_service.connect()
    try:
        assert conn.execute("SELECT COUNT(*) FROM story_nodes").fetchone()[0] == 0
    finally:
        conn.close()


def test_database_failure_becomes_persistence_error(tmp_path: Path) -> None:
    # Schema never initialized, so the insert fails.
    repository = StoryRepository(DatabaseService(tmp_path / "empty.db"))

    with pytest.raises(PersistenceError) as excinfo:
        repository.save(_payload())

    assert excinfo.value.status_code == 500
    assert isinstance(excinfo.value.__cause__, sqlite3.Error)


@pytest.mark.parametrize(
    "operation",
    [
        lambda repository: repository.load("missing"),
        lambda repository: repository.list_stories(),
        lambda repository: repository.count(),
        lambda repository: repository.delete("missing"),
    ],
    ids=["load", "list_stories", "count", "delete"],
)
def test_read_and_delete_failures_become_persistence_errors(tmp_path: Path, operation) -> None:
    repository = StoryRepository(DatabaseService(tmp_path / "empty.db"))

    with pytest.raises(PersistenceError) as excinfo:
        operation(repository)

    assert isinstance(excinfo.value.__cause__, sqlite3.Error)
