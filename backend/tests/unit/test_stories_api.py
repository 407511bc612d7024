from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.src.api.main import app
from backend.src.api.routes.stories import get_story_repository
from backend.src.services.database import DatabaseService
from backend.src.services.story_repository import StoryRepository

client = TestClient(app)


@pytest.fixture(autouse=True)
def repository(tmp_path: Path):
    db_service = DatabaseService(tmp_path / "stories.db")
    db_service.initialize()
    repository = StoryRepository(db_service)
    app.dependency_overrides[get_story_repository] = lambda: repository
    yield repository
    # Clean up overrides
    app.dependency_overrides = {}


def _document(**overrides) -> dict:
    document = {
        "title": "Story",
        "description": "Desc",
        "nodes": [
            {
                "id": "root",
                "title": "Start",
                "content": "It begins.",
                "type": "regular",
                "position": {"x": 100, "y": 100},
                "isRoot": True,
                "branches": [{"id": "b1", "text": "go", "targetId": "end"}],
            },
            {
                "id": "end",
                "title": "End",
                "content": "It ends.",
                "type": "end",
                "position": {"x": 300, "y": 100},
            },
        ],
        "characters": [{"id": "c1", "name": "Hero", "description": "Brave"}],
    }
    document.update(overrides)
    return document


def test_health() -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_create_and_fetch_story() -> None:
    response = client.post("/api/stories", json=_document())

    assert response.status_code == 201
    created = response.json()
    assert created["node_count"] == 2
    assert created["branch_count"] == 1

    payload = client.get(f"/api/stories/{created['id']}").json()
    assert payload["branches"] == [
        {"id": "b1", "source_node_id": "root", "target_node_id": "end", "context": "go"}
    ]

    listing = client.get("/api/stories").json()
    assert [item["id"] for item in listing] == [created["id"]]


def test_document_route_rebuilds_nested_branches() -> None:
    story_id = client.post("/api/stories", json=_document()).json()["id"]

    document = client.get(f"/api/stories/{story_id}/document").json()

    assert document["id"] == story_id
    assert document["currentNodeId"] == "root"
    assert document["nodes"][0]["branches"][0]["targetId"] == "end"


def test_document_route_can_auto_layout() -> None:
    story_id = client.post("/api/stories", json=_document()).json()["id"]

    document = client.get(f"/api/stories/{story_id}/document", params={"auto_layout": True}).json()

    positions = [node["position"] for node in document["nodes"]]
    assert positions == [{"x": 100.0, "y": 100.0}, {"x": 340.0, "y": 230.0}]


def test_invalid_story_returns_all_errors(repository: StoryRepository) -> None:
    document = _document(title="")
    document["nodes"][0]["branches"][0]["targetId"] = "missing"

    response = client.post("/api/stories", json=document)

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "validation_failed"
    assert body["detail"]["errors"] == [
        "Story title is required",
        "Branch b1 on node root targets missing node missing",
    ]
    assert repository.count() == 0


def test_validate_endpoint_reports_without_saving(repository: StoryRepository) -> None:
    response = client.post("/api/stories/validate", json=_document(description=""))

    assert response.status_code == 200
    assert response.json() == {"valid": False, "errors": ["Story description is required"]}
    assert repository.count() == 0


def test_update_and_delete_story() -> None:
    story_id = client.post("/api/stories", json=_document()).json()["id"]

    response = client.put(f"/api/stories/{story_id}", json=_document(title="Renamed"))
    assert response.status_code == 200
    assert client.get(f"/api/stories/{story_id}").json()["title"] == "Renamed"

    assert client.delete(f"/api/stories/{story_id}").status_code == 204
    missing = client.get(f"/api/stories/{story_id}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"


def test_update_unknown_story_is_not_found() -> None:
    response = client.put("/api/stories/nope", json=_document())

    assert response.status_code == 404


def test_empty_story_gets_a_root_node() -> None:
    response = client.post("/api/stories", json={"title": "Blank", "description": "Fresh start"})

    assert response.status_code == 201
    assert response.json()["node_count"] == 1


def test_malformed_body_is_a_bad_request() -> None:
    response = client.post("/api/stories", json={"nodes": "not a list"})

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_canvas_scene_endpoint() -> None:
    response = client.post("/api/canvas/scene", json=_document())

    assert response.status_code == 200
    scene = response.json()
    assert scene["connectors"][0]["branch_id"] == "b1"
    assert scene["connectors"][0]["label"] == "go"
    assert scene["skipped_branches"] == []
    assert scene["bounds"]["width"] == 800


def test_canvas_layout_endpoint() -> None:
    response = client.post("/api/canvas/layout", json=_document())

    assert response.status_code == 200
    assert response.json()["nodes"][1]["position"] == {"x": 340.0, "y": 230.0}


def test_system_logs_endpoint() -> None:
    response = client.get("/api/system/logs")

    assert response.status_code == 200
    assert isinstance(response.json(), list)


def test_duplicate_node_id_is_rejected_before_saving(repository: StoryRepository) -> None:
    document = _document()
    document["nodes"].append(dict(document["nodes"][1], title="Another end"))

    response = client.post("/api/stories", json=document)

    assert response.status_code == 422
    assert response.json()["detail"]["errors"] == ["Duplicate node id end"]
    assert repository.count() == 0


def test_duplicate_branch_id_is_a_validation_failure(repository: StoryRepository) -> None:
    document = _document()
    document["nodes"][1]["type"] = "branch"
    document["nodes"][1]["branches"] = [{"id": "b1", "text": "again", "targetId": "root"}]

    response = client.post("/api/stories", json=document)

    assert response.status_code == 422
    assert response.json()["error"] == "validation_failed"
    assert repository.count() == 0

    report = client.post("/api/stories/validate", json=document).json()
    assert report == {"valid": False, "errors": ["Duplicate branch id b1 on node end"]}


def test_node_type_branch_limits_are_enforced(repository: StoryRepository) -> None:
    document = _document()
    document["nodes"][0]["branches"].append({"id": "b2", "text": "stay", "targetId": "end"})
    document["nodes"][1]["branches"] = [{"id": "b3", "text": "restart", "targetId": "root"}]

    response = client.post("/api/stories", json=document)

    assert response.status_code == 422
    assert response.json()["detail"]["errors"] == [
        "Regular node root can only have one branch (2)",
        "End node end cannot have branches",
    ]
    assert repository.count() == 0
