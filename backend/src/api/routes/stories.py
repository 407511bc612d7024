"""HTTP API routes for saving and loading stories."""

from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, Query, Response, status

from ...models.payload import SaveResponse, StoryPayload, StorySummary, ValidationReport
from ...models.story import StoryDocument
from ...services.graph_store import GraphStore
from ...services.story_io import save_story, store_from_payload
from ...services.story_repository import StoryRepository
from ...services.validator import StoryValidator

router = APIRouter()


def get_story_repository() -> StoryRepository:
    return StoryRepository()


Repository = Annotated[StoryRepository, Depends(get_story_repository)]


def _save(document: StoryDocument, repository: StoryRepository, story_id: str | None) -> SaveResponse:
    store = GraphStore.from_document(document)
    store.initialize()
    saved_id = save_story(store, repository, story_id)
    return SaveResponse(
        id=saved_id,
        node_count=len(store),
        branch_count=sum(len(node.branches) for node in store.nodes),
    )


@router.get("/api/stories", response_model=List[StorySummary])
async def list_stories(repository: Repository):
    """List saved stories, most recently updated first."""
    return repository.list_stories()


@router.post("/api/stories", response_model=SaveResponse, status_code=201)
async def create_story(document: StoryDocument, repository: Repository):
    """Validate and store a new story; a story without nodes gets a root node."""
    return _save(document, repository, None)


@router.post("/api/stories/validate", response_model=ValidationReport)
async def validate_story(document: StoryDocument):
    """Run the pre-save checks without storing anything."""
    errors = StoryValidator().validate(document)
    return ValidationReport(valid=not errors, errors=errors)


@router.get("/api/stories/{story_id}", response_model=StoryPayload)
async def get_story(story_id: str, repository: Repository):
    """Return the stored payload of a story."""
    return repository.load(story_id)


@router.get("/api/stories/{story_id}/document", response_model=StoryDocument)
async def get_story_document(
    story_id: str,
    repository: Repository,
    auto_layout: bool = Query(False, description="Re-position nodes breadth-first from the root"),
):
    """Return a stored story rebuilt as an editable document."""
    store = store_from_payload(repository.load(story_id), story_id)
    if auto_layout:
        store.layout.auto_layout(store.nodes)
    return store.to_document()


@router.put("/api/stories/{story_id}", response_model=SaveResponse)
async def update_story(story_id: str, document: StoryDocument, repository: Repository):
    """Validate and replace an existing story."""
    repository.load(story_id)
    return _save(document, repository, story_id)


@router.delete("/api/stories/{story_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_story(story_id: str, repository: Repository):
    repository.delete(story_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router", "get_story_repository"]
