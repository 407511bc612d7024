"""HTTP API routes for canvas geometry."""

from __future__ import annotations

from fastapi import APIRouter, Query

from ...models.canvas import CanvasScene
from ...models.story import StoryDocument
from ...services.canvas import DEFAULT_VIEWPORT_HEIGHT, DEFAULT_VIEWPORT_WIDTH, build_scene
from ...services.graph_store import GraphStore

router = APIRouter()


@router.post("/api/canvas/scene", response_model=CanvasScene)
async def get_scene(
    document: StoryDocument,
    viewport_width: float = Query(DEFAULT_VIEWPORT_WIDTH, gt=0),
    viewport_height: float = Query(DEFAULT_VIEWPORT_HEIGHT, gt=0),
):
    """Connector lines, labels and canvas bounds for a document."""
    store = GraphStore.from_document(document)
    return build_scene(store, viewport_width=viewport_width, viewport_height=viewport_height)


@router.post("/api/canvas/layout", response_model=StoryDocument)
async def layout_document(document: StoryDocument):
    """Re-position every node breadth-first from the root."""
    store = GraphStore.from_document(document)
    store.layout.auto_layout(store.nodes)
    return store.to_document()
