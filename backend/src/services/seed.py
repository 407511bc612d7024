"""Seed the database with a sample branching story."""

from __future__ import annotations

import logging
from typing import Optional

from ..models.story import NewNodeSpec, NodeType
from .database import init_database
from .graph_store import GraphStore
from .story_io import save_story
from .story_repository import StoryRepository

logger = logging.getLogger(__name__)

DEMO_TITLE = "Forest Adventure"
DEMO_DESCRIPTION = "A short adventure about choices, showing how interactive stories branch."


def build_demo_story() -> GraphStore:
    """
    Build the demo story through the same operations the editor uses.

    start -> crossroads (branch) -> deeper / stay (end)
                                    deeper (branch) -> knock (end) / detour (end)
    """
    store = GraphStore(title=DEMO_TITLE, description=DEMO_DESCRIPTION)
    root = store.initialize()
    store.update_node(
        root.id,
        title="The forest edge",
        content=(
            "You stand at the entrance of a dense forest. Sunlight filters through the "
            "leaves and a breeze carries the rustle of branches, as if the woods were "
            "calling you in."
        ),
    )

    _, crossroads = store.add_branch(
        root.id,
        "Look around",
        NewNodeSpec(
            type=NodeType.BRANCH,
            title="A fork in the path",
            content="Two ways open before you: one into the dark heart of the forest, one back to the meadow.",
        ),
    )
    _, deeper = store.add_branch(
        crossroads.id,
        "Go deeper into the forest",
        NewNodeSpec(
            type=NodeType.BRANCH,
            title="Deeper into the forest",
            content=(
                "You gather your courage and walk on. The trees grow older and the light "
                "dimmer, until a small cabin appears between the trunks."
            ),
        ),
    )
    store.add_branch(
        crossroads.id,
        "Stay where you are",
        NewNodeSpec(
            type=NodeType.END,
            title="Stay put",
            content=(
                "You decide to watch and wait. The sun sets over the meadow and you feel "
                "at peace. Sometimes not choosing is a choice too."
            ),
        ),
    )
    store.add_branch(
        deeper.id,
        "Knock on the door",
        NewNodeSpec(
            type=NodeType.END,
            title="Knock",
            content=(
                'An old man opens the door. "Welcome, young traveller," he says, '
                '"I have been waiting for you." A new chapter of your adventure begins.'
            ),
        ),
    )
    store.add_branch(
        deeper.id,
        "Walk around the cabin",
        NewNodeSpec(
            type=NodeType.END,
            title="Around the cabin",
            content=(
                "You leave the cabin alone and find a clearing with a clear spring. "
                "Drinking from it, you realise the journey mattered more than the goal."
            ),
        ),
    )
    store.add_character("Traveller", "The reader's curious wanderer.")
    store.add_character("Old man", "Keeper of the cabin in the woods.")
    store.select_node(root.id)
    return store


def seed_demo_story(repository: StoryRepository | None = None) -> Optional[str]:
    """
    Save the demo story when the database holds no stories.

    Returns the new story id, or None when seeding was skipped.
    """
    repository = repository or StoryRepository()
    if repository.count() > 0:
        logger.info("Stories already present; skipping demo story")
        return None

    story_id = save_story(build_demo_story(), repository)
    logger.info("Seeded demo story %s", story_id)
    return story_id


def init_and_seed(seed: bool = True) -> Optional[str]:
    """
    Initialize database schema and optionally seed the demo story.

    Called on application startup.
    """
    db_path = init_database()
    logger.info(f"Database initialized at: {db_path}")
    if not seed:
        return None
    return seed_demo_story()


__all__ = ["build_demo_story", "seed_demo_story", "init_and_seed", "DEMO_TITLE"]
