"""In-memory story graph owned by one editor."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Dict, Iterator, List, Optional, Set, Tuple
import uuid

from ..models.story import (
    Branch,
    Character,
    NewNodeSpec,
    NodeType,
    Position,
    StoryDocument,
    StoryNode,
    utcnow,
)
from .cascade import CascadeDeleter, DeletionResult
from .errors import (
    DuplicateCharacter,
    EditInProgress,
    EmptyInput,
    InputTooLong,
    InvalidSource,
    NotFound,
    StoryValidationError,
    TypeViolation,
)
from .layout import LayoutEngine
from .validator import (
    CHARACTER_DESCRIPTION_MAX_LENGTH,
    CHARACTER_NAME_MAX_LENGTH,
    StoryValidator,
)

logger = logging.getLogger(__name__)

ROOT_POSITION = (100.0, 100.0)
ROOT_TITLE = "Story start"
ROOT_CONTENT = "This is where your story begins. Build your interactive journey from here..."

DEFAULT_NODE_TEXT: Dict[NodeType, Tuple[str, str]] = {
    NodeType.REGULAR: ("Regular node", "Regular node content..."),
    NodeType.BRANCH: (
        "Branch node",
        "Branch node content... create several paths from here.",
    ),
    NodeType.END: ("End node", "The story ends."),
}


def default_node_text(node_type: NodeType) -> Tuple[str, str]:
    """Boilerplate (title, content) for a freshly created node of ``node_type``."""
    return DEFAULT_NODE_TEXT.get(node_type, ("New node", "Node content..."))


@dataclass
class EditSession:
    """The single node currently open for editing."""

    node_id: str
    opened_at: datetime = field(default_factory=utcnow)


@dataclass
class DragState:
    """Pointer offset captured when a node was pressed."""

    node_id: str
    offset_x: float = 0.0
    offset_y: float = 0.0


class GraphStore:
    """
    Owns the nodes, characters and selection of one story.

    Nodes live in an insertion-ordered index keyed by id. Mutations only
    happen through the methods below; renderers read ``nodes`` and call
    back into the store.
    """

    def __init__(
        self,
        *,
        story_id: Optional[str] = None,
        title: str = "",
        description: str = "",
        cover_image: Optional[str] = None,
        layout: LayoutEngine | None = None,
        deleter: CascadeDeleter | None = None,
    ) -> None:
        self.story_id = story_id
        self.title = title
        self.description = description
        self.cover_image = cover_image
        self.layout = layout or LayoutEngine()
        self.deleter = deleter or CascadeDeleter()
        self.current_node_id: Optional[str] = None

        self._nodes: Dict[str, StoryNode] = {}
        self._characters: Dict[str, Character] = {}
        self._edit_session: Optional[EditSession] = None
        self._drag: Optional[DragState] = None

    # ------------------------------------------------------------------
    # Loading and snapshots
    # ------------------------------------------------------------------
    @classmethod
    def from_document(cls, document: StoryDocument, **kwargs) -> "GraphStore":
        """
        Build a store from a document without structural checks.

        Unresolved branch targets are kept as-is; they are reported by the
        validator at save time. Repeated ids raise StoryValidationError, since
        the id index would silently keep only the last entry.
        """
        duplicates = StoryValidator().duplicate_id_errors(document)
        if duplicates:
            raise StoryValidationError(duplicates)
        store = cls(
            story_id=document.id,
            title=document.title,
            description=document.description,
            cover_image=document.cover_image,
            **kwargs,
        )
        for node in document.nodes:
            store._nodes[node.id] = node.model_copy(deep=True)
        for character in document.characters:
            store._characters[character.id] = character.model_copy()

        if document.current_node_id in store._nodes:
            store.current_node_id = document.current_node_id
        else:
            root = store.root
            store.current_node_id = root.id if root else next(iter(store._nodes), None)
        return store

    def to_document(self) -> StoryDocument:
        """Snapshot of the full in-memory model (shares node objects)."""
        return StoryDocument(
            id=self.story_id,
            title=self.title,
            description=self.description,
            cover_image=self.cover_image,
            nodes=list(self._nodes.values()),
            characters=list(self._characters.values()),
            current_node_id=self.current_node_id,
        )

    def initialize(self) -> Optional[StoryNode]:
        """Synthesize and select the root node when the story has no nodes."""
        if self._nodes:
            return None
        now = utcnow()
        root = StoryNode(
            id=self._new_id("root"),
            title=ROOT_TITLE,
            content=ROOT_CONTENT,
            type=NodeType.REGULAR,
            position=Position(x=ROOT_POSITION[0], y=ROOT_POSITION[1]),
            is_root=True,
            metadata={"author": "system", "version": "1.0"},
            created_at=now,
            updated_at=now,
        )
        self._nodes[root.id] = root
        self.current_node_id = root.id
        logger.info("Created root node %s", root.id)
        return root

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def nodes(self) -> List[StoryNode]:
        return list(self._nodes.values())

    @property
    def characters(self) -> List[Character]:
        return list(self._characters.values())

    @property
    def root(self) -> Optional[StoryNode]:
        return next((node for node in self._nodes.values() if node.is_root), None)

    @property
    def selected_node(self) -> Optional[StoryNode]:
        if self.current_node_id is None:
            return None
        return self._nodes.get(self.current_node_id)

    @property
    def edit_session(self) -> Optional[EditSession]:
        return self._edit_session

    @property
    def is_dragging(self) -> bool:
        return self._drag is not None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> StoryNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NotFound(f"Node not found: {node_id}")
        return node

    def branches_into(self, node_id: str) -> List[Tuple[StoryNode, Branch]]:
        """(source, branch) pairs for every branch targeting ``node_id``."""
        return [
            (source, branch)
            for source in self._nodes.values()
            for branch in source.branches
            if branch.target_id == node_id
        ]

    def select_node(self, node_id: str) -> StoryNode:
        node = self.get_node(node_id)
        self.current_node_id = node_id
        return node

    # ------------------------------------------------------------------
    # Graph mutations
    # ------------------------------------------------------------------
    def add_branch(
        self,
        source_id: str,
        branch_text: str,
        new_node: NewNodeSpec | None = None,
    ) -> Tuple[Branch, StoryNode]:
        """
        Create a node as the target of a new branch on ``source_id``.

        Regular nodes may own one branch, Branch nodes any number and End
        nodes none.
        """
        source = self._nodes.get(source_id)
        if source is None:
            raise InvalidSource(f"Source node not found: {source_id}")
        if source.type == NodeType.END:
            raise TypeViolation("End nodes cannot have branches")
        if source.type == NodeType.REGULAR and source.branches:
            raise TypeViolation("Regular nodes can only have one branch")

        text = (branch_text or "").strip()
        if not text:
            raise EmptyInput("Branch text is required")

        spec = new_node or NewNodeSpec()
        default_title, default_content = default_node_text(spec.type)
        position = self.layout.place_child(
            source.position, (node.position for node in self._nodes.values())
        )

        now = utcnow()
        node = StoryNode(
            id=self._new_id("node"),
            title=(spec.title or "").strip() or default_title,
            content=(spec.content or "").strip() or default_content,
            type=spec.type,
            shape=spec.shape,
            position=position,
            created_at=now,
            updated_at=now,
        )
        branch = Branch(id=self._new_id("branch"), text=text, target_id=node.id)

        source.branches.append(branch)
        source.updated_at = now
        self._nodes[node.id] = node
        logger.info(
            "Added branch %s from %s to new %s node %s",
            branch.id,
            source_id,
            node.type.value,
            node.id,
        )
        return branch, node

    def delete_node(self, node_id: str) -> DeletionResult:
        """Cascade-delete ``node_id``; the root is protected."""
        result = self.deleter.delete(self._nodes, node_id)

        self.current_node_id = next(iter(self._nodes), None)
        if self._edit_session and self._edit_session.node_id not in self._nodes:
            self._edit_session = None
        if self._drag and self._drag.node_id not in self._nodes:
            self._drag = None
        return result

    def update_node(
        self,
        node_id: str,
        *,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> StoryNode:
        node = self.get_node(node_id)
        if title is not None and not title.strip():
            raise EmptyInput("Node title cannot be empty")
        if content is not None and not content.strip():
            raise EmptyInput("Node content cannot be empty")

        if title is not None:
            node.title = title.strip()
        if content is not None:
            node.content = content.strip()
        node.updated_at = utcnow()
        return node

    def move_node(self, node_id: str, x: float, y: float) -> Position:
        """Place a node at ``(x, y)``, clamped to the non-negative quadrant."""
        node = self.get_node(node_id)
        node.position = Position(x=max(0.0, x), y=max(0.0, y))
        return node.position

    # ------------------------------------------------------------------
    # Edit sessions (one node at a time)
    # ------------------------------------------------------------------
    def open_edit(self, node_id: str) -> EditSession:
        if self._edit_session is not None:
            raise EditInProgress(
                f"Finish editing node {self._edit_session.node_id} first",
                detail={"node_id": self._edit_session.node_id},
            )
        self.get_node(node_id)
        self._edit_session = EditSession(node_id=node_id)
        return self._edit_session

    def close_edit(self) -> None:
        self._edit_session = None

    def save_edit(self, title: str, content: str) -> StoryNode:
        """Apply the edit and release the session; a rejected edit keeps it open."""
        if self._edit_session is None:
            raise NotFound("No node is being edited")
        node_id = self._edit_session.node_id
        if node_id not in self._nodes:
            self._edit_session = None
            raise NotFound(f"Node not found: {node_id}")

        node = self.update_node(node_id, title=title, content=content)
        self._edit_session = None
        return node

    @contextmanager
    def editing(self, node_id: str) -> Iterator[StoryNode]:
        """Scoped edit session, released on exit whatever happens inside."""
        self.open_edit(node_id)
        try:
            yield self._nodes[node_id]
        finally:
            self._edit_session = None

    # ------------------------------------------------------------------
    # Dragging (press -> move -> release)
    # ------------------------------------------------------------------
    def begin_drag(self, node_id: str, offset_x: float = 0.0, offset_y: float = 0.0) -> None:
        self.get_node(node_id)
        self._drag = DragState(node_id=node_id, offset_x=offset_x, offset_y=offset_y)

    def drag_to(self, pointer_x: float, pointer_y: float) -> Optional[Position]:
        """Move the pressed node under the pointer; ignored when nothing is pressed."""
        if self._drag is None:
            return None
        return self.move_node(
            self._drag.node_id,
            pointer_x - self._drag.offset_x,
            pointer_y - self._drag.offset_y,
        )

    def end_drag(self) -> Optional[str]:
        """Release the pressed node and return its id."""
        if self._drag is None:
            return None
        node_id = self._drag.node_id
        self._drag = None
        return node_id

    # ------------------------------------------------------------------
    # Story info and characters
    # ------------------------------------------------------------------
    def set_story_info(
        self,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        cover_image: Optional[str] = None,
    ) -> None:
        if title is not None:
            self.title = title
        if description is not None:
            self.description = description
        if cover_image is not None:
            self.cover_image = cover_image

    def add_character(self, name: str, description: str = "") -> Character:
        cleaned_name, cleaned_description = self._check_character(name, description)
        character = Character(
            id=self._new_id("character"), name=cleaned_name, description=cleaned_description
        )
        self._characters[character.id] = character
        return character

    def update_character(
        self,
        character_id: str,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Character:
        character = self._characters.get(character_id)
        if character is None:
            raise NotFound(f"Character not found: {character_id}")
        cleaned_name, cleaned_description = self._check_character(
            character.name if name is None else name,
            character.description if description is None else description,
            exclude_id=character_id,
        )
        character.name = cleaned_name
        character.description = cleaned_description
        return character

    def remove_character(self, character_id: str) -> None:
        if self._characters.pop(character_id, None) is None:
            raise NotFound(f"Character not found: {character_id}")

    def _check_character(
        self, name: str, description: str, exclude_id: Optional[str] = None
    ) -> Tuple[str, str]:
        cleaned_name = (name or "").strip()
        cleaned_description = (description or "").strip()
        if not cleaned_name:
            raise EmptyInput("Character name is required")
        if len(cleaned_name) > CHARACTER_NAME_MAX_LENGTH:
            raise InputTooLong(
                f"Character name must be at most {CHARACTER_NAME_MAX_LENGTH} characters"
            )
        if len(cleaned_description) > CHARACTER_DESCRIPTION_MAX_LENGTH:
            raise InputTooLong(
                f"Character description must be at most "
                f"{CHARACTER_DESCRIPTION_MAX_LENGTH} characters"
            )
        for other in self._characters.values():
            if other.id != exclude_id and other.name == cleaned_name:
                raise DuplicateCharacter(f"Character '{cleaned_name}' already exists")
        return cleaned_name, cleaned_description

    # ------------------------------------------------------------------
    def _taken_ids(self) -> Set[str]:
        taken = set(self._nodes)
        taken.update(self._characters)
        for node in self._nodes.values():
            taken.update(branch.id for branch in node.branches)
        return taken

    def _new_id(self, prefix: str) -> str:
        taken = self._taken_ids()
        while True:
            candidate = f"{prefix}_{uuid.uuid4().hex[:12]}"
            if candidate not in taken:
                return candidate


__all__ = [
    "GraphStore",
    "EditSession",
    "DragState",
    "default_node_text",
    "ROOT_TITLE",
    "ROOT_CONTENT",
]
