"""Service layer for the story graph core and its storage."""

from .config import AppConfig, get_config, reload_config
from .errors import (
    DuplicateCharacter,
    EditInProgress,
    EmptyInput,
    InputTooLong,
    InvalidSource,
    NotFound,
    PersistenceError,
    RootProtected,
    StoryGraphError,
    StoryValidationError,
    TypeViolation,
)
from .layout import LayoutEngine
from .connector import ConnectorGeometry
from .cascade import CascadeDeleter, DeletionResult
from .validator import StoryValidator
from .graph_store import GraphStore
from .canvas import build_scene, canvas_bounds, connectors_for_node
from .database import DatabaseService, init_database
from .story_repository import StoryPersistence, StoryRepository
from .story_io import build_payload, export_story, save_story, store_from_payload

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "StoryGraphError",
    "InvalidSource",
    "TypeViolation",
    "EmptyInput",
    "InputTooLong",
    "RootProtected",
    "NotFound",
    "EditInProgress",
    "DuplicateCharacter",
    "StoryValidationError",
    "PersistenceError",
    "LayoutEngine",
    "ConnectorGeometry",
    "CascadeDeleter",
    "DeletionResult",
    "StoryValidator",
    "GraphStore",
    "build_scene",
    "canvas_bounds",
    "connectors_for_node",
    "DatabaseService",
    "init_database",
    "StoryPersistence",
    "StoryRepository",
    "build_payload",
    "export_story",
    "save_story",
    "store_from_payload",
]
