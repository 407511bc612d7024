"""Domain errors raised by the story graph core."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import status


class StoryGraphError(Exception):
    """Base class for recoverable, user-facing editor errors."""

    error = "story_graph_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class InvalidSource(StoryGraphError):
    """Branch source node does not exist."""

    error = "invalid_source"
    status_code = status.HTTP_404_NOT_FOUND


class TypeViolation(StoryGraphError):
    """Node type does not allow another branch."""

    error = "type_violation"
    status_code = status.HTTP_409_CONFLICT


class EmptyInput(StoryGraphError):
    error = "empty_input"
    status_code = status.HTTP_400_BAD_REQUEST


class InputTooLong(StoryGraphError):
    error = "input_too_long"
    status_code = status.HTTP_400_BAD_REQUEST


class RootProtected(StoryGraphError):
    """The root node can never be removed."""

    error = "root_protected"
    status_code = status.HTTP_409_CONFLICT


class NotFound(StoryGraphError):
    error = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class EditInProgress(StoryGraphError):
    """Another node is already open for editing."""

    error = "edit_in_progress"
    status_code = status.HTTP_409_CONFLICT


class DuplicateCharacter(StoryGraphError):
    error = "duplicate_character"
    status_code = status.HTTP_409_CONFLICT


class StoryValidationError(StoryGraphError):
    """Aggregate pre-save failure; carries every violation found."""

    error = "validation_failed"
    # Literal: the constant name differs between Starlette releases.
    status_code = 422

    def __init__(self, errors: List[str]) -> None:
        super().__init__(
            f"Story failed validation with {len(errors)} error(s)",
            detail={"errors": list(errors)},
        )
        self.errors = list(errors)


class PersistenceError(StoryGraphError):
    """Storage failed; the in-memory graph is left untouched."""

    error = "persistence_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or "Failed to save story")


__all__ = [
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
]
