"""Exception handlers rendering every failure as ``{error, message, detail}``."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...services.errors import StoryGraphError

logger = logging.getLogger(__name__)

FALLBACK_ERRORS: Dict[int, Tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("validation_error", "Invalid request payload"),
    status.HTTP_404_NOT_FOUND: ("not_found", "Resource not found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("method_not_allowed", "Method not allowed"),
    status.HTTP_409_CONFLICT: ("conflict", "Request conflicts with the story graph"),
    422: ("validation_failed", "Story failed validation"),
    status.HTTP_500_INTERNAL_SERVER_ERROR: ("internal_error", "Internal server error"),
}


class ErrorBody(BaseModel):
    error: str
    message: str
    detail: Optional[Dict[str, Any]] = None


def _error_response(
    status_code: int,
    message: Optional[str] = None,
    *,
    error: Optional[str] = None,
    detail: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    fallback_error, fallback_message = FALLBACK_ERRORS.get(
        status_code, FALLBACK_ERRORS[status.HTTP_500_INTERNAL_SERVER_ERROR]
    )
    body = ErrorBody(
        error=error or fallback_error,
        message=message or fallback_message,
        detail=detail or None,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _request_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    # Keep only JSON-safe fields; pydantic ctx may hold exception objects.
    return [
        {
            "loc": [str(part) for part in item.get("loc", ())],
            "msg": item.get("msg", ""),
            "type": item.get("type", ""),
        }
        for item in exc.errors()
    ]


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST, detail={"errors": _request_errors(exc)}
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if isinstance(exc.detail, dict):
        return _error_response(
            exc.status_code,
            exc.detail.get("message"),
            error=exc.detail.get("error"),
            detail=exc.detail.get("detail"),
        )
    message = exc.detail if isinstance(exc.detail, str) else None
    return _error_response(exc.status_code, message)


async def story_graph_exception_handler(
    request: Request, exc: StoryGraphError
) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Story operation failed: %s", exc.message)
    else:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.message, error=exc.error, detail=exc.detail)


async def internal_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_error_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(StoryGraphError, story_graph_exception_handler)
    app.add_exception_handler(Exception, internal_exception_handler)


__all__ = [
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "story_graph_exception_handler",
    "internal_exception_handler",
    "ErrorBody",
]
