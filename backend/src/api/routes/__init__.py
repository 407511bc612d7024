"""HTTP API route handlers."""

from . import canvas, stories, system

__all__ = ["stories", "canvas", "system"]
