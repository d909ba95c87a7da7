"""Routers module - FastAPI route handlers"""

from . import files

__all__ = ["files"]
