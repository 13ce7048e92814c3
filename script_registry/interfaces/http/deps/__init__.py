"""Reusable FastAPI dependencies."""

from .database import get_db_session
from .scripts import get_preview_service, get_script_service

__all__ = [
    "get_db_session",
    "get_preview_service",
    "get_script_service",
]
