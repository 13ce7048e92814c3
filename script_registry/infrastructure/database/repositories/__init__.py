"""SQLAlchemy-backed repository implementations."""

from .script_repository import SqlScriptRepository
from .script_version_repository import SqlScriptVersionRepository, latest_version_ids

__all__ = [
    "SqlScriptRepository",
    "SqlScriptVersionRepository",
    "latest_version_ids",
]
