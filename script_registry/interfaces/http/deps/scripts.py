"""Script related dependency providers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from script_registry.core.config import Settings, get_settings
from script_registry.modules.scripts import ScriptPreviewService, ScriptService

from .database import get_db_session


def get_script_service(
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> ScriptService:
    return ScriptService.with_session(db, settings)


def get_preview_service(settings: Settings = Depends(get_settings)) -> ScriptPreviewService:
    return ScriptPreviewService.from_settings(settings)


__all__ = [
    "get_script_service",
    "get_preview_service",
]
