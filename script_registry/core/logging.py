"""Logging bootstrap for the service."""

from __future__ import annotations

import logging

from script_registry.core.config import Settings

_configured = False


def configure_logging(settings: Settings) -> None:
    """Install a root handler once, using the level and format from settings."""
    global _configured
    level = logging.getLevelName(settings.logging.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if not _configured:
        logging.basicConfig(level=level, format=settings.logging.format)
        _configured = True
    logging.getLogger("script_registry").setLevel(level)
