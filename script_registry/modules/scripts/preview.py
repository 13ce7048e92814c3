"""Preview: run a snippet of script code once and return what it produced."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from script_registry.core.config import Settings, get_settings
from script_registry.infrastructure.execution import ScriptRunnerError, SubprocessScriptRunner

from .exceptions import ScriptExecutionError

logger = logging.getLogger(__name__)


def _decode_json(raw: Optional[str], field: str) -> Any:
    if raw is None or raw == "":
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ScriptExecutionError(f"The {field} parameter is not valid JSON.") from exc


@dataclass(slots=True)
class ScriptPreviewService:
    runner: SubprocessScriptRunner

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ScriptPreviewService":
        settings = settings or get_settings()
        return cls(
            SubprocessScriptRunner(
                settings.preview.interpreters,
                timeout_s=settings.preview.timeout_seconds,
            )
        )

    async def preview(
        self,
        *,
        code: str,
        language: str,
        data: Optional[str] = None,
        config: Optional[str] = None,
    ) -> Any:
        language = (language or "").lower()
        if not self.runner.supports(language):
            logger.warning("Preview requested for unsupported language %r", language)
            raise ScriptExecutionError(f"Unsupported language: {language}")

        payload = _decode_json(data, "data")
        options = _decode_json(config, "config")
        try:
            return await self.runner.run(code, language, data=payload, config=options)
        except ScriptRunnerError as exc:
            logger.warning("Preview run failed (%s): %s", language, exc)
            raise ScriptExecutionError(str(exc)) from exc
