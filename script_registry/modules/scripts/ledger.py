"""Version ledger: append-only script history and its uniqueness rules.

Two different uniqueness checks run against the same table:

* ``title`` must be unique among the *latest* version of every script. A
  superseded version never blocks a title.
* ``key`` must be unique across *every* version ever written, since it names
  a system-managed script for good. A script carries its own key forward when
  it appends a version, so its own rows are ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from script_registry.infrastructure.database.repositories.script_version_repository import (
    SqlScriptVersionRepository,
)

from .exceptions import KEY_TAKEN_MESSAGE, TITLE_TAKEN_MESSAGE
from .models import ScriptVersion
from .repository import ScriptVersionRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class VersionLedger:
    repository: ScriptVersionRepository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "VersionLedger":
        return cls(SqlScriptVersionRepository(session))

    async def title_in_use(self, title: str, *, script_id: int | None = None) -> bool:
        holder = await self.repository.find_latest_by_title(title, exclude_script_id=script_id)
        if holder is not None:
            logger.debug("Title %r is held by script %s", title, holder.script_id)
        return holder is not None

    async def key_in_use(self, key: str, *, script_id: int | None = None) -> bool:
        holder = await self.repository.find_by_key(key, exclude_script_id=script_id)
        return holder is not None

    async def check_uniqueness(
        self,
        *,
        title: str | None,
        key: str | None = None,
        script_id: int | None = None,
    ) -> dict[str, list[str]]:
        """Return field errors for ``title``/``key`` collisions, empty when clear."""
        errors: dict[str, list[str]] = {}
        if title and await self.title_in_use(title, script_id=script_id):
            errors["title"] = [TITLE_TAKEN_MESSAGE]
        if key and await self.key_in_use(key, script_id=script_id):
            errors["key"] = [KEY_TAKEN_MESSAGE]
        return errors

    async def append(
        self,
        script_id: int,
        *,
        title: str,
        language: str,
        code: str,
        description: str | None,
        key: str | None,
    ) -> ScriptVersion:
        model = await self.repository.add_version(
            script_id=script_id,
            title=title,
            language=language,
            code=code,
            description=description,
            key=key,
        )
        return ScriptVersion.from_orm(model)

    async def latest(self, script_id: int) -> ScriptVersion | None:
        model = await self.repository.get_latest(script_id)
        return ScriptVersion.from_orm(model) if model else None

    async def history(self, script_id: int) -> list[ScriptVersion]:
        models = await self.repository.list_for_script(script_id)
        return [ScriptVersion.from_orm(model) for model in models]

    async def count(self, script_id: int) -> int:
        return await self.repository.count_for_script(script_id)
