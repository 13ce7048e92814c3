"""SQLAlchemy implementation of the append-only script version ledger."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from script_registry.db.models import ScriptVersion


def latest_version_ids() -> Select:
    """Ids of the newest version of every script.

    Newest means greatest ``created_at``; versions sharing a timestamp are
    ordered by id.
    """
    ranked = select(
        ScriptVersion.id.label("version_id"),
        func.row_number()
        .over(
            partition_by=ScriptVersion.script_id,
            order_by=(ScriptVersion.created_at.desc(), ScriptVersion.id.desc()),
        )
        .label("position"),
    ).subquery("ranked_versions")
    return select(ranked.c.version_id).where(ranked.c.position == 1)


class SqlScriptVersionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add_version(
        self,
        *,
        script_id: int,
        title: str,
        language: str,
        code: str,
        description: str | None,
        key: str | None,
    ) -> ScriptVersion:
        version = ScriptVersion(
            script_id=script_id,
            title=title,
            language=language,
            code=code,
            description=description,
            key=key,
        )
        self.session.add(version)
        await self.session.flush()
        await self.session.refresh(version)
        return version

    async def find_latest_by_title(
        self, title: str, *, exclude_script_id: int | None = None
    ) -> ScriptVersion | None:
        stmt = (
            select(ScriptVersion)
            .where(ScriptVersion.id.in_(latest_version_ids()))
            .where(ScriptVersion.title == title)
        )
        if exclude_script_id is not None:
            stmt = stmt.where(ScriptVersion.script_id != exclude_script_id)
        result = await self.session.execute(stmt.limit(1))
        return result.scalars().first()

    async def find_by_key(
        self, key: str, *, exclude_script_id: int | None = None
    ) -> ScriptVersion | None:
        stmt = select(ScriptVersion).where(ScriptVersion.key == key)
        if exclude_script_id is not None:
            stmt = stmt.where(ScriptVersion.script_id != exclude_script_id)
        result = await self.session.execute(stmt.limit(1))
        return result.scalars().first()

    async def get_latest(self, script_id: int) -> ScriptVersion | None:
        stmt = (
            select(ScriptVersion)
            .where(ScriptVersion.script_id == script_id)
            .order_by(ScriptVersion.created_at.desc(), ScriptVersion.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_script(self, script_id: int) -> Sequence[ScriptVersion]:
        stmt = (
            select(ScriptVersion)
            .where(ScriptVersion.script_id == script_id)
            .order_by(ScriptVersion.created_at.desc(), ScriptVersion.id.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_for_script(self, script_id: int) -> int:
        stmt = select(func.count(ScriptVersion.id)).where(ScriptVersion.script_id == script_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
