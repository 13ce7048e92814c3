"""SQLAlchemy implementation for the script repository."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import delete, func, or_, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from script_registry.db.models import Script, ScriptVersion

from .script_version_repository import latest_version_ids

# pg_advisory_xact_lock key shared by every script writer.
SCRIPT_WRITE_LOCK_KEY = 0x5C2197

SORTABLE_COLUMNS = {
    "id": Script.id,
    "title": ScriptVersion.title,
    "language": ScriptVersion.language,
    "description": ScriptVersion.description,
    "created_at": Script.created_at,
    "updated_at": Script.updated_at,
}


class SqlScriptRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_script(self) -> Script:
        script = Script()
        self.session.add(script)
        await self.session.flush()
        await self.session.refresh(script)
        return script

    async def get_by_id(self, script_id: int) -> Script | None:
        stmt = select(Script).where(Script.id == script_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def set_current_version(self, script_id: int, version_id: int) -> None:
        stmt = (
            update(Script)
            .where(Script.id == script_id)
            .values(current_version_id=version_id)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.execute(stmt)

    async def get_with_latest(self, script_id: int) -> tuple[Script, ScriptVersion] | None:
        stmt = (
            select(Script, ScriptVersion)
            .join(ScriptVersion, ScriptVersion.script_id == Script.id)
            .where(Script.id == script_id)
            .where(ScriptVersion.id.in_(latest_version_ids()))
        )
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def list_visible(
        self,
        *,
        search: str,
        sort_by: str,
        sort_order: str,
        limit: int,
        offset: int,
    ) -> tuple[Sequence[tuple[Script, ScriptVersion]], int]:
        stmt = (
            select(Script, ScriptVersion)
            .join(ScriptVersion, ScriptVersion.script_id == Script.id)
            .where(ScriptVersion.id.in_(latest_version_ids()))
            .where(ScriptVersion.key.is_(None))
        )
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    ScriptVersion.title.ilike(pattern),
                    ScriptVersion.description.ilike(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = int((await self.session.execute(count_stmt)).scalar_one())
        # past the last row; also keeps huge page numbers out of OFFSET
        if offset >= total:
            return [], total

        column = SORTABLE_COLUMNS[sort_by]
        ordering = column.desc() if sort_order == "DESC" else column.asc()
        tiebreak = Script.id.desc() if sort_order == "DESC" else Script.id.asc()
        stmt = stmt.order_by(ordering, tiebreak).offset(offset).limit(limit)

        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()], total

    async def delete_script(self, script_id: int) -> bool:
        # Drop the pointer first so the version rows can go without a dangling reference.
        detached = await self.session.execute(
            update(Script)
            .where(Script.id == script_id)
            .values(current_version_id=None)
            .execution_options(synchronize_session=False)
        )
        if detached.rowcount == 0:
            return False
        await self.session.execute(
            delete(ScriptVersion)
            .where(ScriptVersion.script_id == script_id)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(Script)
            .where(Script.id == script_id)
            .execution_options(synchronize_session=False)
        )
        return True

    async def lock_for_write(self) -> None:
        if self.session.get_bind().dialect.name == "postgresql":
            await self.session.execute(
                text("SELECT pg_advisory_xact_lock(:key)"),
                {"key": SCRIPT_WRITE_LOCK_KEY},
            )

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
