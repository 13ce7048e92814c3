"""Domain service orchestrating script registry workflows."""

from __future__ import annotations

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from script_registry.core.config import Settings, get_settings
from script_registry.infrastructure.database.repositories.script_repository import (
    SORTABLE_COLUMNS,
    SqlScriptRepository,
)

from .exceptions import (
    INVALID_LANGUAGE_MESSAGE,
    REQUIRED_MESSAGE,
    ScriptDeleteError,
    ScriptNotFoundError,
    ScriptValidationError,
)
from .ledger import VersionLedger
from .models import (
    UNSET,
    Script,
    ScriptCreateInput,
    ScriptListQuery,
    ScriptPage,
    ScriptUpdateInput,
    ScriptVersion,
    VersionReceipt,
)
from .repository import ScriptRepository

logger = logging.getLogger(__name__)

DEFAULT_SORT_BY = "title"
SORT_ORDERS = {"ASC", "DESC"}

_write_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = (
    weakref.WeakKeyDictionary()
)


def _write_lock() -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    lock = _write_locks.get(loop)
    if lock is None:
        lock = _write_locks[loop] = asyncio.Lock()
    return lock


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


@dataclass(slots=True)
class ScriptService:
    repository: ScriptRepository
    ledger: VersionLedger
    settings: Settings

    @classmethod
    def with_session(cls, session: AsyncSession, settings: Settings | None = None) -> "ScriptService":
        return cls(
            repository=SqlScriptRepository(session),
            ledger=VersionLedger.with_session(session),
            settings=settings or get_settings(),
        )

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncIterator[None]:
        """Serialise check-then-insert writers and commit or roll back as one step."""
        async with _write_lock():
            try:
                await self.repository.lock_for_write()
                yield
                await self.repository.commit()
            except Exception:
                await self.repository.rollback()
                raise

    def _language_errors(self, language: Optional[str]) -> list[str]:
        if _blank(language):
            return [REQUIRED_MESSAGE.format(field="language")]
        if language.lower() not in self.settings.supported_languages:
            return [INVALID_LANGUAGE_MESSAGE]
        return []

    async def create_script(self, payload: ScriptCreateInput) -> Script:
        errors: dict[str, list[str]] = {}
        for field in ("title", "code"):
            if _blank(getattr(payload, field)):
                errors[field] = [REQUIRED_MESSAGE.format(field=field)]
        language_errors = self._language_errors(payload.language)
        if language_errors:
            errors["language"] = language_errors

        title = None if "title" in errors else payload.title.strip()
        key = payload.key or None
        async with self._unit_of_work():
            errors.update(await self.ledger.check_uniqueness(title=title, key=key))
            if errors:
                logger.info("Rejected script creation: %s", sorted(errors))
                raise ScriptValidationError(errors)

            script = await self.repository.create_script()
            version = await self.ledger.append(
                script.id,
                title=title,
                language=payload.language.lower(),
                code=payload.code,
                description=payload.description,
                key=key,
            )
            await self.repository.set_current_version(script.id, version.id)

        logger.info("Created script %s (version %s)", script.id, version.id)
        return Script(
            id=script.id,
            version_id=version.id,
            title=version.title,
            language=version.language,
            code=version.code,
            description=version.description,
            key=version.key,
            created_at=script.created_at,
            updated_at=version.created_at,
        )

    async def get_script(self, script_id: int) -> Script:
        row = await self.repository.get_with_latest(script_id)
        if row is None:
            raise ScriptNotFoundError(script_id)
        return Script.from_orm(*row)

    async def list_scripts(self, query: ScriptListQuery) -> ScriptPage:
        per_page = query.per_page if query.per_page and query.per_page > 0 else self.settings.default_per_page
        per_page = min(per_page, self.settings.max_per_page)
        page = max(query.page, 1)
        sort_by = query.order_by if query.order_by in SORTABLE_COLUMNS else DEFAULT_SORT_BY
        sort_order = (query.order_direction or "").upper()
        if sort_order not in SORT_ORDERS:
            sort_order = "ASC"
        search = (query.filter or "").strip()

        rows, total = await self.repository.list_visible(
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=per_page,
            offset=(page - 1) * per_page,
        )
        return ScriptPage(
            scripts=[Script.from_orm(script, version) for script, version in rows],
            total=total,
            per_page=per_page,
            current_page=page,
            filter=query.filter or "",
            sort_by=sort_by,
            sort_order=sort_order,
        )

    async def update_script(self, script_id: int, payload: ScriptUpdateInput) -> VersionReceipt:
        errors: dict[str, list[str]] = {}
        for field in ("title", "code"):
            value = getattr(payload, field)
            if value is not UNSET and _blank(value):
                errors[field] = [REQUIRED_MESSAGE.format(field=field)]
        if payload.language is not UNSET:
            language_errors = self._language_errors(payload.language)
            if language_errors:
                errors["language"] = language_errors

        async with self._unit_of_work():
            current = await self.ledger.latest(script_id)
            if current is None:
                raise ScriptNotFoundError(script_id)

            if payload.title is UNSET or "title" in errors:
                title = current.title
            else:
                title = payload.title.strip()
                errors.update(await self.ledger.check_uniqueness(title=title, script_id=script_id))
            if errors:
                logger.info("Rejected update of script %s: %s", script_id, sorted(errors))
                raise ScriptValidationError(errors)

            version = await self.ledger.append(
                script_id,
                title=title,
                language=current.language if payload.language is UNSET else payload.language.lower(),
                code=current.code if payload.code is UNSET else payload.code,
                description=current.description if payload.description is UNSET else payload.description,
                key=current.key,
            )
            await self.repository.set_current_version(script_id, version.id)

        logger.info("Updated script %s (version %s)", script_id, version.id)
        return VersionReceipt(script_id=script_id, version_id=version.id)

    async def delete_script(self, script_id: int) -> None:
        async with self._unit_of_work():
            deleted = await self.repository.delete_script(script_id)
            if not deleted:
                raise ScriptDeleteError(script_id)
        logger.info("Deleted script %s", script_id)

    async def list_versions(self, script_id: int) -> list[ScriptVersion]:
        if await self.repository.get_by_id(script_id) is None:
            raise ScriptNotFoundError(script_id)
        return await self.ledger.history(script_id)

    async def count_versions(self, script_id: int) -> int:
        return await self.ledger.count(script_id)
