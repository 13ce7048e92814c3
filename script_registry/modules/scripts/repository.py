"""Repository protocols for script and script version persistence."""

from __future__ import annotations

from typing import Protocol, Sequence

from script_registry.db.models import Script as ScriptModel, ScriptVersion as ScriptVersionModel


class ScriptRepository(Protocol):
    """Script identities, the current-version pointer and read-side joins."""

    async def create_script(self) -> ScriptModel:
        ...

    async def get_by_id(self, script_id: int) -> ScriptModel | None:
        ...

    async def set_current_version(self, script_id: int, version_id: int) -> None:
        ...

    async def get_with_latest(self, script_id: int) -> tuple[ScriptModel, ScriptVersionModel] | None:
        ...

    async def list_visible(
        self,
        *,
        search: str,
        sort_by: str,
        sort_order: str,
        limit: int,
        offset: int,
    ) -> tuple[Sequence[tuple[ScriptModel, ScriptVersionModel]], int]:
        ...

    async def delete_script(self, script_id: int) -> bool:
        ...

    async def lock_for_write(self) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


class ScriptVersionRepository(Protocol):
    """Append-only storage for script versions."""

    async def add_version(
        self,
        *,
        script_id: int,
        title: str,
        language: str,
        code: str,
        description: str | None,
        key: str | None,
    ) -> ScriptVersionModel:
        ...

    async def find_latest_by_title(
        self, title: str, *, exclude_script_id: int | None = None
    ) -> ScriptVersionModel | None:
        ...

    async def find_by_key(
        self, key: str, *, exclude_script_id: int | None = None
    ) -> ScriptVersionModel | None:
        ...

    async def get_latest(self, script_id: int) -> ScriptVersionModel | None:
        ...

    async def list_for_script(self, script_id: int) -> Sequence[ScriptVersionModel]:
        ...

    async def count_for_script(self, script_id: int) -> int:
        ...
