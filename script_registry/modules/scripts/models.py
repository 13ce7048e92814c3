"""Domain models for scripts and their version history."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from script_registry.db import models as orm


@dataclass(slots=True)
class ScriptVersion:
    id: int
    script_id: int
    title: str
    language: str
    code: str
    description: Optional[str]
    key: Optional[str]
    created_at: Optional[datetime]

    @classmethod
    def from_orm(cls, instance: orm.ScriptVersion) -> "ScriptVersion":
        return cls(
            id=instance.id,
            script_id=instance.script_id,
            title=instance.title,
            language=instance.language,
            code=instance.code,
            description=instance.description,
            key=instance.key,
            created_at=instance.created_at,
        )


@dataclass(slots=True)
class Script:
    """A script identity merged with the fields of its latest version."""

    id: int
    version_id: int
    title: str
    language: str
    code: str
    description: Optional[str]
    key: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_orm(cls, script: orm.Script, version: orm.ScriptVersion) -> "Script":
        return cls(
            id=script.id,
            version_id=version.id,
            title=version.title,
            language=version.language,
            code=version.code,
            description=version.description,
            key=version.key,
            created_at=script.created_at,
            updated_at=script.updated_at or version.created_at,
        )


@dataclass(slots=True)
class ScriptCreateInput:
    title: Optional[str]
    language: Optional[str]
    code: Optional[str]
    description: Optional[str] = None
    key: Optional[str] = None


# Sentinel used to differentiate between "not provided" and explicit None.
UNSET = object()


@dataclass(slots=True)
class ScriptUpdateInput:
    title: Optional[str] | object = UNSET
    language: Optional[str] | object = UNSET
    code: Optional[str] | object = UNSET
    description: Optional[str] | object = UNSET


@dataclass(slots=True)
class ScriptListQuery:
    page: int = 1
    per_page: int = 0
    filter: str = ""
    order_by: Optional[str] = None
    order_direction: str = "ASC"


@dataclass(slots=True)
class ScriptPage:
    """One page of visible scripts plus the parameters that produced it."""

    scripts: list[Script]
    total: int
    per_page: int
    current_page: int
    filter: str
    sort_by: str
    sort_order: str

    @property
    def count(self) -> int:
        return len(self.scripts)

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def first_item(self) -> Optional[int]:
        if not self.scripts:
            return None
        return (self.current_page - 1) * self.per_page + 1

    @property
    def last_item(self) -> Optional[int]:
        if not self.scripts:
            return None
        return (self.current_page - 1) * self.per_page + len(self.scripts)


@dataclass(slots=True)
class VersionReceipt:
    """Identifiers produced by a successful write."""

    script_id: int
    version_id: int
