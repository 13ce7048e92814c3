"""Pydantic schemas used across the project."""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScriptBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    language: str = Field(..., min_length=1, max_length=20)
    code: str = Field(..., min_length=1)
    description: Optional[str] = None


class ScriptCreate(ScriptBase):
    key: Optional[str] = Field(default=None, max_length=255)


class ScriptUpdate(BaseModel):
    """Fields omitted from the request keep the value of the current version."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    language: Optional[str] = Field(default=None, min_length=1, max_length=20)
    code: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class ScriptResponse(BaseModel):
    id: int
    title: str
    language: str
    code: str
    description: Optional[str] = None
    key: Optional[str] = None
    version_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ScriptVersionResponse(BaseModel):
    id: int
    script_id: int
    title: str
    language: str
    code: str
    description: Optional[str] = None
    key: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PaginationMeta(BaseModel):
    total: int
    count: int
    per_page: int
    current_page: int
    last_page: int
    from_: Optional[int] = Field(default=None, alias="from")
    to: Optional[int] = None
    filter: str = ""
    sort_by: str
    sort_order: str

    model_config = ConfigDict(populate_by_name=True)


class ScriptListResponse(BaseModel):
    data: list[ScriptResponse]
    meta: PaginationMeta


class ScriptVersionListResponse(BaseModel):
    data: list[ScriptVersionResponse]


class ScriptPreviewResponse(BaseModel):
    output: Any


class ErrorResponse(BaseModel):
    message: str
    errors: Optional[dict[str, list[str]]] = None
