from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CORE_MEMORY_COLUMNS = ("id", "user_id", "text", "tool", "created_at")
OPTIONAL_MEMORY_COLUMNS = ("name", "model", "variables", "variable_defaults")
MEMORY_COLUMNS = CORE_MEMORY_COLUMNS + OPTIONAL_MEMORY_COLUMNS


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def new_id() -> str:
    return uuid.uuid4().hex


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class Memory(BaseModel):
    """A saved prompt as stored in the ``memories`` table."""

    id: str = Field(default_factory=new_id)
    user_id: str
    text: str
    tool: Optional[str] = None
    name: Optional[str] = None
    model: Optional[str] = None
    variables: Optional[List[str]] = None
    variable_defaults: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("name", "model", "tool", mode="before")
    @classmethod
    def _strip_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("variables", "variable_defaults", mode="before")
    @classmethod
    def _empty_to_none(cls, value: Any) -> Any:
        return value or None


class MemoryCreate(BaseModel):
    """Fields accepted when saving a new prompt."""

    model_config = ConfigDict(populate_by_name=True)

    text: str
    tool: Optional[str] = None
    name: Optional[str] = None
    model: Optional[str] = None
    variables: Optional[List[str]] = None
    variable_defaults: Optional[Dict[str, Any]] = Field(
        default=None, alias="variableDefaults"
    )

    @field_validator("text")
    @classmethod
    def _text_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Text is required")
        return value

    @field_validator("name", "model", "tool", mode="before")
    @classmethod
    def _strip_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("variables", mode="before")
    @classmethod
    def _list_or_none(cls, value: Any) -> Any:
        return value if isinstance(value, list) else None

    @field_validator("variable_defaults", mode="before")
    @classmethod
    def _dict_or_none(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None


class MemoryUpdate(BaseModel):
    """Partial update of a saved prompt; unset fields are left alone."""

    text: Optional[str] = None
    tool: Optional[str] = None
    name: Optional[str] = None
    model: Optional[str] = None

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Text cannot be empty")
        return value

    @field_validator("name", "model", "tool", mode="before")
    @classmethod
    def _strip_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)


class WaitlistEntry(BaseModel):
    id: str = Field(default_factory=new_id)
    email: str
    created_at: datetime = Field(default_factory=utcnow)


class PageView(BaseModel):
    id: str = Field(default_factory=new_id)
    path: str
    timestamp: datetime = Field(default_factory=utcnow)
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class User(BaseModel):
    id: str = Field(default_factory=new_id)
    email: str
    password_hash: str
    salt: str
    created_at: datetime = Field(default_factory=utcnow)


class Session(BaseModel):
    token: str = Field(default_factory=lambda: uuid.uuid4().hex + uuid.uuid4().hex)
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)


class PromptVersion(BaseModel):
    text: str
    name: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)


class MemoryMetadata(BaseModel):
    """Library metadata kept beside the store, keyed by memory id."""

    tags: List[str] = Field(default_factory=list)
    folder: Optional[str] = None
    copy_count: int = 0
    last_used: Optional[datetime] = None
    versions: List[PromptVersion] = Field(default_factory=list)


class Folder(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    color: str = "#6366f1"
    created_at: datetime = Field(default_factory=utcnow)


__all__ = [
    "CORE_MEMORY_COLUMNS",
    "OPTIONAL_MEMORY_COLUMNS",
    "MEMORY_COLUMNS",
    "Memory",
    "MemoryCreate",
    "MemoryUpdate",
    "WaitlistEntry",
    "PageView",
    "User",
    "Session",
    "PromptVersion",
    "MemoryMetadata",
    "Folder",
    "utcnow",
    "new_id",
]
