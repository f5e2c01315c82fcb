"""Filesystem-backed record store using JSON lines and a YAML meta file."""

from __future__ import annotations

import json
import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import yaml

from .exceptions import (
    DuplicateEntryError,
    MissingColumnError,
    RecordNotFoundError,
    StoreError,
    ValidationFailedError,
)
from .models import (
    CORE_MEMORY_COLUMNS,
    MEMORY_COLUMNS,
    Memory,
    MemoryCreate,
    MemoryUpdate,
    PageView,
    Session,
    User,
    WaitlistEntry,
    utcnow,
)

logger = logging.getLogger(__name__)

TABLES = ("memories", "waitlist", "page_views", "users", "sessions")
EMAIL_RE = re.compile(r"\S+@\S+\.\S+")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class JsonStore:
    """Store of Promptr tables kept as ``<table>.jsonl`` files under ``path``.

    ``meta.yaml`` records the store version and the columns the ``memories``
    table accepts. Stores created with ``memory_columns`` limited to the core
    columns behave like an older schema: inserts that carry the optional
    columns fail with :class:`MissingColumnError` and are retried without
    them.
    """

    def __init__(
        self,
        path: str | os.PathLike,
        *,
        memory_columns: Optional[Sequence[str]] = None,
        default_tool: str = "Unknown",
    ) -> None:
        self.path = Path(path)
        self.default_tool = default_tool
        self.meta: Dict[str, Any] = {}
        self._tables: Dict[str, List[Dict[str, Any]]] = {}
        if self._meta_path().exists():
            self.load()
        else:
            os.makedirs(self.path, exist_ok=True)
            now = utcnow().isoformat()
            self.meta = {
                "version": 1,
                "created_at": now,
                "updated_at": now,
                "memory_columns": list(memory_columns or MEMORY_COLUMNS),
            }
            self._save_meta()

    # ------------------------------------------------------------------
    def _meta_path(self) -> Path:
        return self.path / "meta.yaml"

    def _table_path(self, table: str) -> Path:
        return self.path / f"{table}.jsonl"

    @property
    def memory_columns(self) -> List[str]:
        return list(self.meta.get("memory_columns") or MEMORY_COLUMNS)

    # ------------------------------------------------------------------
    def load(self) -> None:
        try:
            self.meta = yaml.safe_load(self._meta_path().read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Could not read store meta at {self._meta_path()}: {e}") from e
        self._tables = {}

    def _save_meta(self) -> None:
        self.meta["updated_at"] = utcnow().isoformat()
        with open(self._meta_path(), "w") as f:
            yaml.safe_dump(self.meta, f)

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        if table not in TABLES:
            raise StoreError(f"Unknown table '{table}'")
        if table not in self._tables:
            rows: List[Dict[str, Any]] = []
            path = self._table_path(table)
            if path.exists():
                with open(path, "r", encoding="utf-8") as f:
                    for line in f:
                        line = line.strip()
                        if not line:
                            continue
                        rows.append(json.loads(line))
            self._tables[table] = rows
        return self._tables[table]

    def _write(self, table: str) -> None:
        with open(self._table_path(table), "w", encoding="utf-8") as f:
            for row in self._rows(table):
                f.write(json.dumps(row) + "\n")
        self._save_meta()

    def _check_columns(self, table: str, row: Dict[str, Any]) -> None:
        if table != "memories":
            return
        unknown = sorted(set(row) - set(self.memory_columns))
        if unknown:
            raise MissingColumnError(
                f"Could not find the column(s) {', '.join(unknown)} of 'memories'",
                details={"columns": unknown},
            )

    def _insert(self, table: str, rows: Iterable[Dict[str, Any]]) -> None:
        rows = list(rows)
        for row in rows:
            self._check_columns(table, row)
        self._rows(table).extend(rows)
        self._write(table)

    # ------------------------------------------------------------------
    # memories
    def _memory_row(self, user_id: str, item: MemoryCreate) -> Dict[str, Any]:
        memory = Memory(
            user_id=user_id,
            text=item.text,
            tool=item.tool or self.default_tool,
            name=item.name,
            model=item.model,
            variables=item.variables,
            variable_defaults=item.variable_defaults,
        )
        return memory.model_dump(mode="json")

    def add_memories(self, user_id: str, items: Sequence[MemoryCreate]) -> List[Memory]:
        """Insert ``items`` for ``user_id``, falling back to core columns on older schemas."""
        if not user_id:
            raise ValidationFailedError("A user id is required to save prompts")
        rows = [self._memory_row(user_id, item) for item in items]
        try:
            self._insert("memories", rows)
        except MissingColumnError as e:
            logger.warning("Saving without optional columns: %s", e)
            rows = [{k: row[k] for k in CORE_MEMORY_COLUMNS} for row in rows]
            self._insert("memories", rows)
        return [Memory(**row) for row in rows]

    def add_memory(self, user_id: str, item: MemoryCreate) -> Memory:
        return self.add_memories(user_id, [item])[0]

    def list_memories(self, user_id: str) -> List[Memory]:
        """Return the prompts owned by ``user_id``, newest first."""
        owned = [
            (Memory(**row), position)
            for position, row in enumerate(self._rows("memories"))
            if row.get("user_id") == user_id
        ]
        # rows saved within the same second keep insertion order as tiebreak
        owned.sort(key=lambda pair: (pair[0].created_at, pair[1]), reverse=True)
        return [memory for memory, _ in owned]

    def _find_memory_row(self, memory_id: str, user_id: str) -> Dict[str, Any]:
        for row in self._rows("memories"):
            if row.get("id") == memory_id and row.get("user_id") == user_id:
                return row
        raise RecordNotFoundError(
            f"Prompt '{memory_id}' not found", details={"id": memory_id}
        )

    def get_memory(self, memory_id: str, user_id: str) -> Memory:
        return Memory(**self._find_memory_row(memory_id, user_id))

    def update_memory(self, memory_id: str, user_id: str, update: MemoryUpdate) -> Memory:
        row = self._find_memory_row(memory_id, user_id)
        changes = update.model_dump(exclude_unset=True)
        try:
            self._check_columns("memories", changes)
        except MissingColumnError as e:
            logger.warning("Updating without optional columns: %s", e)
            changes = {k: v for k, v in changes.items() if k in CORE_MEMORY_COLUMNS}
        row.update(changes)
        self._write("memories")
        return Memory(**row)

    def duplicate_memory(self, memory_id: str, user_id: str) -> Memory:
        original = self.get_memory(memory_id, user_id)
        return self.add_memory(
            user_id,
            MemoryCreate(
                text=original.text,
                tool=original.tool,
                name=f"{original.name} (copy)" if original.name else None,
                model=original.model,
                variables=original.variables,
                variable_defaults=original.variable_defaults,
            ),
        )

    def delete_memories(self, memory_ids: Iterable[str], user_id: str) -> int:
        """Delete the listed prompts owned by ``user_id``; returns the number removed."""
        ids = set(memory_ids)
        rows = self._rows("memories")
        keep = [r for r in rows if not (r.get("id") in ids and r.get("user_id") == user_id)]
        removed = len(rows) - len(keep)
        if removed:
            self._tables["memories"] = keep
            self._write("memories")
        return removed

    def delete_memory(self, memory_id: str, user_id: str) -> bool:
        return self.delete_memories([memory_id], user_id) == 1

    # ------------------------------------------------------------------
    # waitlist and page views
    def add_waitlist_email(self, email: str) -> WaitlistEntry:
        normalized = normalize_email(email)
        if not EMAIL_RE.search(normalized):
            raise ValidationFailedError("Invalid email", details={"email": normalized})
        if any(row.get("email") == normalized for row in self._rows("waitlist")):
            raise DuplicateEntryError("Already on the waitlist", details={"email": normalized})
        entry = WaitlistEntry(email=normalized)
        self._insert("waitlist", [entry.model_dump(mode="json")])
        return entry

    def record_page_view(
        self,
        path: str,
        *,
        timestamp: Optional[datetime] = None,
        referrer: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> PageView:
        view = PageView(
            path=path,
            timestamp=timestamp or utcnow(),
            referrer=referrer or None,
            user_agent=user_agent or None,
        )
        self._insert("page_views", [view.model_dump(mode="json")])
        return view

    # ------------------------------------------------------------------
    # users and sessions
    def add_user(self, user: User) -> User:
        if self.find_user_by_email(user.email) is not None:
            raise DuplicateEntryError("User already registered", details={"email": user.email})
        self._insert("users", [user.model_dump(mode="json")])
        return user

    def find_user_by_email(self, email: str) -> Optional[User]:
        normalized = normalize_email(email)
        for row in self._rows("users"):
            if row.get("email") == normalized:
                return User(**row)
        return None

    def add_session(self, session: Session) -> Session:
        self._insert("sessions", [session.model_dump(mode="json")])
        return session

    def find_session(self, token: str) -> Optional[Session]:
        for row in self._rows("sessions"):
            if row.get("token") == token:
                return Session(**row)
        return None


__all__ = ["JsonStore", "TABLES", "EMAIL_RE", "normalize_email"]
