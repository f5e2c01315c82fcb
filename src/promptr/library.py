"""Per-user library metadata and list views over saved prompts.

The metadata here (favorites, tags, folders, copy counts, version history)
never reaches the record store; it lives in one JSON document next to it.
"""

from __future__ import annotations

import json
import logging
import math
import os
import re
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from .exceptions import RecordNotFoundError, StoreError, ValidationFailedError
from .models import Folder, Memory, MemoryCreate, MemoryMetadata, PromptVersion, utcnow

logger = logging.getLogger(__name__)

MAX_VERSIONS = 10
RECENT_LIMIT = 10
SORT_OPTIONS = ("newest", "oldest", "name-asc", "name-desc", "recently-used", "most-used")
_VARIABLE_RE = re.compile(r"\{\{(\w+)\}\}")


class PromptLibrary:
    """Favorites, tags, folders and usage data stored at ``path``."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)
        self.favorites: set[str] = set()
        self.metadata: Dict[str, MemoryMetadata] = {}
        self.folders: List[Folder] = []
        if self.path.exists():
            self.load()

    def load(self) -> None:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise StoreError(f"Library at {self.path} is not a JSON object")
            favorites = set(data.get("favorites", []))
            metadata = {
                memory_id: MemoryMetadata(**meta)
                for memory_id, meta in data.get("metadata", {}).items()
            }
            folders = [Folder(**folder) for folder in data.get("folders", [])]
        except (OSError, AttributeError, TypeError, json.JSONDecodeError, ValidationError) as e:
            raise StoreError(f"Could not read library at {self.path}: {e}") from e
        self.favorites = favorites
        self.metadata = metadata
        self.folders = folders

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "favorites": sorted(self.favorites),
            "metadata": {k: v.model_dump(mode="json") for k, v in self.metadata.items()},
            "folders": [f.model_dump(mode="json") for f in self.folders],
        }
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        logger.debug("Saved library to %s", self.path)

    def meta(self, memory_id: str) -> MemoryMetadata:
        """Return the metadata for ``memory_id``, creating an empty entry."""
        return self.metadata.setdefault(memory_id, MemoryMetadata())

    # ------------------------------------------------------------------
    def toggle_favorite(self, memory_id: str) -> bool:
        if memory_id in self.favorites:
            self.favorites.discard(memory_id)
            return False
        self.favorites.add(memory_id)
        return True

    def is_favorite(self, memory_id: str) -> bool:
        return memory_id in self.favorites

    def add_tag(self, memory_id: str, tag: str) -> List[str]:
        normalized = tag.strip().lower()
        if not normalized:
            return list(self.meta(memory_id).tags)
        meta = self.meta(memory_id)
        if normalized not in meta.tags:
            meta.tags.append(normalized)
        return list(meta.tags)

    def remove_tag(self, memory_id: str, tag: str) -> List[str]:
        meta = self.metadata.get(memory_id)
        if meta is None:
            return []
        meta.tags = [t for t in meta.tags if t != tag]
        return list(meta.tags)

    def all_tags(self) -> List[str]:
        return sorted({tag for meta in self.metadata.values() for tag in meta.tags})

    # ------------------------------------------------------------------
    def create_folder(self, name: str, color: Optional[str] = None) -> Folder:
        name = name.strip()
        if not name:
            raise ValidationFailedError("Folder name is required")
        folder = Folder(name=name, color=color) if color else Folder(name=name)
        self.folders.append(folder)
        return folder

    def get_folder(self, folder_id: str) -> Folder:
        for folder in self.folders:
            if folder.id == folder_id:
                return folder
        raise RecordNotFoundError(f"Folder '{folder_id}' not found", details={"id": folder_id})

    def delete_folder(self, folder_id: str) -> None:
        """Remove a folder and unassign every prompt filed in it."""
        self.folders = [f for f in self.folders if f.id != folder_id]
        for meta in self.metadata.values():
            if meta.folder == folder_id:
                meta.folder = None

    def assign_folder(self, memory_id: str, folder_id: Optional[str]) -> None:
        if folder_id is not None:
            self.get_folder(folder_id)
        self.meta(memory_id).folder = folder_id

    # ------------------------------------------------------------------
    def record_copy(self, memory_id: str) -> MemoryMetadata:
        meta = self.meta(memory_id)
        meta.copy_count += 1
        meta.last_used = utcnow()
        return meta

    def push_version(self, memory: Memory) -> List[PromptVersion]:
        """Remember ``memory``'s current text and name before it is edited."""
        meta = self.meta(memory.id)
        meta.versions = [PromptVersion(text=memory.text, name=memory.name)] + meta.versions
        meta.versions = meta.versions[:MAX_VERSIONS]
        return list(meta.versions)

    def versions(self, memory_id: str) -> List[PromptVersion]:
        meta = self.metadata.get(memory_id)
        return list(meta.versions) if meta else []

    def forget(self, memory_ids: Iterable[str]) -> None:
        for memory_id in memory_ids:
            self.metadata.pop(memory_id, None)
            self.favorites.discard(memory_id)


# ----------------------------------------------------------------------
# variables


def extract_variables(text: str) -> List[str]:
    """Unique ``{{name}}`` placeholders in order of first appearance."""
    return list(dict.fromkeys(_VARIABLE_RE.findall(text)))


def fill_variables(text: str, values: Mapping[str, str]) -> str:
    for key, value in values.items():
        text = text.replace("{{" + key + "}}", value)
    return text


# ----------------------------------------------------------------------
# list views


def display_title(memory: Memory) -> str:
    """The saved name, or the opening words of the prompt text."""
    if memory.name and memory.name.strip():
        return memory.name.strip()
    words = memory.text.split()
    count = min(max(5, math.floor(len(words) * 0.3)), 7)
    fallback = " ".join(words[:count])
    return fallback[:47] + "..." if len(fallback) > 50 else fallback


def _matches_query(memory: Memory, meta: Optional[MemoryMetadata], query: str) -> bool:
    fields = [memory.text, memory.name, memory.tool, memory.model]
    if any(f and query in f.lower() for f in fields):
        return True
    return bool(meta and any(query in tag for tag in meta.tags))


def filter_memories(
    memories: Sequence[Memory],
    library: Optional[PromptLibrary] = None,
    *,
    view: str = "all",
    tags: Sequence[str] = (),
    query: str = "",
    sort: str = "newest",
) -> List[Memory]:
    """Apply the library's view, tag, search and sort selections.

    ``view`` is ``all``, ``favorites``, ``recent``, ``folder-<id>`` or a tool
    name (case-insensitive). Every tag in ``tags`` must be present.
    """
    favorites = library.favorites if library else set()
    metadata = library.metadata if library else {}

    result = list(memories)
    if view == "favorites":
        result = [m for m in result if m.id in favorites]
    elif view == "recent":
        result = result[:RECENT_LIMIT]
    elif view.startswith("folder-"):
        folder_id = view[len("folder-"):]
        result = [m for m in result if metadata.get(m.id) and metadata[m.id].folder == folder_id]
    elif view != "all":
        result = [m for m in result if (m.tool or "").lower() == view.lower()]

    if tags:
        result = [
            m for m in result
            if m.id in metadata and all(t in metadata[m.id].tags for t in tags)
        ]

    query = query.strip().lower()
    if query:
        result = [m for m in result if _matches_query(m, metadata.get(m.id), query)]

    if sort not in SORT_OPTIONS:
        raise ValidationFailedError(f"Unknown sort option '{sort}'", details={"allowed": SORT_OPTIONS})
    if sort == "oldest":
        result.sort(key=lambda m: m.created_at)
    elif sort == "name-asc":
        result.sort(key=lambda m: (m.name or m.text).lower())
    elif sort == "name-desc":
        result.sort(key=lambda m: (m.name or m.text).lower(), reverse=True)
    elif sort == "recently-used":
        used = [m for m in result if metadata.get(m.id) and metadata[m.id].last_used]
        used_ids = {m.id for m in used}
        unused = [m for m in result if m.id not in used_ids]
        used.sort(key=lambda m: metadata[m.id].last_used, reverse=True)
        result = used + unused
    elif sort == "most-used":
        result.sort(
            key=lambda m: metadata[m.id].copy_count if m.id in metadata else 0,
            reverse=True,
        )
    else:
        result.sort(key=lambda m: m.created_at, reverse=True)
    return result


def library_stats(memories: Sequence[Memory], library: Optional[PromptLibrary] = None) -> Dict[str, Any]:
    ids = {m.id for m in memories}
    favorites = library.favorites if library else set()
    return {
        "total": len(memories),
        "favorites": len(favorites & ids),
        "by_tool": dict(Counter(m.tool or "Unknown" for m in memories)),
    }


# ----------------------------------------------------------------------
# export / import


def export_memories(memories: Sequence[Memory]) -> str:
    return json.dumps([m.model_dump(mode="json") for m in memories], indent=2)


def parse_import(raw: str) -> List[MemoryCreate]:
    """Parse an export document into prompts ready to be saved."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationFailedError("Failed to parse import file") from e
    if not isinstance(data, list):
        raise ValidationFailedError("Invalid import file format")
    items: List[MemoryCreate] = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ValidationFailedError("Invalid import file format")
        try:
            items.append(
                MemoryCreate(
                    text=entry.get("text") or "",
                    name=entry.get("name"),
                    tool=entry.get("tool"),
                    model=entry.get("model"),
                )
            )
        except ValidationError as e:
            raise ValidationFailedError("Invalid prompt in import file", details={"entry": entry}) from e
    return items


__all__ = [
    "PromptLibrary",
    "extract_variables",
    "fill_variables",
    "display_title",
    "filter_memories",
    "library_stats",
    "export_memories",
    "parse_import",
    "SORT_OPTIONS",
]
