"""Promptr package with lazy loading of submodules."""

from __future__ import annotations

import importlib
from typing import Any

__all__ = [
    "generate_title",
    "describe_title",
    "JsonStore",
    "PromptLibrary",
    "Config",
    "handle",
]

_lazy_map = {
    "generate_title": "promptr.naming",
    "describe_title": "promptr.naming",
    "JsonStore": "promptr.store",
    "PromptLibrary": "promptr.library",
    "Config": "promptr.config",
    "handle": "promptr.api",
}


def __getattr__(name: str) -> Any:  # pragma: no cover - simple passthrough
    if name in _lazy_map:
        module = importlib.import_module(_lazy_map[name])
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover - for completeness
    return sorted(list(globals().keys()) + list(_lazy_map.keys()))


__version__ = "0.1.0"
