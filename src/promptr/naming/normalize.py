"""Final formatting applied to every title candidate."""

from __future__ import annotations

import re

from .word_lists import PLACEHOLDER_TITLE

MAX_TITLE_LENGTH = 60
ELLIPSIS = "..."

_WHITESPACE_RE = re.compile(r"\s+")
_EDGE_PUNCT_RE = re.compile(r"^[^a-zA-Z0-9]+|(?<=[a-zA-Z0-9])[^a-zA-Z0-9]+$")


def clamp(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit - 3`` characters plus an ellipsis when longer than ``limit``."""
    if len(text) > limit:
        return text[: limit - len(ELLIPSIS)] + ELLIPSIS
    return text


def title_case_word(word: str) -> str:
    if not word:
        return word
    # all-caps words such as "API" or "SQL" are acronyms
    if word == word.upper() and len(word) > 1:
        return word
    return word[0].upper() + word[1:].lower()


def normalize_title(candidate: str) -> str:
    """Collapse whitespace, trim edge punctuation, title-case and clamp.

    Returns :data:`PLACEHOLDER_TITLE` when nothing printable is left.
    """
    name = _WHITESPACE_RE.sub(" ", candidate)
    name = _EDGE_PUNCT_RE.sub("", name).strip()
    name = " ".join(title_case_word(w) for w in name.split(" "))
    name = clamp(name, MAX_TITLE_LENGTH)
    return name or PLACEHOLDER_TITLE


__all__ = ["MAX_TITLE_LENGTH", "ELLIPSIS", "clamp", "title_case_word", "normalize_title"]
