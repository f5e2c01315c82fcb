"""Candidate-producing strategies for the title cascade.

Each strategy takes a :class:`NamingContext` and returns a candidate string,
empty when it has nothing to offer. :data:`CASCADE` lists them in priority
order; :func:`raw_prefix` is the last resort applied when the winning
candidate is too short.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .normalize import clamp
from .word_lists import (
    ACTION_VERBS,
    CODE_KEYWORDS,
    COMMON_PREFIXES,
    POLITE_SUFFIXES,
    REQUEST_OPENERS,
    SKIP_FIRST,
    STOP_WORDS,
)

_OPENER_RE = re.compile(
    r"^(" + "|".join(re.escape(p) for p in REQUEST_OPENERS) + r")\s+",
    re.IGNORECASE,
)
_SUFFIX_RE = re.compile(
    r"(?<!\s)\s+(" + "|".join(re.escape(s) for s in POLITE_SUFFIXES) + r")[.!?]*\Z",
    re.IGNORECASE,
)
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]\s+")
_WHITESPACE_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_TERMINATOR_RE = re.compile(r"[.!?]")
_KEYWORDS = "|".join(CODE_KEYWORDS)
_CODE_IDENT_RE = re.compile(
    rf"(?:{_KEYWORDS})\s+(\w+)",
    re.IGNORECASE | re.ASCII,
)
_CAMEL_BOUNDARY_RE = re.compile(r"([A-Z])")
_TOPIC_RES = (
    re.compile(
        r"(?:about|on|for|regarding|concerning|related to)\s+([^.!?]+?)(?:\s|\Z|,|\.)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:topic|subject|theme|focus|discuss|talk)\s+(?:is|about|on)?\s*:?\s*([^.!?]+?)(?:\s|\Z|,|\.)",
        re.IGNORECASE,
    ),
)
_ACTION_RES = tuple(
    (
        verb,
        re.compile(
            rf"{verb}\s+(?:(?:a|an|the)\s+)?([^.!?\s]+(?:\s+[^.!?\s]+){{0,4}})",
            re.IGNORECASE,
        ),
    )
    for verb in ACTION_VERBS
)

MAX_QUESTION_WORDS = 8
MAX_FALLBACK_WORDS = 5
MAX_TOPIC_WORDS = 5
RAW_PREFIX_LIMIT = 50
MIN_CANDIDATE_LENGTH = 3


def split_words(text: str) -> List[str]:
    return [w for w in _WHITESPACE_RE.split(text) if w]


def alnum_key(word: str) -> str:
    """Lowercased ``word`` reduced to ``[a-z0-9]`` characters."""
    return _NON_ALNUM_RE.sub("", word.lower())


def is_meaningful(word: str) -> bool:
    key = alnum_key(word)
    return len(key) > 2 and key not in STOP_WORDS


def meaningful_words(text: str) -> List[str]:
    return [w for w in split_words(text) if is_meaningful(w)]


@dataclass
class NamingContext:
    """Per-call values shared by the strategies."""

    trimmed: str
    cleaned: str
    opener: Optional[str] = None
    words: List[str] = field(default_factory=list)

    @classmethod
    def from_text(cls, text: str) -> "NamingContext":
        trimmed = text.strip()
        opener = None
        match = _OPENER_RE.match(trimmed)
        cleaned = trimmed
        if match:
            opener = match.group(1).lower()
            cleaned = cleaned[match.end():]
        cleaned = _SUFFIX_RE.sub("", cleaned, count=1).strip()

        sentences = [s for s in _SENTENCE_SPLIT_RE.split(cleaned) if len(s) > 10]
        first_sentence = sentences[0] if sentences else cleaned
        return cls(
            trimmed=trimmed,
            cleaned=cleaned,
            opener=opener,
            words=meaningful_words(first_sentence),
        )

    @property
    def action_text(self) -> str:
        """``cleaned`` with a stripped action-verb opener put back."""
        if self.opener and self.opener in ACTION_VERBS:
            return f"{self.opener} {self.cleaned}".strip()
        return self.cleaned


def question_clause(text: str) -> str:
    """First clause ending in ``?`` that starts at the beginning of ``text`` or of a line.

    The clause holds no other ``.``, ``!`` or ``?``. Each stretch between two
    terminators is scanned once.
    """
    previous = None
    for match in _TERMINATOR_RE.finditer(text):
        end = match.start()
        if previous is None:
            start = 0
        else:
            newline = text.find("\n", previous + 1, end)
            start = newline + 1 if newline != -1 else -1
        if start != -1 and match.group() == "?":
            return text[start:end + 1]
        previous = end
    return ""


def from_question(ctx: NamingContext) -> str:
    if "?" not in ctx.trimmed:
        return ""
    clause = question_clause(ctx.trimmed)
    if not clause:
        return ""
    words = meaningful_words(clause.strip())
    return " ".join(words[:MAX_QUESTION_WORDS])


def declared_identifier(text: str) -> str:
    """Name following a declaration keyword, skipping keyword chains.

    ``export async function fooBar`` declares ``fooBar``: when the word after
    a keyword is itself a keyword, the search resumes from that word.
    """
    match = _CODE_IDENT_RE.search(text)
    while match and match.group(1).lower() in CODE_KEYWORDS:
        match = _CODE_IDENT_RE.search(text, match.start(1))
    return match.group(1) if match else ""


def from_code_identifier(ctx: NamingContext) -> str:
    identifier = declared_identifier(ctx.trimmed)
    if not identifier:
        return ""
    spaced = _CAMEL_BOUNDARY_RE.sub(r" \1", identifier).strip()
    return " ".join(part[:1].upper() + part[1:].lower() for part in spaced.split(" "))


def from_action_verb(ctx: NamingContext) -> str:
    text = ctx.action_text
    for verb, pattern in _ACTION_RES:
        match = pattern.search(text)
        if not match:
            continue
        obj = match.group(1).strip()
        if len(obj) > 3 and alnum_key(obj) not in STOP_WORDS:
            return f"{verb.capitalize()} {obj}"
    return ""


def from_topic_phrase(ctx: NamingContext) -> str:
    for pattern in _TOPIC_RES:
        match = pattern.search(ctx.cleaned)
        if not match or not match.group(1):
            continue
        topic = " ".join(split_words(match.group(1).strip())[:MAX_TOPIC_WORDS])
        if len(topic) > 3:
            return topic
    return ""


def from_keywords(ctx: NamingContext) -> str:
    if not ctx.words:
        return ""
    start = 1 if ctx.words[0].lower() in COMMON_PREFIXES else 0
    return " ".join(ctx.words[start:start + MAX_FALLBACK_WORDS])


def raw_prefix(ctx: NamingContext) -> str:
    """First few raw words of the input, skipping a polite starter."""
    words = split_words(ctx.trimmed)
    start = 1 if words and words[0].lower() in SKIP_FIRST else 0
    fallback = " ".join(words[start:start + MAX_FALLBACK_WORDS])
    return clamp(fallback, RAW_PREFIX_LIMIT)


Strategy = Callable[[NamingContext], str]

CASCADE: Tuple[Tuple[str, Strategy], ...] = (
    ("question", from_question),
    ("code_identifier", from_code_identifier),
    ("action_verb", from_action_verb),
    ("topic_phrase", from_topic_phrase),
    ("keywords", from_keywords),
)

__all__ = [
    "NamingContext",
    "CASCADE",
    "MIN_CANDIDATE_LENGTH",
    "from_question",
    "from_code_identifier",
    "from_action_verb",
    "from_topic_phrase",
    "from_keywords",
    "raw_prefix",
    "meaningful_words",
    "is_meaningful",
]
