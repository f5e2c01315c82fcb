"""Fixed word lists used by the title heuristic."""

from __future__ import annotations

PLACEHOLDER_TITLE = "Untitled Prompt"

# Stripped once from the start of a prompt, only when followed by whitespace.
REQUEST_OPENERS: tuple[str, ...] = (
    "please",
    "can you",
    "could you",
    "i need",
    "help me",
    "write",
    "create",
    "generate",
    "make",
    "do",
    "show",
    "explain",
    "tell",
    "give",
    "provide",
)

POLITE_SUFFIXES: tuple[str, ...] = ("please", "thanks", "thank you")

STOP_WORDS: frozenset[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "as", "is", "are", "was", "were", "be",
        "been", "being", "have", "has", "had", "do", "does", "did", "will",
        "would", "should", "could", "may", "might", "must", "can", "this",
        "that", "these", "those", "it", "its", "they", "them", "their",
        "there", "here", "where", "when", "what", "which", "who", "whom",
        "whose", "why", "how",
    }
)

CODE_KEYWORDS: tuple[str, ...] = (
    "function",
    "class",
    "def",
    "const",
    "let",
    "var",
    "async",
    "export",
    "import",
)

# Order matters: the first verb with an acceptable object wins.
ACTION_VERBS: tuple[str, ...] = (
    "write", "create", "generate", "make", "build", "design", "develop",
    "code", "implement", "analyze", "explain", "summarize", "review", "fix",
    "debug", "optimize", "improve", "refactor", "help", "show", "tell",
    "give", "provide", "find", "search", "get", "fetch", "load", "save",
)

COMMON_PREFIXES: frozenset[str] = frozenset(
    {"write", "create", "make", "do", "get", "show", "tell", "give", "help"}
)

SKIP_FIRST: frozenset[str] = frozenset(
    {"please", "can", "could", "would", "will", "should", "i", "we", "you"}
)

__all__ = [
    "PLACEHOLDER_TITLE",
    "REQUEST_OPENERS",
    "POLITE_SUFFIXES",
    "STOP_WORDS",
    "CODE_KEYWORDS",
    "ACTION_VERBS",
    "COMMON_PREFIXES",
    "SKIP_FIRST",
]
