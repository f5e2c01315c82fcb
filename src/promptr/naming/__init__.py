"""Heuristic title generation for saved prompts."""

from .base import GeneratedTitle, NamingTrace
from .generator import describe_title, generate_title
from .normalize import normalize_title
from .word_lists import PLACEHOLDER_TITLE

__all__ = [
    "GeneratedTitle",
    "NamingTrace",
    "PLACEHOLDER_TITLE",
    "describe_title",
    "generate_title",
    "normalize_title",
]
