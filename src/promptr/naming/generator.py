from __future__ import annotations

import logging
import time

from .base import GeneratedTitle, NamingTrace
from .normalize import normalize_title
from .strategies import CASCADE, MIN_CANDIDATE_LENGTH, NamingContext, raw_prefix
from .word_lists import PLACEHOLDER_TITLE

logger = logging.getLogger(__name__)


def describe_title(text: str) -> GeneratedTitle:
    """Name ``text`` and report which strategy produced the title.

    The strategies in :data:`~promptr.naming.strategies.CASCADE` are tried in
    order and the first non-empty candidate wins. A candidate shorter than
    three characters is replaced by the raw prefix of the input. The result
    is always normalized, so the returned title is never empty and never
    longer than 60 characters.
    """
    start_time = time.monotonic()
    ctx = NamingContext.from_text(text)
    trace = NamingTrace(
        input_summary={
            "input_length": len(text),
            "trimmed_length": len(ctx.trimmed),
            "cleaned_length": len(ctx.cleaned),
        }
    )

    if not ctx.trimmed:
        trace.output_summary = {"candidate": "", "title": PLACEHOLDER_TITLE}
        trace.processing_ms = (time.monotonic() - start_time) * 1000
        return GeneratedTitle(title=PLACEHOLDER_TITLE, strategy="placeholder", trace=trace)

    candidate = ""
    strategy = "placeholder"
    for name, produce in CASCADE:
        candidate = produce(ctx)
        trace.add_step(name, {"candidate": candidate})
        if candidate:
            strategy = name
            break

    if len(candidate) < MIN_CANDIDATE_LENGTH:
        candidate = raw_prefix(ctx)
        trace.add_step("raw_prefix", {"candidate": candidate})
        strategy = "raw_prefix"

    title = normalize_title(candidate)
    trace.output_summary = {"candidate": candidate, "title": title}
    trace.processing_ms = (time.monotonic() - start_time) * 1000
    logger.debug("Named prompt via %s: %r", strategy, title)
    return GeneratedTitle(title=title, strategy=strategy, trace=trace)


def generate_title(text: str) -> str:
    """Return a short display title for the prompt ``text``."""
    return describe_title(text).title


__all__ = ["describe_title", "generate_title"]
