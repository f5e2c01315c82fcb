"""Dataclasses describing a title generation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class NamingTrace:
    """Record of the strategies tried while naming one prompt.

    Attributes:
        input_summary: Lengths of the raw and cleaned input.
        steps: One entry per strategy attempted, in cascade order. Each entry
               has a ``type`` (the strategy name) and ``details`` holding the
               candidate it produced (possibly empty).
        output_summary: The pre-normalization candidate and the final title.
        processing_ms: Wall time spent in the cascade.
    """

    input_summary: Dict[str, Any]
    steps: List[Dict[str, Any]] = field(default_factory=list)
    output_summary: Dict[str, Any] = field(default_factory=dict)
    processing_ms: float | None = None

    def add_step(self, step_type: str, details: Dict[str, Any]) -> None:
        self.steps.append({"type": step_type, "details": details})


@dataclass
class GeneratedTitle:
    title: str
    strategy: str
    trace: Optional[NamingTrace] = None


__all__ = ["NamingTrace", "GeneratedTitle"]
