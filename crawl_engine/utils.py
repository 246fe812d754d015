"""Utility helpers shared across the engine."""

from __future__ import annotations

from typing import Iterable, List, Optional


def uniq_preserve_order(items: Iterable[str]) -> List[str]:
    """Deduplicate while preserving first-seen order."""
    seen = set()
    out: List[str] = []
    for it in items:
        if not it:
            continue
        key = it.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(it.strip())
    return out


def format_duration(duration_ms: Optional[int]) -> str:
    """Format a millisecond duration as seconds with two decimals, e.g. '12.34s'."""
    if duration_ms is None:
        return "-"
    return f"{duration_ms / 1000:.2f}s"
