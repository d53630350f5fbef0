"""Shared formatting utilities for reporting."""

from __future__ import annotations


def fmt_pct(value: float | None, digits: int = 1) -> str:
    if value is None:
        return "N/A"
    return f"{value * 100:.{digits}f}%"
