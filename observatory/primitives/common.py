"""
Observatory — Common Primitives

Shared base classes and utilities used across every component.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel


def utc_now() -> datetime:
    """Current UTC time, timezone-aware."""
    return datetime.now(timezone.utc)


def now_ms() -> int:
    """Current UTC time as integer epoch milliseconds."""
    return int(utc_now().timestamp() * 1000)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


# ─── Base Models ──────────────────────────────────────────────────


class ObservatoryModel(BaseModel):
    """
    Base model for every published value.

    Frozen so that a value swapped into the snapshot store can be handed to
    any number of readers without copying.
    """

    model_config = {"populate_by_name": True, "frozen": True}
