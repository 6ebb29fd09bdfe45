"""
Observatory — Shared Primitives

The typed values every component reads and publishes.
"""

from observatory.primitives.common import ObservatoryModel, clamp, now_ms, utc_now
from observatory.primitives.extended import (
    MEMORY_WINDOW_COUNT,
    STAGE_COUNT,
    EntropyMetrics,
    ExtendedSnapshot,
    FractalityMetrics,
    MemorySlot,
    MemoryWindowsMetrics,
    ObservatoryView,
    PhilosophyMetrics,
    StageMetrics,
    StreamCompetitionMetrics,
    SystemMetrics,
)
from observatory.primitives.snapshot import (
    ActorMetrics,
    ActorStatus,
    CognitiveMetrics,
    DashboardSnapshot,
    EmotionalMetrics,
    IdentityMetrics,
    ThoughtSummary,
)

__all__ = [
    "ActorMetrics",
    "ActorStatus",
    "CognitiveMetrics",
    "DashboardSnapshot",
    "EmotionalMetrics",
    "EntropyMetrics",
    "ExtendedSnapshot",
    "FractalityMetrics",
    "IdentityMetrics",
    "MEMORY_WINDOW_COUNT",
    "MemorySlot",
    "MemoryWindowsMetrics",
    "ObservatoryModel",
    "ObservatoryView",
    "PhilosophyMetrics",
    "STAGE_COUNT",
    "StageMetrics",
    "StreamCompetitionMetrics",
    "SystemMetrics",
    "ThoughtSummary",
    "clamp",
    "now_ms",
    "utc_now",
]
