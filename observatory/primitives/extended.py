"""
Observatory — Extended Snapshot

Richer diagnostic state reported by the upstream metrics API: stream
competition across the nine cognitive stages, entropy, fractality, the memory
windows, a philosophy quote and derived system counters.

Lives independently of the dashboard snapshot and may be absent or stale.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, model_validator

from observatory.primitives.common import ObservatoryModel, utc_now
from observatory.primitives.snapshot import DashboardSnapshot

STAGE_COUNT = 9
MEMORY_WINDOW_COUNT = 9
HISTORY_LEN = 50


class StageMetrics(ObservatoryModel):
    name: str
    activity: float = Field(0.0, ge=0.0, le=1.0)
    history: tuple[float, ...] = ()


class StreamCompetitionMetrics(ObservatoryModel):
    stages: tuple[StageMetrics, ...] = ()
    dominant_stream: int = Field(0, ge=0)
    active_count: int = Field(0, ge=0)
    competition_level: str = "Calm"

    @model_validator(mode="after")
    def _indices_in_range(self) -> StreamCompetitionMetrics:
        n = len(self.stages)
        if n == 0:
            if self.dominant_stream or self.active_count:
                raise ValueError("no stages but nonzero dominant/active fields")
            return self
        if self.dominant_stream >= n:
            raise ValueError(f"dominant_stream {self.dominant_stream} out of range for {n} stages")
        if self.active_count > n:
            raise ValueError(f"active_count {self.active_count} exceeds {n} stages")
        return self


class EntropyMetrics(ObservatoryModel):
    current: float = Field(0.0, ge=0.0)
    normalized: float = Field(0.0, ge=0.0, le=1.0)
    history: tuple[float, ...] = ()
    description: str = "Balanced"


class FractalityMetrics(ObservatoryModel):
    score: float = Field(0.0, ge=0.0, le=1.0)
    inter_arrival_sigma: float = Field(0.0, ge=0.0)
    boot_sigma: float = Field(0.0, ge=0.0)
    burst_ratio: float = Field(0.0, ge=0.0)
    description: str = "Clockwork"
    history: tuple[float, ...] = ()


class MemorySlot(ObservatoryModel):
    id: int = Field(ge=0)
    active: bool = False


class MemoryWindowsMetrics(ObservatoryModel):
    slots: tuple[MemorySlot, ...] = tuple(MemorySlot(id=i) for i in range(MEMORY_WINDOW_COUNT))
    active_count: int = Field(0, ge=0)
    conscious_count: int = Field(0, ge=0)
    unconscious_count: int = Field(0, ge=0)

    @model_validator(mode="after")
    def _count_matches_slots(self) -> MemoryWindowsMetrics:
        actual = sum(1 for s in self.slots if s.active)
        if self.active_count != actual:
            raise ValueError(f"active_count {self.active_count} != {actual} active slots")
        return self


class PhilosophyMetrics(ObservatoryModel):
    quote: str = ""
    quote_index: int = Field(0, ge=0)


class SystemMetrics(ObservatoryModel):
    uptime_seconds: int = Field(0, ge=0)
    session_thoughts: int = Field(0, ge=0)
    lifetime_thoughts: int = Field(0, ge=0)
    thoughts_per_hour: float = Field(0.0, ge=0.0)
    dream_cycles: int = Field(0, ge=0)
    veto_count: int = Field(0, ge=0)


class ExtendedSnapshot(ObservatoryModel):
    timestamp: datetime = Field(default_factory=utc_now)
    stream_competition: StreamCompetitionMetrics = Field(default_factory=StreamCompetitionMetrics)
    entropy: EntropyMetrics = Field(default_factory=EntropyMetrics)
    fractality: FractalityMetrics = Field(default_factory=FractalityMetrics)
    memory_windows: MemoryWindowsMetrics = Field(default_factory=MemoryWindowsMetrics)
    philosophy: PhilosophyMetrics = Field(default_factory=PhilosophyMetrics)
    system: SystemMetrics = Field(default_factory=SystemMetrics)


class ObservatoryView(ObservatoryModel):
    """The combined document served by /observatory and streamed over /ws."""

    dashboard: DashboardSnapshot
    extended: ExtendedSnapshot | None = None
