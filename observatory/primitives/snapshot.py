"""
Observatory — Dashboard Snapshot

The latest fully-formed view of the observed mind: identity, cognitive
counters, emotional state, actor health and the recent thought stream.
Replaced wholesale on every successful poll; never mutated in place.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from observatory.primitives.common import ObservatoryModel, utc_now


class IdentityMetrics(ObservatoryModel):
    name: str = "Timmy"
    uptime_seconds: int = Field(0, ge=0)
    lifetime_thoughts: int = Field(0, ge=0)
    session_thoughts: int = Field(0, ge=0)
    restart_count: int = Field(0, ge=0)


class CognitiveMetrics(ObservatoryModel):
    conscious_memories: int = Field(0, ge=0)
    unconscious_memories: int = Field(0, ge=0)
    lifetime_dreams: int = Field(0, ge=0)
    current_cycle: int = Field(0, ge=0)


class EmotionalMetrics(ObservatoryModel):
    valence: float = Field(0.0, ge=-1.0, le=1.0)            # Negative to positive
    arousal: float = Field(0.5, ge=0.0, le=1.0)             # Calm to activated
    dominance: float = Field(0.5, ge=0.0, le=1.0)
    connection_drive: float = Field(0.5, ge=0.0, le=1.0)
    emotional_intensity: float = Field(0.0, ge=0.0, le=1.0)  # |valence| * arousal


class ActorStatus(ObservatoryModel):
    name: str
    alive: bool = True
    restart_count: int = Field(0, ge=0)


class ActorMetrics(ObservatoryModel):
    memory_actor: ActorStatus = ActorStatus(name="MemoryActor")
    attention_actor: ActorStatus = ActorStatus(name="AttentionActor")
    salience_actor: ActorStatus = ActorStatus(name="SalienceActor")
    volition_actor: ActorStatus = ActorStatus(name="VolitionActor")


class ThoughtSummary(ObservatoryModel):
    id: str
    content_preview: str = ""
    salience: float = Field(0.5, ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=utc_now)


class DashboardSnapshot(ObservatoryModel):
    """One consistent dashboard state. ``recent_thoughts`` is newest-first."""

    timestamp: datetime = Field(default_factory=utc_now)
    identity: IdentityMetrics = Field(default_factory=IdentityMetrics)
    cognitive: CognitiveMetrics = Field(default_factory=CognitiveMetrics)
    emotional: EmotionalMetrics = Field(default_factory=EmotionalMetrics)
    actors: ActorMetrics = Field(default_factory=ActorMetrics)
    recent_thoughts: tuple[ThoughtSummary, ...] = ()

    @classmethod
    def initial(cls, name: str = "Timmy") -> DashboardSnapshot:
        """The value observers see before the first successful poll."""
        return cls(identity=IdentityMetrics(name=name))
