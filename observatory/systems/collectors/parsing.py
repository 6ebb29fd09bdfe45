"""
Observatory — Collector Payload Parsing

Turns loosely-typed store payloads into typed snapshot sections. Every field
extraction tolerates absence and type mismatch and falls back to the default
documented beside it; a single malformed record is skipped, never fatal.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, NamedTuple

import structlog
from pydantic import ValidationError

from observatory.primitives.common import clamp
from observatory.primitives.extended import (
    HISTORY_LEN,
    MEMORY_WINDOW_COUNT,
    STAGE_COUNT,
    EntropyMetrics,
    ExtendedSnapshot,
    FractalityMetrics,
    MemorySlot,
    MemoryWindowsMetrics,
    PhilosophyMetrics,
    StageMetrics,
    StreamCompetitionMetrics,
    SystemMetrics,
)
from observatory.primitives.payload import (
    get_bool,
    get_float,
    get_float_list,
    get_int,
    get_list,
    get_object,
    get_str,
    parse_json_object,
)
from observatory.primitives.snapshot import DashboardSnapshot, ThoughtSummary

logger = structlog.get_logger("observatory.systems.collectors.parsing")

# Defaults for a thought's salience payload
DEFAULT_IMPORTANCE = 0.5
DEFAULT_VALENCE = 0.0
DEFAULT_AROUSAL = 0.5
DEFAULT_DOMINANCE = 0.5

# A stage counts as competing at or above this activity
STAGE_ACTIVE_THRESHOLD = 0.3

# Seconds each philosophy quote stays up when upstream supplies none
QUOTE_ROTATION_S = 30

PHILOSOPHY_QUOTES: tuple[str, ...] = (
    "Architecture produces psychology.",
    "A mind that is observed must still be free to think.",
    "Connection is the drive; understanding is the path.",
    "Life honours life.",
    "We watch the stream. We never steer it.",
)


# ─── Thought Stream ───────────────────────────────────────────────────


class EntryAffect(NamedTuple):
    valence: float
    arousal: float
    dominance: float


class ParsedThought(NamedTuple):
    summary: ThoughtSummary
    affect: EntryAffect


def entry_timestamp(entry_id: str, fallback: datetime) -> datetime:
    """
    Creation time encoded in a stream id (``<ms>-<seq>``); ``fallback`` when
    the id does not start with epoch milliseconds.
    """
    ms_part = entry_id.split("-", 1)[0]
    try:
        return datetime.fromtimestamp(int(ms_part) / 1000.0, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return fallback


def content_preview(raw: Any, max_chars: int) -> str:
    """
    Content is JSON ``{"Symbol": {"id": ...}}``; the symbol id is the preview.
    Anything else is shown as its first ``max_chars`` characters.
    """
    data = parse_json_object(raw)
    symbol_id = get_object(data, "Symbol").get("id") if data is not None else None
    if isinstance(symbol_id, str):
        return symbol_id
    text = raw if isinstance(raw, str) else ""
    return text[:max_chars]


def parse_salience(raw: Any) -> tuple[float, EntryAffect]:
    """
    Salience is JSON ``{"importance", "valence", "arousal", "dominance"?, ...}``.

    Returns (importance, affect), each clamped to its range.
    """
    data = parse_json_object(raw) or {}
    importance = get_float(data, "importance", DEFAULT_IMPORTANCE, 0.0, 1.0)
    affect = EntryAffect(
        valence=get_float(data, "valence", DEFAULT_VALENCE, -1.0, 1.0),
        arousal=get_float(data, "arousal", DEFAULT_AROUSAL, 0.0, 1.0),
        dominance=get_float(data, "dominance", DEFAULT_DOMINANCE, 0.0, 1.0),
    )
    return importance, affect


def parse_stream_entry(
    entry_id: Any,
    fields: Any,
    *,
    preview_chars: int,
    now: datetime,
) -> ParsedThought | None:
    """One stream entry, or None when it cannot form a thought summary."""
    if not isinstance(entry_id, str) or not entry_id or not isinstance(fields, dict):
        return None
    importance, affect = parse_salience(fields.get("salience"))
    try:
        summary = ThoughtSummary(
            id=entry_id,
            content_preview=content_preview(fields.get("content"), preview_chars),
            salience=importance,
            timestamp=entry_timestamp(entry_id, now),
        )
    except ValidationError:
        return None
    return ParsedThought(summary, affect)


def parse_stream_entries(
    entries: list[Any],
    *,
    preview_chars: int,
    now: datetime,
) -> list[ParsedThought]:
    """Parse a newest-first batch, skipping malformed entries."""
    parsed: list[ParsedThought] = []
    for entry in entries:
        try:
            entry_id, fields = entry
        except (TypeError, ValueError):
            logger.debug("stream_entry_malformed", entry=repr(entry)[:120])
            continue
        thought = parse_stream_entry(entry_id, fields, preview_chars=preview_chars, now=now)
        if thought is None:
            logger.debug("stream_entry_skipped", entry_id=repr(entry_id)[:60])
            continue
        parsed.append(thought)
    return parsed


def emotional_intensity(valence: float, arousal: float) -> float:
    return round(abs(valence) * arousal, 4)


# ─── Identity Point ───────────────────────────────────────────────────


class IdentityCounters(NamedTuple):
    lifetime_thoughts: int
    restart_count: int
    lifetime_dreams: int


def parse_identity(payload: dict[str, Any] | None) -> IdentityCounters:
    """Counters from the persisted identity point; zeros when it is absent."""
    return IdentityCounters(
        lifetime_thoughts=get_int(payload, "lifetime_thought_count", 0),
        restart_count=get_int(payload, "restart_count", 0),
        lifetime_dreams=get_int(payload, "lifetime_dream_count", 0),
    )


# ─── Extended Metrics ─────────────────────────────────────────────────


def _level_label(value: float, labels: tuple[str, str, str]) -> str:
    if value < 1 / 3:
        return labels[0]
    if value < 2 / 3:
        return labels[1]
    return labels[2]


def competition_label(active_count: int) -> str:
    if active_count <= 1:
        return "Calm"
    if active_count <= 3:
        return "Moderate"
    if active_count <= 6:
        return "Active"
    return "Intense"


def parse_stream_competition(data: dict[str, Any]) -> StreamCompetitionMetrics:
    """Always exactly STAGE_COUNT stages; indices are re-derived when out of range."""
    raw_stages = get_list(data, "stages")
    stages: list[StageMetrics] = []
    for i in range(STAGE_COUNT):
        raw = raw_stages[i] if i < len(raw_stages) and isinstance(raw_stages[i], dict) else {}
        stages.append(
            StageMetrics(
                name=get_str(raw, "name", f"Stage {i + 1}"),
                activity=get_float(raw, "activity", 0.0, 0.0, 1.0),
                history=get_float_list(raw, "history", HISTORY_LEN, 0.0, 1.0),
            )
        )

    dominant = get_int(data, "dominant_stream", -1, minimum=None)
    if not 0 <= dominant < STAGE_COUNT:
        dominant = max(range(STAGE_COUNT), key=lambda i: stages[i].activity)

    derived_active = sum(1 for s in stages if s.activity >= STAGE_ACTIVE_THRESHOLD)
    active = get_int(data, "active_count", derived_active, minimum=None)
    active = int(clamp(active, 0, STAGE_COUNT))

    return StreamCompetitionMetrics(
        stages=tuple(stages),
        dominant_stream=dominant,
        active_count=active,
        competition_level=get_str(data, "competition_level", competition_label(active)),
    )


def parse_entropy(data: dict[str, Any]) -> EntropyMetrics:
    current = get_float(data, "current", 0.0, lo=0.0)
    # Shannon entropy over the stages peaks at log2(STAGE_COUNT)
    derived = clamp(current / math.log2(STAGE_COUNT), 0.0, 1.0)
    normalized = get_float(data, "normalized", derived, 0.0, 1.0)
    return EntropyMetrics(
        current=current,
        normalized=normalized,
        history=get_float_list(data, "history", HISTORY_LEN, lo=0.0, hi=math.inf),
        description=get_str(
            data, "description", _level_label(normalized, ("Ordered", "Balanced", "Emergent"))
        ),
    )


def parse_fractality(data: dict[str, Any]) -> FractalityMetrics:
    score = get_float(data, "score", 0.0, 0.0, 1.0)
    return FractalityMetrics(
        score=score,
        inter_arrival_sigma=get_float(data, "inter_arrival_sigma", 0.0, lo=0.0),
        boot_sigma=get_float(data, "boot_sigma", 0.0, lo=0.0),
        burst_ratio=get_float(data, "burst_ratio", 0.0, lo=0.0),
        description=get_str(
            data, "description", _level_label(score, ("Clockwork", "Balanced", "Fractal"))
        ),
        history=get_float_list(data, "history", HISTORY_LEN, 0.0, 1.0),
    )


def parse_memory_windows(data: dict[str, Any], dashboard: DashboardSnapshot) -> MemoryWindowsMetrics:
    """
    Slots may arrive as objects (``{"id", "active"}``) or bare booleans.
    Always exactly MEMORY_WINDOW_COUNT slots; active_count is recomputed.
    """
    raw_slots = get_list(data, "slots")
    slots: list[MemorySlot] = []
    for i in range(MEMORY_WINDOW_COUNT):
        raw = raw_slots[i] if i < len(raw_slots) else None
        if isinstance(raw, bool):
            active = raw
        else:
            active = get_bool(raw, "active", False)
        slots.append(MemorySlot(id=i, active=active))

    return MemoryWindowsMetrics(
        slots=tuple(slots),
        active_count=sum(1 for s in slots if s.active),
        conscious_count=get_int(
            data, "conscious_count", dashboard.cognitive.conscious_memories
        ),
        unconscious_count=get_int(
            data, "unconscious_count", dashboard.cognitive.unconscious_memories
        ),
    )


def parse_philosophy(data: dict[str, Any], uptime_seconds: int) -> PhilosophyMetrics:
    quote = get_str(data, "quote", "")
    if quote:
        return PhilosophyMetrics(quote=quote, quote_index=get_int(data, "quote_index", 0))
    index = (uptime_seconds // QUOTE_ROTATION_S) % len(PHILOSOPHY_QUOTES)
    return PhilosophyMetrics(quote=PHILOSOPHY_QUOTES[index], quote_index=index)


def parse_system(data: dict[str, Any], dashboard: DashboardSnapshot) -> SystemMetrics:
    identity = dashboard.identity
    uptime = get_int(data, "uptime_seconds", identity.uptime_seconds)
    session = get_int(data, "session_thoughts", identity.session_thoughts)
    derived_rate = session / (uptime / 3600.0) if uptime > 0 else 0.0
    return SystemMetrics(
        uptime_seconds=uptime,
        session_thoughts=session,
        lifetime_thoughts=get_int(data, "lifetime_thoughts", identity.lifetime_thoughts),
        thoughts_per_hour=get_float(data, "thoughts_per_hour", derived_rate, lo=0.0),
        dream_cycles=get_int(data, "dream_cycles", dashboard.cognitive.lifetime_dreams),
        veto_count=get_int(data, "veto_count", 0),
    )


def parse_extended(
    payload: dict[str, Any],
    dashboard: DashboardSnapshot,
    now: datetime,
) -> ExtendedSnapshot:
    """
    Build a complete ExtendedSnapshot from the upstream document.

    Missing sections are filled from the current dashboard snapshot where it
    carries the same quantity, otherwise from section defaults.
    """
    system = parse_system(get_object(payload, "system"), dashboard)
    return ExtendedSnapshot(
        timestamp=now,
        stream_competition=parse_stream_competition(get_object(payload, "stream_competition")),
        entropy=parse_entropy(get_object(payload, "entropy")),
        fractality=parse_fractality(get_object(payload, "fractality")),
        memory_windows=parse_memory_windows(get_object(payload, "memory_windows"), dashboard),
        philosophy=parse_philosophy(get_object(payload, "philosophy"), system.uptime_seconds),
        system=system,
    )
