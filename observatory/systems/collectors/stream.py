"""
Observatory — Stream & Identity Collector

Polls the awake thought stream in Redis (primary source) and the identity
point in Qdrant (secondary source), and publishes the identity, cognitive,
emotional and recent-thought sections of the dashboard snapshot.

Failure policy:
  - stream unreachable / timed out → nothing written this tick
  - identity point unreachable     → last-known identity counters kept
  - malformed stream entry         → that entry skipped
"""

from __future__ import annotations

import asyncio
from datetime import datetime

from observatory.clients.qdrant import VectorStoreClient
from observatory.clients.redis import RedisClient
from observatory.core.store import SnapshotStore
from observatory.primitives.common import utc_now
from observatory.primitives.snapshot import (
    DashboardSnapshot,
    EmotionalMetrics,
    IdentityMetrics,
)
from observatory.systems.collectors.base import PollingCollector
from observatory.systems.collectors.drive import ConnectionDriveWalk
from observatory.systems.collectors.parsing import (
    DEFAULT_AROUSAL,
    DEFAULT_DOMINANCE,
    DEFAULT_VALENCE,
    IdentityCounters,
    emotional_intensity,
    parse_identity,
    parse_stream_entries,
)


class StreamCollector(PollingCollector):
    name = "stream"

    def __init__(
        self,
        store: SnapshotStore,
        redis: RedisClient,
        vectors: VectorStoreClient,
        drive: ConnectionDriveWalk,
        *,
        started_at: datetime,
        recent_count: int = 20,
        preview_chars: int = 80,
        interval_s: float,
        call_timeout_s: float,
        error_backoff_s: float = 0.5,
    ) -> None:
        super().__init__(
            store,
            interval_s=interval_s,
            call_timeout_s=call_timeout_s,
            error_backoff_s=error_backoff_s,
        )
        self._redis = redis
        self._vectors = vectors
        self._drive = drive
        self._started_at = started_at
        self._recent_count = recent_count
        self._preview_chars = preview_chars
        self._identity_failures: int = 0

    async def collect(self) -> bool:
        # All three reads share the tick deadline and run side by side, so a
        # slow identity store never delays the stream data.
        length, entries, identity = await asyncio.gather(
            self.bounded(self._redis.stream_length(), "xlen"),
            self.bounded(self._redis.recent_entries(self._recent_count), "xrevrange"),
            self._fetch_identity(),
            return_exceptions=True,
        )
        # Primary: the stream. Any failure here skips the write.
        for result in (length, entries, identity):
            if isinstance(result, BaseException):
                raise result
        session_thoughts: int = length
        now = utc_now()
        thoughts = parse_stream_entries(entries, preview_chars=self._preview_chars, now=now)

        # Emotional state comes from the most recent thought only
        if thoughts:
            valence, arousal, dominance = thoughts[0].affect
        else:
            valence, arousal, dominance = DEFAULT_VALENCE, DEFAULT_AROUSAL, DEFAULT_DOMINANCE

        emotional = EmotionalMetrics(
            valence=valence,
            arousal=arousal,
            dominance=dominance,
            connection_drive=self._drive.step(),
            emotional_intensity=emotional_intensity(valence, arousal),
        )
        uptime = max(0, int((now - self._started_at).total_seconds()))

        def apply(current: DashboardSnapshot) -> DashboardSnapshot:
            counters = identity or IdentityCounters(
                lifetime_thoughts=current.identity.lifetime_thoughts,
                restart_count=current.identity.restart_count,
                lifetime_dreams=current.cognitive.lifetime_dreams,
            )
            return current.model_copy(
                update={
                    "timestamp": now,
                    "identity": IdentityMetrics(
                        name=current.identity.name,
                        uptime_seconds=uptime,
                        lifetime_thoughts=counters.lifetime_thoughts,
                        session_thoughts=session_thoughts,
                        restart_count=counters.restart_count,
                    ),
                    "cognitive": current.cognitive.model_copy(
                        update={
                            "lifetime_dreams": counters.lifetime_dreams,
                            "current_cycle": session_thoughts,
                        }
                    ),
                    "emotional": emotional,
                    "recent_thoughts": tuple(t.summary for t in thoughts),
                }
            )

        await self._store.update_snapshot(apply)
        return True

    async def _fetch_identity(self) -> IdentityCounters | None:
        """Identity counters, or None to keep the last-known ones."""
        try:
            payload = await self.bounded(self._vectors.identity_payload(), "identity")
        except Exception as exc:
            self._identity_failures += 1
            if self._identity_failures % 100 == 1:
                self._logger.warning("identity_fetch_failed", error=str(exc))
            return None
        self._identity_failures = 0
        return parse_identity(payload)
