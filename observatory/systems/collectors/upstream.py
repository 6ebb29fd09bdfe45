"""
Observatory — Upstream Metrics Collector

Polls the host's metrics API at the slow interval and wholly replaces the
extended snapshot. A failed poll leaves the previous extended snapshot in
place (stale, or still absent); the dashboard snapshot is never touched.
"""

from __future__ import annotations

from observatory.clients.upstream import UpstreamMetricsClient
from observatory.core.store import SnapshotStore
from observatory.primitives.common import utc_now
from observatory.systems.collectors.base import PollingCollector
from observatory.systems.collectors.parsing import parse_extended


class UpstreamMetricsCollector(PollingCollector):
    name = "upstream"

    def __init__(
        self,
        store: SnapshotStore,
        upstream: UpstreamMetricsClient,
        *,
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
        self._upstream = upstream

    async def collect(self) -> bool:
        payload = await self.bounded(self._upstream.fetch_extended(), "extended_metrics")
        if payload is None:
            # The client already logged why
            return False
        extended = parse_extended(payload, self._store.snapshot, utc_now())
        await self._store.replace_extended(extended)
        return True
