"""
Observatory — Vector Count Collector

Polls the sizes of the conscious and unconscious memory collections. A count
that fails keeps its last-known value; when both fail nothing is written.
"""

from __future__ import annotations

from typing import Any

from observatory.clients.qdrant import VectorStoreClient
from observatory.core.store import SnapshotStore
from observatory.primitives.snapshot import DashboardSnapshot
from observatory.systems.collectors.base import PollingCollector


class VectorCountCollector(PollingCollector):
    name = "vectors"

    def __init__(
        self,
        store: SnapshotStore,
        vectors: VectorStoreClient,
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
        self._vectors = vectors

    async def collect(self) -> bool:
        cfg = self._vectors.config
        conscious, conscious_err = await self._count(cfg.memories_collection)
        unconscious, unconscious_err = await self._count(cfg.unconscious_collection)

        if conscious is None and unconscious is None:
            raise RuntimeError(
                f"both counts failed: {conscious_err}; {unconscious_err}"
            )
        if conscious_err or unconscious_err:
            self._logger.debug(
                "vector_count_partial",
                conscious_error=conscious_err,
                unconscious_error=unconscious_err,
            )

        def apply(current: DashboardSnapshot) -> DashboardSnapshot:
            update: dict[str, Any] = {}
            if conscious is not None:
                update["conscious_memories"] = conscious
            if unconscious is not None:
                update["unconscious_memories"] = unconscious
            return current.model_copy(
                update={"cognitive": current.cognitive.model_copy(update=update)}
            )

        await self._store.update_snapshot(apply)
        return True

    async def _count(self, collection: str) -> tuple[int | None, str | None]:
        try:
            count = await self.bounded(self._vectors.points_count(collection), collection)
        except Exception as exc:
            return None, str(exc) or type(exc).__name__
        return count, None
