"""Tests for VectorCountCollector."""

from __future__ import annotations

from typing import Any

import pytest

from observatory.config import QdrantConfig
from observatory.core.store import SnapshotStore
from observatory.systems.collectors.vectors import VectorCountCollector


class FakeCounts:
    def __init__(self, counts: dict[str, Any]):
        self.config = QdrantConfig()
        self.counts = counts

    async def points_count(self, collection: str) -> int:
        value = self.counts[collection]
        if isinstance(value, Exception):
            raise value
        return value


def _collector(store: SnapshotStore, vectors: FakeCounts) -> VectorCountCollector:
    return VectorCountCollector(store, vectors, interval_s=0.5, call_timeout_s=0.5)


class TestVectorCounts:
    @pytest.mark.asyncio
    async def test_both_counts_published(self):
        store = SnapshotStore()
        vectors = FakeCounts({"memories": 42, "unconscious": 7})
        assert await _collector(store, vectors).run_once() is True
        assert store.snapshot.cognitive.conscious_memories == 42
        assert store.snapshot.cognitive.unconscious_memories == 7

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_last_known(self):
        store = SnapshotStore()
        vectors = FakeCounts({"memories": 42, "unconscious": 7})
        collector = _collector(store, vectors)
        await collector.run_once()

        vectors.counts = {"memories": 50, "unconscious": TimeoutError("slow")}
        assert await collector.run_once() is True
        assert store.snapshot.cognitive.conscious_memories == 50
        assert store.snapshot.cognitive.unconscious_memories == 7

    @pytest.mark.asyncio
    async def test_total_failure_writes_nothing(self):
        store = SnapshotStore()
        vectors = FakeCounts({"memories": 42, "unconscious": 7})
        collector = _collector(store, vectors)
        await collector.run_once()
        before = store.snapshot

        vectors.counts = {
            "memories": ConnectionError("down"),
            "unconscious": ConnectionError("down"),
        }
        assert await collector.run_once() is False
        assert store.snapshot is before
        assert collector.stats["failures"] == 1

    @pytest.mark.asyncio
    async def test_leaves_stream_sections_untouched(self):
        store = SnapshotStore()
        await store.update_snapshot(
            lambda s: s.model_copy(
                update={
                    "emotional": s.emotional.model_copy(update={"valence": 0.3}),
                    "cognitive": s.cognitive.model_copy(update={"current_cycle": 11}),
                }
            )
        )
        await _collector(store, FakeCounts({"memories": 1, "unconscious": 2})).run_once()
        assert store.snapshot.emotional.valence == 0.3
        assert store.snapshot.cognitive.current_cycle == 11
