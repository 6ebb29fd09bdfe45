"""Tests for SnapshotStore — single-writer, many-reader latest-value holder."""

from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from observatory.core.store import SnapshotStore
from observatory.primitives.extended import ExtendedSnapshot
from observatory.primitives.snapshot import (
    CognitiveMetrics,
    DashboardSnapshot,
    IdentityMetrics,
)


def _consistent(k: int) -> DashboardSnapshot:
    """A snapshot whose sections all carry the same marker value."""
    return DashboardSnapshot(
        identity=IdentityMetrics(session_thoughts=k, lifetime_thoughts=k),
        cognitive=CognitiveMetrics(current_cycle=k, conscious_memories=k),
    )


def _is_consistent(snap: DashboardSnapshot) -> bool:
    k = snap.identity.session_thoughts
    return (
        snap.identity.lifetime_thoughts == k
        and snap.cognitive.current_cycle == k
        and snap.cognitive.conscious_memories == k
    )


class TestInitialState:
    def test_defaults(self):
        store = SnapshotStore()
        assert store.snapshot.identity.name == "Timmy"
        assert store.extended is None
        assert store.view().extended is None
        assert store.stats()["has_extended"] is False

    def test_custom_initial(self):
        initial = DashboardSnapshot.initial("Ada")
        store = SnapshotStore(initial)
        assert store.snapshot is initial


class TestWrites:
    @pytest.mark.asyncio
    async def test_replace_snapshot(self):
        store = SnapshotStore()
        new = _consistent(5)
        await store.replace_snapshot(new)
        assert store.snapshot is new
        assert store.snapshot_writes == 1

    @pytest.mark.asyncio
    async def test_failing_update_leaves_value(self):
        store = SnapshotStore()
        before = store.snapshot

        def broken(_current: DashboardSnapshot) -> DashboardSnapshot:
            raise ValueError("bad data")

        with pytest.raises(ValueError):
            await store.update_snapshot(broken)
        assert store.snapshot is before
        assert store.snapshot_writes == 0

    @pytest.mark.asyncio
    async def test_update_must_return_snapshot(self):
        store = SnapshotStore()
        with pytest.raises(TypeError):
            await store.update_snapshot(lambda _current: {"not": "a snapshot"})

    @pytest.mark.asyncio
    async def test_replace_extended(self):
        store = SnapshotStore()
        extended = ExtendedSnapshot()
        await store.replace_extended(extended)
        assert store.extended is extended
        assert store.view().extended is extended
        stats = store.stats()
        assert stats["extended_writes"] == 1
        assert stats["extended_updated_at"] is not None

    @pytest.mark.asyncio
    async def test_published_values_are_frozen(self):
        store = SnapshotStore()
        with pytest.raises(ValidationError):
            store.snapshot.identity.session_thoughts = 3  # type: ignore[misc]


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_no_lost_updates(self):
        store = SnapshotStore()

        def bump(s: DashboardSnapshot) -> DashboardSnapshot:
            return s.model_copy(
                update={
                    "cognitive": s.cognitive.model_copy(
                        update={"current_cycle": s.cognitive.current_cycle + 1}
                    )
                }
            )

        await asyncio.gather(*(store.update_snapshot(bump) for _ in range(200)))
        assert store.snapshot.cognitive.current_cycle == 200
        assert store.snapshot_writes == 200

    @pytest.mark.asyncio
    async def test_readers_never_see_torn_state(self):
        store = SnapshotStore(_consistent(0))
        torn: list[int] = []
        done = asyncio.Event()

        async def writer(offset: int) -> None:
            for i in range(200):
                await store.replace_snapshot(_consistent(offset + i))
                await asyncio.sleep(0)

        async def reader() -> None:
            while not done.is_set():
                view = store.view()
                if not _is_consistent(view.dashboard):
                    torn.append(view.dashboard.identity.session_thoughts)
                await asyncio.sleep(0)

        readers = [asyncio.create_task(reader()) for _ in range(4)]
        await asyncio.gather(writer(0), writer(10_000))
        done.set()
        await asyncio.gather(*readers)

        assert torn == []
        assert _is_consistent(store.snapshot)
