"""
Observatory — Snapshot Store

The single shared holder of the latest dashboard snapshot and the latest
(optional) extended snapshot.

Readers take the current reference without locking: published values are
frozen models and a reference swap is atomic, so a reader sees either the
fully-old or the fully-new value. Writers are serialized by an asyncio lock so
that read-modify-write updates from independent collectors never lose each
other's sections. No history is kept.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any

import structlog

from observatory.primitives.common import utc_now
from observatory.primitives.extended import ExtendedSnapshot, ObservatoryView
from observatory.primitives.snapshot import DashboardSnapshot

logger = structlog.get_logger("observatory.core.store")

SnapshotUpdate = Callable[[DashboardSnapshot], DashboardSnapshot]


class SnapshotStore:
    """
    Latest-value container, injected into every collector, session and route
    that needs it.
    """

    def __init__(self, initial: DashboardSnapshot | None = None) -> None:
        self._snapshot: DashboardSnapshot = initial or DashboardSnapshot.initial()
        self._extended: ExtendedSnapshot | None = None
        self._write_lock = asyncio.Lock()
        self._snapshot_writes: int = 0
        self._extended_writes: int = 0
        self._snapshot_updated_at: datetime | None = None
        self._extended_updated_at: datetime | None = None

    # ─── Reads ───────────────────────────────────────────────────────

    @property
    def snapshot(self) -> DashboardSnapshot:
        return self._snapshot

    @property
    def extended(self) -> ExtendedSnapshot | None:
        return self._extended

    def view(self) -> ObservatoryView:
        """Point-in-time combined view of both kinds."""
        return ObservatoryView(dashboard=self._snapshot, extended=self._extended)

    # ─── Writes ──────────────────────────────────────────────────────

    async def update_snapshot(self, update: SnapshotUpdate) -> DashboardSnapshot:
        """
        Derive the next snapshot from the current one and swap it in.

        ``update`` runs under the writer lock and must be synchronous; if it
        raises, the stored value is left untouched.
        """
        async with self._write_lock:
            new = update(self._snapshot)
            if not isinstance(new, DashboardSnapshot):
                raise TypeError(f"snapshot update returned {type(new).__name__}")
            self._snapshot = new
            self._snapshot_writes += 1
            self._snapshot_updated_at = utc_now()
            return new

    async def replace_snapshot(self, snapshot: DashboardSnapshot) -> None:
        await self.update_snapshot(lambda _current: snapshot)

    async def replace_extended(self, extended: ExtendedSnapshot | None) -> None:
        async with self._write_lock:
            self._extended = extended
            self._extended_writes += 1
            self._extended_updated_at = utc_now()

    # ─── Introspection ───────────────────────────────────────────────

    @property
    def snapshot_writes(self) -> int:
        return self._snapshot_writes

    @property
    def extended_writes(self) -> int:
        return self._extended_writes

    def stats(self) -> dict[str, Any]:
        return {
            "snapshot_writes": self._snapshot_writes,
            "extended_writes": self._extended_writes,
            "snapshot_updated_at": (
                self._snapshot_updated_at.isoformat() if self._snapshot_updated_at else None
            ),
            "extended_updated_at": (
                self._extended_updated_at.isoformat() if self._extended_updated_at else None
            ),
            "has_extended": self._extended is not None,
        }
