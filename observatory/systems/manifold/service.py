"""
Observatory — Vector Query Service

On-demand manifold view: reads the current memory vectors fresh from Qdrant
(never cached), projects each through the projection engine, and returns them
with the law crystals. Malformed points are skipped; a store failure yields an
empty point list rather than an error.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import ValidationError

from observatory.clients.qdrant import VectorStoreClient
from observatory.primitives.common import now_ms
from observatory.primitives.payload import get_float, get_str
from observatory.systems.manifold.anchors import law_crystals
from observatory.systems.manifold.projection import ProjectionEngine
from observatory.systems.manifold.types import ManifoldPoint, ManifoldResponse

logger = structlog.get_logger("observatory.systems.manifold.service")

DEFAULT_SALIENCE = 0.5


def _parse_epoch_ms(value: str) -> int | None:
    """RFC 3339 / ISO-8601 timestamp as epoch ms; None when unparseable."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def _dense_vector(raw: Any) -> list[float] | None:
    """The dense vector of a record; a lone named vector is accepted too."""
    if isinstance(raw, dict) and len(raw) == 1:
        raw = next(iter(raw.values()))
    if isinstance(raw, list) and raw:
        return raw
    return None


class VectorQueryService:
    def __init__(
        self,
        vectors: VectorStoreClient,
        engine: ProjectionEngine,
        *,
        default_limit: int = 500,
        max_limit: int = 2000,
        call_timeout_s: float = 5.0,
    ) -> None:
        self._vectors = vectors
        self._engine = engine
        self._default_limit = default_limit
        self._max_limit = max_limit
        self._call_timeout_s = call_timeout_s
        self._logger = logger.bind(component="vector_query")

    def resolve_limit(self, limit: int | None) -> int:
        if limit is None:
            return min(self._default_limit, self._max_limit)
        return max(1, min(limit, self._max_limit))

    async def query(self, limit: int | None = None) -> ManifoldResponse:
        n = self.resolve_limit(limit)
        try:
            records = await asyncio.wait_for(
                self._vectors.scroll_memories(n), timeout=self._call_timeout_s
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._logger.warning("manifold_scroll_failed", error=str(exc) or type(exc).__name__)
            records = []

        now = now_ms()
        points: list[ManifoldPoint] = []
        skipped = 0
        for record in records:
            point = self._to_point(record, now)
            if point is None:
                skipped += 1
            else:
                points.append(point)

        if skipped:
            self._logger.debug("manifold_points_skipped", skipped=skipped, kept=len(points))

        return ManifoldResponse(
            points=tuple(points),
            crystals=law_crystals(),
            projection_type=self._engine.projection_type,
        )

    def _to_point(self, record: Any, now: int) -> ManifoldPoint | None:
        vector = _dense_vector(getattr(record, "vector", None))
        if vector is None or len(vector) != self._engine.dimension:
            return None

        payload = getattr(record, "payload", None) or {}
        created = _parse_epoch_ms(get_str(payload, "encoded_at", ""))
        if created is None:
            created = now
        point_id = getattr(record, "id", None)

        try:
            x, y, z = self._engine.project(vector)
            return ManifoldPoint(
                x=x,
                y=y,
                z=z,
                salience=get_float(payload, "semantic_salience", DEFAULT_SALIENCE, 0.0, 1.0),
                age_ms=max(0, now - created),
                id=str(point_id) if point_id is not None else "unknown",
            )
        except (ValidationError, TypeError, ValueError):
            return None
