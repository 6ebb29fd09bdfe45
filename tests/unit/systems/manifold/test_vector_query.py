"""Tests for VectorQueryService — the /vectors manifold view."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any

import pytest

from observatory.systems.manifold.projection import ProjectionEngine
from observatory.systems.manifold.service import VectorQueryService

DIM = 16


def _record(
    point_id: Any = "p-1",
    vector: Any = None,
    payload: dict[str, Any] | None = None,
) -> SimpleNamespace:
    return SimpleNamespace(
        id=point_id,
        vector=[0.1] * DIM if vector is None else vector,
        payload=payload if payload is not None else {},
    )


class FakeVectors:
    def __init__(self, records: list[Any] | None = None, error: Exception | None = None, delay: float = 0.0):
        self.records = records or []
        self.error = error
        self.delay = delay
        self.limits: list[int] = []

    async def scroll_memories(self, limit: int) -> list[Any]:
        self.limits.append(limit)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.records[:limit]


def _service(vectors: FakeVectors, **kwargs: Any) -> VectorQueryService:
    return VectorQueryService(vectors, ProjectionEngine.random(DIM, 42), **kwargs)


class TestEmptyAndFailure:
    @pytest.mark.asyncio
    async def test_empty_store(self):
        response = await _service(FakeVectors()).query()
        body = response.model_dump(mode="json")
        assert body["points"] == []
        assert len(body["crystals"]) == 4
        assert body["projection_type"] == "random"

    @pytest.mark.asyncio
    async def test_store_failure_yields_empty_points(self):
        response = await _service(FakeVectors(error=ConnectionError("down"))).query()
        assert response.points == ()
        assert len(response.crystals) == 4

    @pytest.mark.asyncio
    async def test_slow_store_times_out_to_empty(self):
        vectors = FakeVectors(records=[_record()], delay=1.0)
        response = await _service(vectors, call_timeout_s=0.05).query()
        assert response.points == ()


class TestPoints:
    @pytest.mark.asyncio
    async def test_projects_each_valid_record(self):
        vectors = FakeVectors(records=[_record("a"), _record("b", vector=[0.2] * DIM)])
        engine = ProjectionEngine.random(DIM, 42)
        service = VectorQueryService(vectors, engine)

        response = await service.query()

        assert [p.id for p in response.points] == ["a", "b"]
        first = response.points[0]
        assert (first.x, first.y, first.z) == engine.project([0.1] * DIM)

    @pytest.mark.asyncio
    async def test_malformed_records_skipped(self):
        vectors = FakeVectors(
            records=[
                _record("ok"),
                SimpleNamespace(id="no-vector", vector=None, payload={}),
                _record("short", vector=[0.1] * (DIM - 1)),
                _record("named-pair", vector={"a": [0.1] * DIM, "b": [0.1] * DIM}),
            ]
        )
        response = await _service(vectors).query()
        assert [p.id for p in response.points] == ["ok"]

    @pytest.mark.asyncio
    async def test_non_numeric_vector_lands_at_origin(self):
        vectors = FakeVectors(records=[_record("strings", vector=["x"] * DIM)])
        response = await _service(vectors).query()
        point = response.points[0]
        assert (point.x, point.y, point.z) == (0.0, 0.0, 0.0)

    @pytest.mark.asyncio
    async def test_single_named_vector_accepted(self):
        vectors = FakeVectors(records=[_record("named", vector={"text": [0.3] * DIM})])
        response = await _service(vectors).query()
        assert [p.id for p in response.points] == ["named"]

    @pytest.mark.asyncio
    async def test_salience_defaults_and_clamps(self):
        vectors = FakeVectors(
            records=[
                _record("default"),
                _record("high", payload={"semantic_salience": 3.0}),
                _record("set", payload={"semantic_salience": 0.8}),
                _record("garbage", payload={"semantic_salience": "very"}),
            ]
        )
        response = await _service(vectors).query()
        by_id = {p.id: p.salience for p in response.points}
        assert by_id == {"default": 0.5, "high": 1.0, "set": 0.8, "garbage": 0.5}

    @pytest.mark.asyncio
    async def test_age_from_encoded_at(self):
        encoded = (datetime.now(UTC) - timedelta(seconds=5)).isoformat()
        vectors = FakeVectors(records=[_record(payload={"encoded_at": encoded})])
        response = await _service(vectors).query()
        age = response.points[0].age_ms
        assert 5000 <= age < 60_000

    @pytest.mark.asyncio
    async def test_unparseable_or_future_timestamp_is_age_zero(self):
        future = (datetime.now(UTC) + timedelta(hours=1)).isoformat()
        vectors = FakeVectors(
            records=[
                _record("bad", payload={"encoded_at": "yesterday-ish"}),
                _record("future", payload={"encoded_at": future}),
                _record("missing"),
            ]
        )
        response = await _service(vectors).query()
        assert [p.age_ms for p in response.points] == [0, 0, 0]

    @pytest.mark.asyncio
    async def test_ids_stringified(self):
        vectors = FakeVectors(records=[_record(12345), _record(None)])
        response = await _service(vectors).query()
        assert [p.id for p in response.points] == ["12345", "unknown"]


class TestLimit:
    def test_resolve_limit(self):
        service = _service(FakeVectors(), default_limit=500, max_limit=2000)
        assert service.resolve_limit(None) == 500
        assert service.resolve_limit(10) == 10
        assert service.resolve_limit(5000) == 2000
        assert service.resolve_limit(0) == 1

    @pytest.mark.asyncio
    async def test_limit_passed_to_store(self):
        vectors = FakeVectors(records=[_record(str(i)) for i in range(10)])
        response = await _service(vectors, max_limit=100).query(3)
        assert vectors.limits == [3]
        assert len(response.points) == 3
