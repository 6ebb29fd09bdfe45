"""
Observatory — Read-Only Query & Stream Router

Endpoints:
  GET /health                — static liveness probe
  GET /metrics               — current dashboard snapshot
  GET /extended              — current extended snapshot (null when absent)
  GET /observatory           — combined {dashboard, extended}
  GET /vectors?limit=N       — projected memory vectors + law crystals
  GET /api/v1/admin/status   — collector, session, store and backend status
  WS  /ws                    — combined document every broadcast interval

Every endpoint is read-only. Store outages never surface here: observers see
the last successfully aggregated values instead.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any

import structlog
from fastapi import APIRouter, Query, Request, WebSocket

from observatory.core.store import SnapshotStore
from observatory.systems.broadcast.session import EndReason, SessionManager
from observatory.systems.manifold.service import VectorQueryService

logger = structlog.get_logger("observatory.api")

router = APIRouter()

_DEFAULT_HEALTH_TIMEOUT_S = 1.0


@router.get("/health")
async def health() -> dict[str, Any]:
    return {"status": "ok", "service": "observatory"}


@router.get("/metrics")
async def get_metrics(request: Request) -> dict[str, Any]:
    """Return the latest dashboard snapshot."""
    store: SnapshotStore = request.app.state.store
    return store.snapshot.model_dump(mode="json")


@router.get("/extended")
async def get_extended(request: Request) -> dict[str, Any] | None:
    """Return the latest extended snapshot, or null before the first upstream poll."""
    store: SnapshotStore = request.app.state.store
    extended = store.extended
    return extended.model_dump(mode="json") if extended is not None else None


@router.get("/observatory")
async def get_observatory(request: Request) -> dict[str, Any]:
    store: SnapshotStore = request.app.state.store
    return store.view().model_dump(mode="json")


@router.get("/vectors")
async def get_vectors(
    request: Request,
    limit: int | None = Query(default=None, ge=1),
) -> dict[str, Any]:
    """Project the current memory vectors to 3-D. Never cached."""
    service: VectorQueryService = request.app.state.vector_query
    response = await service.query(limit)
    return response.model_dump(mode="json")


@router.get("/api/v1/admin/status")
async def get_status(request: Request) -> dict[str, Any]:
    store: SnapshotStore = request.app.state.store
    sessions: SessionManager = request.app.state.sessions
    collectors = getattr(request.app.state, "collectors", [])
    backends = getattr(request.app.state, "backends", {})
    config = getattr(request.app.state, "config", None)
    timeout_s = _DEFAULT_HEALTH_TIMEOUT_S
    if config is not None:
        timeout_s = config.collectors.call_timeout_ms / 1000.0
    # Health checks run side by side, each bounded by the collector call timeout
    checks = await asyncio.gather(
        *(_backend_health(name, client, timeout_s) for name, client in backends.items())
    )
    return {
        "store": store.stats(),
        "sessions": sessions.stats(),
        "collectors": {c.name: c.stats for c in collectors},
        "backends": dict(zip(backends, checks)),
    }


async def _backend_health(name: str, client: Any, timeout_s: float) -> dict[str, Any]:
    try:
        return await asyncio.wait_for(client.health_check(), timeout=timeout_s)
    except asyncio.TimeoutError:
        logger.warning("backend_health_check_timeout", backend=name, timeout_s=timeout_s)
        return {"status": "timeout", "error": f"health check exceeded {timeout_s:.3f}s"}


@router.websocket("/ws")
async def observatory_stream(ws: WebSocket) -> None:
    """
    Stream the combined document until the client disconnects.
    Client messages are read only to detect the close.
    """
    await ws.accept()
    sessions: SessionManager = ws.app.state.sessions
    remote = f"{ws.client.host}:{ws.client.port}" if ws.client else ""
    reason = await sessions.serve(ws, remote=remote)
    if reason in (EndReason.SHUTDOWN, EndReason.ENCODE_FAILED):
        with contextlib.suppress(Exception):
            await ws.close()
