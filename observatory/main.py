"""
Observatory — Application Entry Point

FastAPI application: loads configuration, connects the read-only store
clients, starts the collectors, and serves the query and stream endpoints.

`uvicorn observatory.main:app` or `observatory` (console script)
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

# Load .env file before any configuration is loaded
load_dotenv()

from observatory.api.routers.observatory import router as observatory_router
from observatory.clients.qdrant import VectorStoreClient
from observatory.clients.redis import RedisClient
from observatory.clients.upstream import UpstreamMetricsClient
from observatory.config import ObservatoryConfig, load_config
from observatory.core.store import SnapshotStore
from observatory.primitives.common import utc_now
from observatory.primitives.snapshot import DashboardSnapshot
from observatory.systems.broadcast.session import SessionManager
from observatory.systems.collectors import (
    ConnectionDriveWalk,
    PollingCollector,
    StreamCollector,
    UpstreamMetricsCollector,
    VectorCountCollector,
)
from observatory.systems.manifold.projection import ProjectionEngine
from observatory.systems.manifold.service import VectorQueryService
from observatory.telemetry.logging import setup_logging

logger = structlog.get_logger("observatory.main")

_CONFIG_PATH = os.environ.get("OBSERVATORY_CONFIG_PATH", "config/default.yaml")

# Configuration errors (unparseable addresses, bad PORT) abort import, so the
# process never starts half-configured.
config: ObservatoryConfig = load_config(_CONFIG_PATH)


def build_collectors(
    config: ObservatoryConfig,
    store: SnapshotStore,
    redis: RedisClient,
    vectors: VectorStoreClient,
    upstream: UpstreamMetricsClient,
) -> list[PollingCollector]:
    cc = config.collectors
    fast_s = cc.fast_interval_ms / 1000.0
    timeout_s = cc.call_timeout_ms / 1000.0
    backoff_s = cc.error_backoff_ms / 1000.0
    return [
        StreamCollector(
            store,
            redis,
            vectors,
            ConnectionDriveWalk(config.connection_drive),
            started_at=utc_now(),
            recent_count=config.redis.recent_thoughts,
            preview_chars=cc.thought_preview_chars,
            interval_s=fast_s,
            call_timeout_s=timeout_s,
            error_backoff_s=backoff_s,
        ),
        VectorCountCollector(
            store,
            vectors,
            interval_s=fast_s,
            call_timeout_s=timeout_s,
            error_backoff_s=backoff_s,
        ),
        UpstreamMetricsCollector(
            store,
            upstream,
            interval_s=cc.upstream_interval_ms / 1000.0,
            call_timeout_s=timeout_s,
            error_backoff_s=backoff_s,
        ),
    ]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown sequence."""
    # ── 1. Logging ────────────────────────────────────────────
    setup_logging(config.logging, service_name=config.service_name)
    logger.info(
        "observatory_starting",
        config_path=_CONFIG_PATH,
        port=config.server.port,
        redis=config.redis.url,
        qdrant=config.qdrant.url,
        upstream=config.upstream.base_url,
    )
    app.state.config = config

    # ── 2. Read-only store clients ────────────────────────────
    timeout_s = config.collectors.call_timeout_ms / 1000.0
    redis_client = RedisClient(config.redis)
    await redis_client.connect()
    vector_client = VectorStoreClient(config.qdrant, timeout_s=max(timeout_s, 1.0))
    await vector_client.connect()
    upstream_client = UpstreamMetricsClient(config.upstream, timeout_s=timeout_s)
    app.state.backends = {"redis": redis_client, "qdrant": vector_client}

    # ── 3. Shared state ───────────────────────────────────────
    store = SnapshotStore(DashboardSnapshot.initial(config.instance_name))
    app.state.store = store

    engine = ProjectionEngine.random(config.manifold.dimension, config.manifold.seed)
    app.state.vector_query = VectorQueryService(
        vector_client,
        engine,
        default_limit=config.manifold.default_limit,
        max_limit=config.manifold.max_limit,
        call_timeout_s=max(timeout_s, 1.0),
    )
    app.state.sessions = SessionManager(store, config.broadcast.interval_ms / 1000.0)

    # ── 4. Collectors ─────────────────────────────────────────
    collectors = build_collectors(config, store, redis_client, vector_client, upstream_client)
    for collector in collectors:
        collector.start()
    app.state.collectors = collectors

    logger.info("observatory_ready", collectors=[c.name for c in collectors])
    try:
        yield
    finally:
        logger.info("observatory_shutting_down")
        await app.state.sessions.close_all()
        for collector in collectors:
            await collector.stop()
        await upstream_client.close()
        await vector_client.close()
        await redis_client.close()
        logger.info("observatory_stopped")


# ─── FastAPI Application ─────────────────────────────────────────

app = FastAPI(
    title="Observatory",
    description="Read-only live window into an observed cognitive host",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.server.cors_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(observatory_router)

# Prebuilt dashboard bundle, mounted last so API routes take precedence
if Path(config.server.frontend_dir).is_dir():
    app.mount(
        "/",
        StaticFiles(directory=config.server.frontend_dir, html=True),
        name="frontend",
    )


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "observatory.main:app",
        host=config.server.host,
        port=config.server.port,
        log_config=None,
    )
