"""
Observatory — Qdrant Client

Async, read-only access to the observed host's vector memory: collection
sizes, the persisted identity point, and raw points for the manifold view.
"""

from __future__ import annotations

from typing import Any

import structlog
from qdrant_client import AsyncQdrantClient
from qdrant_client.models import Record

from observatory.config import QdrantConfig

logger = structlog.get_logger("observatory.clients.qdrant")


class VectorStoreClient:
    """Thin wrapper over ``AsyncQdrantClient`` holding collection names."""

    def __init__(self, config: QdrantConfig, timeout_s: float = 5.0) -> None:
        self._config = config
        self._timeout_s = timeout_s
        self._client: AsyncQdrantClient | None = None

    async def connect(self) -> None:
        """Create the client and probe it. An unreachable server is not fatal."""
        self._client = AsyncQdrantClient(
            url=self._config.url,
            api_key=self._config.api_key,
            prefer_grpc=self._config.prefer_grpc,
            timeout=max(1, int(self._timeout_s)),
        )
        try:
            collections = await self._client.get_collections()
            logger.info("qdrant_connected", collections=len(collections.collections))
        except Exception as e:
            logger.warning("qdrant_unreachable_at_startup", error=str(e))

    async def close(self) -> None:
        if self._client:
            await self._client.close()
            self._client = None
            logger.info("qdrant_disconnected")

    @property
    def client(self) -> AsyncQdrantClient:
        if self._client is None:
            raise RuntimeError("Qdrant client not connected. Call connect() first.")
        return self._client

    @property
    def config(self) -> QdrantConfig:
        return self._config

    async def health_check(self) -> dict[str, Any]:
        try:
            await self.client.get_collections()
            return {"status": "connected"}
        except Exception as e:
            logger.error("qdrant_health_check_failed", error=str(e))
            return {"status": "disconnected", "error": str(e)}

    # ─── Reads ────────────────────────────────────────────────────

    async def points_count(self, collection: str) -> int:
        """Number of points stored in ``collection``."""
        info = await self.client.get_collection(collection_name=collection)
        return int(info.points_count or 0)

    async def identity_payload(self) -> dict[str, Any] | None:
        """Payload of the persisted identity point, None when it does not exist."""
        records = await self.client.retrieve(
            collection_name=self._config.identity_collection,
            ids=[self._config.identity_point_id],
            with_payload=True,
            with_vectors=False,
        )
        if not records:
            return None
        return dict(records[0].payload or {})

    async def scroll_memories(self, limit: int) -> list[Record]:
        """Up to ``limit`` conscious memories with payload and vectors."""
        records, _next_offset = await self.client.scroll(
            collection_name=self._config.memories_collection,
            limit=limit,
            with_payload=True,
            with_vectors=True,
        )
        return list(records)
