"""
Observatory — Redis Client

Async, read-only access to the observed host's thought streams.
"""

from __future__ import annotations

from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from observatory.config import RedisConfig

logger = structlog.get_logger("observatory.clients.redis")

StreamEntry = tuple[str, dict[str, Any]]


class RedisClient:
    """
    Async Redis client with key prefixing for multi-instance support.

    Only read commands are issued; the gateway never writes to the observed
    process's state.
    """

    def __init__(self, config: RedisConfig) -> None:
        self._config = config
        self._client: Redis | None = None

    async def connect(self) -> None:
        """
        Create the connection pool and probe it.

        An unreachable server is not fatal: the collectors retry every tick.
        """
        self._client = self._create_client()
        try:
            await self._client.ping()
            logger.info("redis_connected", prefix=self._config.prefix)
        except (RedisError, OSError) as e:
            logger.warning("redis_unreachable_at_startup", error=str(e))

    def _create_client(self) -> Redis:
        # Stream fields written by other processes may carry invalid UTF-8;
        # those bytes decode to U+FFFD instead of failing the whole read.
        return Redis.from_url(
            self._config.full_url,
            decode_responses=True,
            encoding_errors="replace",
        )

    async def close(self) -> None:
        """Close the connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("redis_disconnected")

    @property
    def client(self) -> Redis:
        if self._client is None:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self._client

    @property
    def stream_key(self) -> str:
        return self._key(self._config.stream)

    def _key(self, key: str) -> str:
        """Prefix a key with the instance prefix."""
        return f"{self._config.prefix}:{key}"

    async def health_check(self) -> dict[str, Any]:
        """Check connectivity."""
        try:
            await self.client.ping()
            return {"status": "connected"}
        except Exception as e:
            logger.error("redis_health_check_failed", error=str(e))
            return {"status": "disconnected", "error": str(e)}

    # ─── Stream Reads ─────────────────────────────────────────────

    async def stream_length(self) -> int:
        """XLEN of the awake stream."""
        return int(await self.client.xlen(self.stream_key))

    async def recent_entries(self, count: int) -> list[StreamEntry]:
        """The newest ``count`` entries of the awake stream, newest first."""
        raw = await self.client.xrevrange(self.stream_key, max="+", min="-", count=count)
        return [(str(entry_id), dict(fields or {})) for entry_id, fields in raw]
