"""
Observatory — External Service Clients

Read-only connection management for Redis, Qdrant and the upstream metrics API.
"""

from observatory.clients.qdrant import VectorStoreClient
from observatory.clients.redis import RedisClient
from observatory.clients.upstream import UpstreamMetricsClient

__all__ = [
    "RedisClient",
    "UpstreamMetricsClient",
    "VectorStoreClient",
]
