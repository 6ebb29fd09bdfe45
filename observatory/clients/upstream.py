"""
Observatory — Upstream Metrics Client

Async HTTP client for the observed host's own metrics API. All methods catch
connection/timeout/decoding errors and return None with a structlog warning;
the client never blocks or breaks the collector that calls it.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from observatory.config import UpstreamConfig

logger = structlog.get_logger("observatory.clients.upstream")


class UpstreamMetricsClient:
    """
    Fetches the raw extended-metrics document.

    Usage::

        client = UpstreamMetricsClient(config.upstream, timeout_s=1.0)
        payload = await client.fetch_extended()
        await client.close()
    """

    def __init__(
        self,
        config: UpstreamConfig,
        *,
        timeout_s: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout_s),
            transport=transport,
        )
        self._log = logger.bind(upstream_url=self._base_url)

    async def fetch_extended(self) -> dict[str, Any] | None:
        """GET the extended metrics document. None on any failure."""
        try:
            resp = await self._client.get(self._config.extended_path)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            self._log.warning("upstream_bad_status", status=exc.response.status_code)
            return None
        except (httpx.TimeoutException, httpx.RequestError) as exc:
            self._log.warning("upstream_unreachable", error=str(exc))
            return None
        except ValueError as exc:
            self._log.warning("upstream_malformed_json", error=str(exc))
            return None

        if not isinstance(data, dict):
            self._log.warning("upstream_unexpected_shape", type=type(data).__name__)
            return None
        return data

    async def close(self) -> None:
        await self._client.aclose()
