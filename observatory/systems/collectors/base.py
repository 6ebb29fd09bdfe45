"""
Observatory — Polling Collector Loop

Every collector is an independent asyncio task with its own interval. The loop
catches every exception from a tick, logs it, backs off, and continues; it
only stops when the application shuts down.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import Any, TypeVar

import structlog

from observatory.core.store import SnapshotStore

logger = structlog.get_logger("observatory.systems.collectors")

T = TypeVar("T")


class CollectorTimeout(Exception):
    """An external call exceeded the per-call budget. No update this tick."""


class PollingCollector(ABC):
    """
    Base class for the stream, vector-count and upstream collectors.

    Subclasses implement ``collect()``, which queries the source and writes a
    fully-formed value into the store. Returning False (or raising) means
    nothing was written this tick and the store keeps its last-known value.
    """

    name: str = "collector"

    def __init__(
        self,
        store: SnapshotStore,
        *,
        interval_s: float,
        call_timeout_s: float,
        error_backoff_s: float = 0.5,
    ) -> None:
        self._store = store
        self._interval_s = interval_s
        self._call_timeout_s = call_timeout_s
        # A whole tick, every external call included, fits inside one interval
        self._tick_budget_s = min(call_timeout_s, interval_s)
        self._tick_deadline: float | None = None
        self._error_backoff_s = error_backoff_s
        self._logger = logger.bind(collector=self.name)

        self._polls: int = 0
        self._updates: int = 0
        self._failures: int = 0
        self._consecutive_failures: int = 0
        self._last_error: str | None = None

        self._running: bool = False
        self._task: asyncio.Task[None] | None = None

    # ─── Control ─────────────────────────────────────────────────────

    def start(self) -> asyncio.Task[None]:
        """Start the loop. Returns the background task handle."""
        if self._running:
            raise RuntimeError(f"{self.name} collector is already running")
        self._running = True
        self._task = asyncio.create_task(self._run_loop(), name=f"collector_{self.name}")
        self._logger.info("collector_started", interval_ms=round(self._interval_s * 1000))
        return self._task

    async def stop(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        self._logger.info("collector_stopped", polls=self._polls, failures=self._failures)

    # ─── One Tick ────────────────────────────────────────────────────

    @abstractmethod
    async def collect(self) -> bool:
        """Query the source and publish. True when the store was updated."""

    async def run_once(self) -> bool:
        """
        Run a single tick with full error containment.

        Never raises (except cancellation). Returns whether the store changed.
        """
        self._polls += 1
        self._tick_deadline = asyncio.get_running_loop().time() + self._tick_budget_s
        try:
            updated = await self.collect()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._record_failure(exc)
            return False
        finally:
            self._tick_deadline = None

        if updated:
            self._updates += 1
            if self._consecutive_failures:
                self._logger.info(
                    "collector_recovered",
                    after_failures=self._consecutive_failures,
                )
            self._consecutive_failures = 0
        return updated

    async def bounded(self, call: Awaitable[T], what: str) -> T:
        """
        Await an external call under the per-call timeout, shortened to what
        is left of the current tick when called from ``run_once()``.
        """
        timeout = self._call_timeout_s
        if self._tick_deadline is not None:
            remaining = self._tick_deadline - asyncio.get_running_loop().time()
            timeout = max(0.0, min(timeout, remaining))
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise CollectorTimeout(f"{what} timed out after {timeout:.3f}s") from exc

    def _record_failure(self, exc: Exception) -> None:
        self._failures += 1
        self._consecutive_failures += 1
        self._last_error = str(exc) or type(exc).__name__
        # First failure of an outage at warning, then every 100th
        if self._consecutive_failures % 100 == 1:
            self._logger.warning(
                "collector_poll_failed",
                error=self._last_error,
                error_type=type(exc).__name__,
                consecutive=self._consecutive_failures,
            )

    # ─── Loop ────────────────────────────────────────────────────────

    async def _run_loop(self) -> None:
        while self._running:
            t0 = time.monotonic()
            try:
                updated = await self.run_once()
                elapsed = time.monotonic() - t0
                delay = max(0.0, self._interval_s - elapsed)
                if not updated and self._consecutive_failures:
                    delay = max(delay, self._error_backoff_s)
                await asyncio.sleep(delay)
            except asyncio.CancelledError:
                self._logger.debug("collector_loop_cancelled")
                return
            except Exception as exc:
                # run_once contains everything; this guards the bookkeeping itself
                self._logger.error("collector_loop_error", error=str(exc))
                await asyncio.sleep(self._error_backoff_s)

    # ─── Stats ───────────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stats(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "interval_ms": round(self._interval_s * 1000),
            "tick_budget_ms": round(self._tick_budget_s * 1000),
            "polls": self._polls,
            "updates": self._updates,
            "failures": self._failures,
            "consecutive_failures": self._consecutive_failures,
            "last_error": self._last_error,
        }
