"""
Observatory — Broadcast Sessions

One independent session per connected observer. A session races two tasks:

  ticker   — every interval, read the store's current view, encode it, send.
             A send failure ends the session.
  listener — wait for a close frame or a dropped connection, which ends the
             session. Client messages are otherwise ignored.

Whichever finishes first cancels the other. There is no per-observer queue:
each tick carries only the latest state, so a slow observer simply misses
ticks and never holds back the collectors or any other observer.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import itertools
from collections.abc import Mapping
from typing import Any, Protocol

import orjson
import structlog

from observatory.core.store import SnapshotStore
from observatory.primitives.extended import ObservatoryView

logger = structlog.get_logger("observatory.systems.broadcast")

_DISCONNECT = "websocket.disconnect"


class ObserverTransport(Protocol):
    """The slice of a WebSocket a session needs. Starlette's WebSocket fits."""

    async def send_text(self, data: str) -> None: ...

    async def receive(self) -> Mapping[str, Any]: ...


class EndReason(enum.StrEnum):
    CLIENT_CLOSED = "client_closed"
    RECEIVE_FAILED = "receive_failed"
    SEND_FAILED = "send_failed"
    ENCODE_FAILED = "encode_failed"
    SHUTDOWN = "shutdown"


def encode_view(view: ObservatoryView) -> str:
    """The combined ``{dashboard, extended}`` document as JSON text."""
    return orjson.dumps(view.model_dump(mode="json")).decode()


class ObserverSession:
    def __init__(
        self,
        session_id: int,
        transport: ObserverTransport,
        store: SnapshotStore,
        interval_s: float,
    ) -> None:
        self.session_id = session_id
        self._transport = transport
        self._store = store
        self._interval_s = interval_s
        self.messages_sent: int = 0
        self._logger = logger.bind(session_id=session_id)

    async def run(self) -> EndReason:
        """Run until the observer leaves or a send fails."""
        ticker = asyncio.create_task(self._tick_loop(), name=f"observer_{self.session_id}_tick")
        listener = asyncio.create_task(self._listen(), name=f"observer_{self.session_id}_listen")
        tasks = {ticker, listener}
        try:
            done, _pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            # Both loops return a reason rather than raising
            return next(iter(done)).result()
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            for task in tasks:
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    async def _tick_loop(self) -> EndReason:
        while True:
            try:
                message = encode_view(self._store.view())
            except Exception as exc:
                self._logger.error("observer_encode_failed", error=str(exc))
                return EndReason.ENCODE_FAILED
            try:
                await self._transport.send_text(message)
            except Exception as exc:
                self._logger.debug("observer_send_failed", error=str(exc) or type(exc).__name__)
                return EndReason.SEND_FAILED
            self.messages_sent += 1
            await asyncio.sleep(self._interval_s)

    async def _listen(self) -> EndReason:
        while True:
            try:
                message = await self._transport.receive()
            except Exception as exc:
                self._logger.debug("observer_receive_failed", error=str(exc) or type(exc).__name__)
                return EndReason.RECEIVE_FAILED
            if message.get("type") == _DISCONNECT:
                return EndReason.CLIENT_CLOSED


class SessionManager:
    """
    Supervised set of observer sessions. Each owns only its own connection
    plus a shared read-only handle to the snapshot store.
    """

    def __init__(self, store: SnapshotStore, interval_s: float) -> None:
        self._store = store
        self._interval_s = interval_s
        self._ids = itertools.count(1)
        self._sessions: dict[int, asyncio.Task[EndReason]] = {}
        self._total_served: int = 0

    async def serve(self, transport: ObserverTransport, remote: str = "") -> EndReason:
        """Stream to ``transport`` until the session ends. Never raises on transport errors."""
        session = ObserverSession(next(self._ids), transport, self._store, self._interval_s)
        task = asyncio.create_task(session.run(), name=f"observer_{session.session_id}")
        self._sessions[session.session_id] = task
        self._total_served += 1
        logger.info(
            "observer_connected",
            session_id=session.session_id,
            remote=remote,
            active=len(self._sessions),
        )
        reason = EndReason.SHUTDOWN
        try:
            reason = await task
        except asyncio.CancelledError:
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            # Propagate when the caller itself is being cancelled; a session
            # cancelled by close_all() just ends
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        finally:
            self._sessions.pop(session.session_id, None)
            logger.info(
                "observer_disconnected",
                session_id=session.session_id,
                reason=str(reason),
                messages_sent=session.messages_sent,
                active=len(self._sessions),
            )
        return reason

    async def close_all(self) -> None:
        """Cancel every live session. Used at shutdown only."""
        tasks = list(self._sessions.values())
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("observer_sessions_closed", count=len(tasks))

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    def stats(self) -> dict[str, Any]:
        return {
            "active_sessions": len(self._sessions),
            "total_served": self._total_served,
            "interval_ms": round(self._interval_s * 1000),
        }
