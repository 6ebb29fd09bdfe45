"""
Observatory — Broadcast

Per-observer streaming sessions, decoupled from the collection cadence.
"""

from observatory.systems.broadcast.session import (
    EndReason,
    ObserverSession,
    ObserverTransport,
    SessionManager,
    encode_view,
)

__all__ = [
    "EndReason",
    "ObserverSession",
    "ObserverTransport",
    "SessionManager",
    "encode_view",
]
