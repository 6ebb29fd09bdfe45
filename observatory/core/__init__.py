"""
Observatory — Core

Shared state owned by the application and injected into every component.
"""

from observatory.core.store import SnapshotStore

__all__ = ["SnapshotStore"]
