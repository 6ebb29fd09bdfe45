"""
Observatory — Store Collectors

Independent polling units that each produce one part of the aggregated state:
the thought stream and identity, the memory collection sizes, and the
upstream extended metrics.
"""

from observatory.systems.collectors.base import CollectorTimeout, PollingCollector
from observatory.systems.collectors.drive import ConnectionDriveWalk, mean_reverting_step
from observatory.systems.collectors.stream import StreamCollector
from observatory.systems.collectors.upstream import UpstreamMetricsCollector
from observatory.systems.collectors.vectors import VectorCountCollector

__all__ = [
    "CollectorTimeout",
    "ConnectionDriveWalk",
    "PollingCollector",
    "StreamCollector",
    "UpstreamMetricsCollector",
    "VectorCountCollector",
    "mean_reverting_step",
]
