"""
Observatory — Telemetry
"""

from observatory.telemetry.logging import setup_logging

__all__ = ["setup_logging"]
