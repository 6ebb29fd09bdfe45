"""
Observatory — read-only live telemetry gateway for an observed cognitive host.
"""

__version__ = "0.1.0"
