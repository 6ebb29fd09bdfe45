"""
Observatory — Connection Drive Walk

The observed host does not yet persist its connection drive, so the gateway
shows a bounded, mean-reverting random walk around a fixed center instead.
"""

from __future__ import annotations

import random

from observatory.config import ConnectionDriveConfig
from observatory.primitives.common import clamp


def mean_reverting_step(
    value: float,
    delta: float,
    *,
    center: float,
    reversion: float,
    max_step: float,
    lo: float,
    hi: float,
) -> float:
    """
    One walk step: pull toward ``center``, add the bounded ``delta``, clamp.

    Pure; the result is always within [lo, hi] for any ``delta``.
    """
    step = clamp(delta, -max_step, max_step)
    return clamp(value + reversion * (center - value) + step, lo, hi)


class ConnectionDriveWalk:
    """Stateful walk; one ``step()`` per stream-collector tick."""

    def __init__(self, config: ConnectionDriveConfig, rng: random.Random | None = None) -> None:
        self._config = config
        self._rng = rng or random.Random(config.seed)
        self._value = config.center

    @property
    def value(self) -> float:
        return self._value

    def step(self, delta: float | None = None) -> float:
        cfg = self._config
        if delta is None:
            delta = self._rng.uniform(-cfg.max_step, cfg.max_step)
        self._value = mean_reverting_step(
            self._value,
            delta,
            center=cfg.center,
            reversion=cfg.reversion,
            max_step=cfg.max_step,
            lo=cfg.minimum,
            hi=cfg.maximum,
        )
        return self._value
