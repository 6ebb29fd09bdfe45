"""Tests for the connection drive walk."""

from __future__ import annotations

import math
import random

import pytest

from observatory.config import ConnectionDriveConfig
from observatory.systems.collectors.drive import ConnectionDriveWalk, mean_reverting_step

_PARAMS = dict(center=0.85, reversion=0.05, max_step=0.02, lo=0.5, hi=1.0)


class TestMeanRevertingStep:
    @pytest.mark.parametrize("delta", [-1e9, -1.0, -0.02, 0.0, 0.02, 1.0, 1e9, math.inf, -math.inf])
    @pytest.mark.parametrize("value", [0.5, 0.6, 0.85, 0.99, 1.0])
    def test_result_in_range(self, value, delta):
        assert 0.5 <= mean_reverting_step(value, delta, **_PARAMS) <= 1.0

    def test_zero_delta_moves_toward_center(self):
        below = mean_reverting_step(0.6, 0.0, **_PARAMS)
        above = mean_reverting_step(0.95, 0.0, **_PARAMS)
        assert 0.6 < below < 0.85
        assert 0.85 < above < 0.95
        assert mean_reverting_step(0.85, 0.0, **_PARAMS) == pytest.approx(0.85)

    def test_delta_bounded_by_max_step(self):
        value = 0.7
        pulled = value + 0.05 * (0.85 - value)
        assert mean_reverting_step(value, 5.0, **_PARAMS) == pytest.approx(pulled + 0.02)
        assert mean_reverting_step(value, -5.0, **_PARAMS) == pytest.approx(pulled - 0.02)


class TestConnectionDriveWalk:
    def test_starts_at_center(self):
        walk = ConnectionDriveWalk(ConnectionDriveConfig())
        assert walk.value == 0.85

    def test_random_walk_stays_in_range(self):
        walk = ConnectionDriveWalk(ConnectionDriveConfig(), rng=random.Random(11))
        for _ in range(10_000):
            assert 0.5 <= walk.step() <= 1.0

    def test_arbitrary_deltas_stay_in_range(self):
        walk = ConnectionDriveWalk(ConnectionDriveConfig())
        rng = random.Random(5)
        for _ in range(2_000):
            assert 0.5 <= walk.step(rng.uniform(-10.0, 10.0)) <= 1.0

    def test_seeded_walk_is_reproducible(self):
        config = ConnectionDriveConfig(seed=9)
        a = ConnectionDriveWalk(config)
        b = ConnectionDriveWalk(config)
        assert [a.step() for _ in range(50)] == [b.step() for _ in range(50)]
