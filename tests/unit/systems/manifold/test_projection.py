"""Tests for the manifold projection engine and law crystals."""

from __future__ import annotations

import numpy as np
import pytest

from observatory.systems.manifold.anchors import LAW_CRYSTALS, law_crystals
from observatory.systems.manifold.projection import (
    DEFAULT_DIMENSION,
    ZERO_POINT,
    ProjectionEngine,
    ProjectionMatrix,
    lcg_gaussian_matrix,
    normalize_columns,
)
from observatory.systems.manifold.types import ProjectionType


class TestMatrixGeneration:
    def test_same_seed_same_matrix(self):
        a = lcg_gaussian_matrix(42, DEFAULT_DIMENSION)
        b = lcg_gaussian_matrix(42, DEFAULT_DIMENSION)
        assert np.array_equal(a, b)

    def test_different_seed_different_matrix(self):
        a = lcg_gaussian_matrix(42, 64)
        b = lcg_gaussian_matrix(43, 64)
        assert not np.array_equal(a, b)

    def test_shape(self):
        assert lcg_gaussian_matrix(42, DEFAULT_DIMENSION).shape == (DEFAULT_DIMENSION, 3)

    def test_columns_have_unit_norm(self):
        m = lcg_gaussian_matrix(42, DEFAULT_DIMENSION)
        assert np.allclose(np.linalg.norm(m, axis=0), 1.0)

    def test_entries_are_finite(self):
        m = lcg_gaussian_matrix(0, 128)
        assert np.all(np.isfinite(m))

    def test_normalize_leaves_zero_column(self):
        m = np.array([[3.0, 0.0, 1.0], [4.0, 0.0, 0.0]])
        out = normalize_columns(m)
        assert np.allclose(out[:, 0], [0.6, 0.8])
        assert np.array_equal(out[:, 1], [0.0, 0.0])
        assert np.allclose(out[:, 2], [1.0, 0.0])

    def test_matrix_is_read_only(self):
        matrix = ProjectionMatrix.random(16, 42)
        with pytest.raises(ValueError):
            matrix.matrix[0, 0] = 1.0

    def test_rejects_wrong_output_width(self):
        with pytest.raises(ValueError):
            ProjectionMatrix(np.zeros((8, 2)))


class TestProject:
    def test_deterministic_across_engines(self):
        vec = [float(i % 7) - 3.0 for i in range(DEFAULT_DIMENSION)]
        first = ProjectionEngine.random().project(vec)
        second = ProjectionEngine.random().project(vec)
        assert first == second

    def test_returns_three_floats(self):
        engine = ProjectionEngine.random(32, 7)
        point = engine.project([1.0] * 32)
        assert len(point) == 3
        assert all(isinstance(c, float) for c in point)

    def test_basis_vector_selects_matrix_row(self):
        engine = ProjectionEngine.random(32, 7)
        basis = [0.0] * 32
        basis[5] = 1.0
        assert np.allclose(engine.project(basis), engine.matrix.matrix[5])

    def test_linear(self):
        engine = ProjectionEngine.random(32, 7)
        v = np.linspace(-1.0, 1.0, 32)
        single = np.array(engine.project(v))
        doubled = np.array(engine.project(2.0 * v))
        assert np.allclose(doubled, 2.0 * single)

    @pytest.mark.parametrize("length", [0, 1, 767, 769, 1536])
    def test_wrong_length_is_zero_point(self, length):
        engine = ProjectionEngine.random()
        assert engine.project([0.5] * length) == ZERO_POINT

    def test_non_numeric_is_zero_point(self):
        engine = ProjectionEngine.random(4, 1)
        assert engine.project(["a", "b", "c", "d"]) == ZERO_POINT

    def test_nested_input_is_zero_point(self):
        engine = ProjectionEngine.random(4, 1)
        assert engine.project([[1.0, 2.0], [3.0, 4.0]]) == ZERO_POINT

    def test_untrained_type_is_random(self):
        assert ProjectionEngine.random(8, 1).projection_type == ProjectionType.RANDOM


class TestTrain:
    def _samples(self, n: int, d: int) -> np.ndarray:
        rng = np.random.default_rng(3)
        data = rng.normal(size=(n, d)) * 0.01
        # Dominant variance along axis 0, then 1, then 2
        data[:, 0] += rng.normal(size=n) * 10.0
        data[:, 1] += rng.normal(size=n) * 5.0
        data[:, 2] += rng.normal(size=n) * 2.0
        return data

    def test_too_few_vectors_keeps_matrix(self):
        engine = ProjectionEngine.random(8, 1)
        before = engine.matrix
        assert engine.train([[1.0] * 8, [2.0] * 8]) is False
        assert engine.matrix is before
        assert engine.projection_type == ProjectionType.RANDOM

    def test_wrong_length_vectors_ignored(self):
        engine = ProjectionEngine.random(8, 1)
        assert engine.train([[1.0] * 8, [2.0] * 8, [3.0] * 5, [4.0] * 9]) is False

    def test_non_numeric_vectors_skipped(self):
        engine = ProjectionEngine.random(8, 1)
        samples = [*self._samples(50, 8).tolist(), ["a"] * 8, [None] * 8, {"x": 1.0}]
        assert engine.train(samples) is True
        assert np.isfinite(engine.matrix.matrix).all()

    def test_only_non_numeric_extras_not_enough(self):
        engine = ProjectionEngine.random(8, 1)
        before = engine.matrix
        samples = [[1.0] * 8, [2.0] * 8, ["a"] * 8, [[1.0, 2.0], 3.0], [float("nan")] * 8]
        assert engine.train(samples) is False
        assert engine.matrix is before

    def test_trained_matrix_follows_principal_axes(self):
        engine = ProjectionEngine.random(8, 1)
        assert engine.train(self._samples(200, 8)) is True
        assert engine.projection_type == ProjectionType.PCA
        assert engine.matrix.is_trained

        m = engine.matrix.matrix
        assert m.shape == (8, 3)
        assert np.allclose(np.linalg.norm(m, axis=0), 1.0)
        for column, axis in enumerate((0, 1, 2)):
            assert abs(m[axis, column]) > 0.99

    def test_project_after_training_uses_new_matrix(self):
        engine = ProjectionEngine.random(8, 1)
        engine.train(self._samples(50, 8))
        basis = [0.0] * 8
        basis[0] = 1.0
        assert np.allclose(engine.project(basis), engine.matrix.matrix[0])


class TestLawCrystals:
    def test_four_crystals_in_law_order(self):
        crystals = law_crystals()
        assert len(crystals) == 4
        assert [c.law for c in crystals] == [0, 1, 2, 3]

    def test_fixed_positions(self):
        positions = [(c.x, c.y, c.z) for c in LAW_CRYSTALS]
        assert positions == [
            (0.0, 1.5, 0.0),
            (1.4, -0.5, 0.0),
            (-0.7, -0.5, 1.2),
            (-0.7, -0.5, -1.2),
        ]

    def test_names(self):
        assert LAW_CRYSTALS[0].name == "Law 0: Humanity"
        assert LAW_CRYSTALS[3].name == "Law 3: Self"
