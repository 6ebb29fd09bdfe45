"""
Observatory — Manifold Projection Engine

Projects high-dimensional thought embeddings to 3-D for visualization.

Untrained (default): a random linear projection whose D×3 matrix is generated
deterministically from a fixed seed by a 64-bit LCG feeding a Box–Muller
transform, then column-normalized. The same seed always yields the same
matrix, so nothing needs to be persisted across restarts. Random projection
approximately preserves relative distances; it offers no variance guarantee.

Trained: the top three principal directions of a sample of vectors (PCA via
SVD). Training replaces the matrix in a single reference swap.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
import structlog

from observatory.systems.manifold.types import ProjectionType

logger = structlog.get_logger("observatory.systems.manifold.projection")

DEFAULT_DIMENSION = 768  # BERT-family sentence embeddings
DEFAULT_SEED = 42
OUTPUT_DIMS = 3

_LCG_MULTIPLIER = 1103515245
_LCG_INCREMENT = 12345
_U64_MASK = (1 << 64) - 1
_U64_SPAN = float(1 << 64)

ZERO_POINT: tuple[float, float, float] = (0.0, 0.0, 0.0)


def lcg_gaussian_matrix(seed: int, rows: int, cols: int = OUTPUT_DIMS) -> np.ndarray:
    """
    Approximately-Gaussian ``rows × cols`` matrix from a fixed seed.

    Entries are filled row-major; each consumes two LCG draws mapped to the
    unit interval (u1, u2) and becomes ``sqrt(-2 ln u1) · cos(2π u2)``.
    Every column with a nonzero norm is then scaled to unit L2 norm.

    Pure: no hidden state, identical output for identical arguments.
    """
    state = seed & _U64_MASK
    out = np.empty((rows, cols), dtype=np.float64)
    for i in range(rows):
        for j in range(cols):
            state = (state * _LCG_MULTIPLIER + _LCG_INCREMENT) & _U64_MASK
            u1 = state / _U64_SPAN
            state = (state * _LCG_MULTIPLIER + _LCG_INCREMENT) & _U64_MASK
            u2 = state / _U64_SPAN
            # ln(0) is undefined; the LCG can land on exactly zero
            u1 = max(u1, 1.0 / _U64_SPAN)
            out[i, j] = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
    return normalize_columns(out)


def normalize_columns(matrix: np.ndarray) -> np.ndarray:
    """Scale each column to unit L2 norm; zero-norm columns are left as-is."""
    norms = np.linalg.norm(matrix, axis=0)
    safe = np.where(norms > 0.0, norms, 1.0)
    return matrix / safe


@dataclass(frozen=True)
class ProjectionMatrix:
    """A read-only D×3 projection matrix plus how it was produced."""

    matrix: np.ndarray
    is_trained: bool = False

    def __post_init__(self) -> None:
        if self.matrix.ndim != 2 or self.matrix.shape[1] != OUTPUT_DIMS:
            raise ValueError(f"projection matrix must be D×3, got {self.matrix.shape}")
        self.matrix.setflags(write=False)

    @classmethod
    def random(cls, dimension: int = DEFAULT_DIMENSION, seed: int = DEFAULT_SEED) -> ProjectionMatrix:
        return cls(lcg_gaussian_matrix(seed, dimension), is_trained=False)

    @property
    def dimension(self) -> int:
        return int(self.matrix.shape[0])


class ProjectionEngine:
    """
    Holds the current projection matrix, shared read-mostly by every query.
    """

    def __init__(self, matrix: ProjectionMatrix) -> None:
        self._matrix = matrix

    @classmethod
    def random(cls, dimension: int = DEFAULT_DIMENSION, seed: int = DEFAULT_SEED) -> ProjectionEngine:
        engine = cls(ProjectionMatrix.random(dimension, seed))
        logger.info("projection_matrix_built", dimension=dimension, seed=seed, mode="random")
        return engine

    @property
    def matrix(self) -> ProjectionMatrix:
        return self._matrix

    @property
    def dimension(self) -> int:
        return self._matrix.dimension

    @property
    def projection_type(self) -> ProjectionType:
        return ProjectionType.PCA if self._matrix.is_trained else ProjectionType.RANDOM

    def project(self, vector: Sequence[float] | np.ndarray) -> tuple[float, float, float]:
        """
        ``vector · M``. Any vector that is not exactly D long (or not numeric)
        maps to the zero point.
        """
        current = self._matrix
        try:
            v = np.asarray(vector, dtype=np.float64)
        except (TypeError, ValueError):
            return ZERO_POINT
        if v.ndim != 1 or v.shape[0] != current.dimension:
            return ZERO_POINT
        x, y, z = v @ current.matrix
        return (float(x), float(y), float(z))

    def train(self, vectors: Iterable[Sequence[float]]) -> bool:
        """
        Replace the matrix with the top three principal directions of
        ``vectors``. Anything that is not a finite numeric vector of the
        engine's dimension is ignored. Returns False, leaving the matrix
        unchanged, when fewer than three remain.
        """
        d = self.dimension
        rows: list[np.ndarray] = []
        for v in vectors:
            try:
                row = np.asarray(v, dtype=np.float64)
            except (TypeError, ValueError):
                continue
            if row.ndim == 1 and row.shape[0] == d and np.isfinite(row).all():
                rows.append(row)
        if len(rows) < OUTPUT_DIMS:
            logger.info("projection_train_skipped", usable=len(rows))
            return False

        data = np.vstack(rows)
        data = data - data.mean(axis=0)
        _, _, vt = np.linalg.svd(data, full_matrices=False)
        components = normalize_columns(vt[:OUTPUT_DIMS].T.copy())
        self._matrix = ProjectionMatrix(components, is_trained=True)
        logger.info("projection_matrix_trained", samples=len(rows), dimension=d)
        return True
