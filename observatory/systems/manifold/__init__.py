"""
Observatory — Manifold

Deterministic dimensionality reduction of thought vectors plus fixed anchor
points, exposed through the /vectors query.
"""

from observatory.systems.manifold.anchors import LAW_CRYSTALS, law_crystals
from observatory.systems.manifold.projection import (
    ZERO_POINT,
    ProjectionEngine,
    ProjectionMatrix,
    lcg_gaussian_matrix,
)
from observatory.systems.manifold.service import VectorQueryService
from observatory.systems.manifold.types import (
    AnchorPoint,
    ManifoldPoint,
    ManifoldResponse,
    ProjectionType,
)

__all__ = [
    "AnchorPoint",
    "LAW_CRYSTALS",
    "ManifoldPoint",
    "ManifoldResponse",
    "ProjectionEngine",
    "ProjectionMatrix",
    "ProjectionType",
    "VectorQueryService",
    "ZERO_POINT",
    "law_crystals",
    "lcg_gaussian_matrix",
]
