"""
Observatory — Manifold Type Definitions
"""

from __future__ import annotations

import enum

from pydantic import Field

from observatory.primitives.common import ObservatoryModel


class ProjectionType(enum.StrEnum):
    RANDOM = "random"
    PCA = "pca"


class ManifoldPoint(ObservatoryModel):
    """One thought vector projected into 3-D. Recomputed on every query."""

    x: float
    y: float
    z: float
    salience: float = Field(0.5, ge=0.0, le=1.0)
    age_ms: int = Field(0, ge=0)
    id: str


class AnchorPoint(ObservatoryModel):
    """A fixed, labelled reference point ("law crystal")."""

    name: str
    law: int = Field(ge=0, le=3)
    x: float
    y: float
    z: float


class ManifoldResponse(ObservatoryModel):
    points: tuple[ManifoldPoint, ...] = ()
    crystals: tuple[AnchorPoint, ...] = ()
    projection_type: ProjectionType = ProjectionType.RANDOM
