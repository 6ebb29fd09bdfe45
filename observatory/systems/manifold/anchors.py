"""
Observatory — Law Crystals

Fixed anchor points shown alongside the projected thoughts: one per law,
forming a tetrahedron around the origin. They are static for the process
lifetime and independent of the projection matrix.
"""

from __future__ import annotations

from observatory.systems.manifold.types import AnchorPoint

LAW_CRYSTALS: tuple[AnchorPoint, ...] = (
    AnchorPoint(name="Law 0: Humanity", law=0, x=0.0, y=1.5, z=0.0),
    AnchorPoint(name="Law 1: No Harm", law=1, x=1.4, y=-0.5, z=0.0),
    AnchorPoint(name="Law 2: Obey", law=2, x=-0.7, y=-0.5, z=1.2),
    AnchorPoint(name="Law 3: Self", law=3, x=-0.7, y=-0.5, z=-1.2),
)


def law_crystals() -> tuple[AnchorPoint, ...]:
    # TODO: embed the law texts and project them once semantic anchors land
    return LAW_CRYSTALS
