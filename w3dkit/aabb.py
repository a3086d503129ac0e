"""Axis-aligned bounding box."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from w3dkit.vector import F32_MAX, Vec3


@dataclass(frozen=True)
class Aabb:
    """Box spanned by the ``min`` and ``max`` corners."""

    min: Vec3 = Vec3()
    max: Vec3 = Vec3()

    def center(self) -> Vec3:
        return (self.min + self.max) * 0.5

    def half_extents(self) -> Vec3:
        return (self.max - self.min) * 0.5

    @classmethod
    def from_points(cls, points: Iterable[Vec3]) -> Aabb:
        """Tightest box around ``points``; with no points the box is inverted."""
        lo = Vec3.splat(F32_MAX)
        hi = Vec3.splat(-F32_MAX)
        for p in points:
            lo = lo.min(p)
            hi = hi.max(p)
        return cls(lo, hi)