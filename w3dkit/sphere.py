"""Bounding sphere."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from w3dkit.vector import Vec3


@dataclass(frozen=True)
class BoundingSphere:
    """Sphere given by its centre and radius."""

    center: Vec3 = Vec3()
    radius: float = 0.0

    @classmethod
    def from_points(cls, points: Iterable[Vec3]) -> BoundingSphere:
        """Sphere centred on the centroid, reaching the farthest point."""
        pts = list(points)
        if not pts:
            return cls()
        center = sum(pts, Vec3.ZERO) / len(pts)
        radius = max((p.distance(center) for p in pts), default=0.0)
        return cls(center, max(radius, 0.0))