"""View frustum built from a view-projection matrix."""

from __future__ import annotations

from dataclasses import dataclass

from w3dkit.sphere import BoundingSphere
from w3dkit.vector import Mat4, Vec4


@dataclass(frozen=True)
class Frustum:
    """Six planes (nx, ny, nz, d) whose positive half-spaces hold the inside."""

    planes: tuple[Vec4, Vec4, Vec4, Vec4, Vec4, Vec4]

    @classmethod
    def from_view_projection(cls, vp: Mat4) -> Frustum:
        """Extract the planes with the Gribb/Hartmann method."""
        r0, r1, r2, r3 = (vp.row(i) for i in range(4))
        planes = (
            (r3 + r0).normalize_or_zero(),  # left
            (r3 - r0).normalize_or_zero(),  # right
            (r3 + r1).normalize_or_zero(),  # bottom
            (r3 - r1).normalize_or_zero(),  # top
            (r3 + r2).normalize_or_zero(),  # near
            (r3 - r2).normalize_or_zero(),  # far
        )
        return cls(planes)

    def cull_sphere(self, sphere: BoundingSphere) -> bool:
        """True if the sphere lies entirely outside the frustum."""
        center = sphere.center.extend(1.0)
        return any(plane.dot(center) < -sphere.radius for plane in self.planes)