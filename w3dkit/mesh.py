"""Indexed triangle mesh with precomputed bounds."""

from __future__ import annotations

from typing import Iterable

from w3dkit.aabb import Aabb
from w3dkit.sphere import BoundingSphere
from w3dkit.vector import Vec3
from w3dkit.vertex import Vertex


class Mesh:
    """Vertices, indices and the bounding volumes of the vertex positions."""

    def __init__(self, vertices: Iterable[Vertex], indices: Iterable[int]) -> None:
        self.vertices: list[Vertex] = list(vertices)
        self.indices: list[int] = list(indices)
        positions = [Vec3(*v.position) for v in self.vertices]
        self.aabb: Aabb = Aabb.from_points(positions)
        self.bounding_sphere: BoundingSphere = BoundingSphere.from_points(positions)

    def __repr__(self) -> str:
        return f"Mesh(vertices={len(self.vertices)}, indices={len(self.indices)})"