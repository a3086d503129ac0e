"""Procedural meshes: triangle, cube and UV sphere."""

from __future__ import annotations

import math

from w3dkit.mesh import Mesh
from w3dkit.vector import Quat, Vec3
from w3dkit.vertex import Vertex

# (position offset, normal) for each cube face.
_CUBE_FACES = (
    ((0.0, 0.0, 0.5), (0.0, 0.0, 1.0)),  # front
    ((0.0, 0.0, -0.5), (0.0, 0.0, -1.0)),  # back
    ((-0.5, 0.0, 0.0), (-1.0, 0.0, 0.0)),  # left
    ((0.5, 0.0, 0.0), (1.0, 0.0, 0.0)),  # right
    ((0.0, 0.5, 0.0), (0.0, 1.0, 0.0)),  # top
    ((0.0, -0.5, 0.0), (0.0, -1.0, 0.0)),  # bottom
)

_FACE_CORNERS = (
    (-0.5, -0.5, 0.0),
    (0.5, -0.5, 0.0),
    (0.5, 0.5, 0.0),
    (-0.5, 0.5, 0.0),
)

_FACE_UVS = ((0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.0, 0.0))


def triangle() -> Mesh:
    """A single triangle in the XY plane facing +Z."""
    normal = (0.0, 0.0, 1.0)
    vertices = [
        Vertex.new((0.0, 0.5, 0.0), normal, (0.5, 0.0)),
        Vertex.new((-0.5, -0.5, 0.0), normal, (0.0, 1.0)),
        Vertex.new((0.5, -0.5, 0.0), normal, (1.0, 1.0)),
    ]
    return Mesh(vertices, [0, 1, 2])


def cube() -> Mesh:
    """Unit cube centred on the origin, four vertices per face."""
    vertices: list[Vertex] = []
    indices: list[int] = []
    for face_idx, (offset, normal) in enumerate(_CUBE_FACES):
        base = face_idx * 4
        # Rotation taking the +Z face onto the target normal.
        rotation = Quat.from_rotation_arc(Vec3.Z, Vec3(*normal))
        for corner, uv in zip(_FACE_CORNERS, _FACE_UVS):
            position = rotation.rotate(Vec3(*corner)) + Vec3(*offset)
            vertices.append(Vertex.new(position.to_list(), normal, uv))
        indices.extend((base, base + 1, base + 2, base, base + 2, base + 3))
    return Mesh(vertices, indices)


def uv_sphere(radius: float, stacks: int, sectors: int) -> Mesh:
    """UV sphere with ``stacks`` latitude bands and ``sectors`` longitude segments.

    At least 2 stacks and 3 sectors are used. Tangents and bitangents are
    the analytic partial derivatives, suitable for normal mapping.
    """
    stacks = max(stacks, 2)
    sectors = max(sectors, 3)
    vertices: list[Vertex] = []

    for i in range(stacks + 1):
        phi = math.pi * i / stacks
        cos_phi = math.cos(phi)
        sin_phi = math.sin(phi)
        y = radius * cos_phi
        ring_r = radius * sin_phi
        for j in range(sectors + 1):
            theta = math.tau * j / sectors
            cos_theta = math.cos(theta)
            sin_theta = math.sin(theta)
            vertex = Vertex.new(
                (ring_r * cos_theta, y, ring_r * sin_theta),
                (sin_phi * cos_theta, cos_phi, sin_phi * sin_theta),
                (j / sectors, i / stacks),
            )
            vertex.tangent = (-sin_theta, 0.0, cos_theta)
            vertex.bitangent = (cos_phi * cos_theta, -sin_phi, cos_phi * sin_theta)
            vertices.append(vertex)

    ring = sectors + 1
    indices: list[int] = []
    for i in range(stacks):
        for j in range(sectors):
            k0 = i * ring + j
            k1 = (i + 1) * ring + j
            indices.extend((k0, k0 + 1, k1, k1, k0 + 1, k1 + 1))

    return Mesh(vertices, indices)