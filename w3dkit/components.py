"""Standard components for entities in a world."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from w3dkit.vector import Mat4, Quat, Vec3

_DEFAULT_LIGHT_DIRECTION = Vec3(-0.5, -1.0, -0.5).normalize()


@dataclass(init=False)
class CameraComponent:
    """Perspective camera with cached view and projection matrices."""

    fov_y_radians: float
    aspect: float
    near: float
    far: float
    view_matrix: Mat4
    projection_matrix: Mat4
    view_projection_matrix: Mat4
    is_active: bool

    def __init__(
        self,
        fov_y_degrees: float = 60.0,
        aspect: float = 16.0 / 9.0,
        near: float = 0.1,
        far: float = 1000.0,
    ) -> None:
        fov = math.radians(fov_y_degrees)
        projection = Mat4.perspective_rh(fov, aspect, near, far)
        self.fov_y_radians = fov
        self.aspect = aspect
        self.near = near
        self.far = far
        self.view_matrix = Mat4.IDENTITY
        self.projection_matrix = projection
        self.view_projection_matrix = projection
        self.is_active = True


@dataclass
class DirectionalLightComponent:
    direction: Vec3 = _DEFAULT_LIGHT_DIRECTION
    color: Vec3 = Vec3(1.0, 1.0, 1.0)
    intensity: float = 1.0
    cast_shadow: bool = True


@dataclass
class HierarchyComponent:
    parent: int | None = None
    children: list[int] = field(default_factory=list)


@dataclass
class NameComponent:
    name: str


@dataclass
class PointLightComponent:
    color: Vec3 = Vec3(1.0, 1.0, 1.0)
    intensity: float = 1.0
    range: float = 10.0


@dataclass
class RenderableComponent:
    mesh_id: int
    material_id: int
    visible: bool = True
    cast_shadow: bool = True
    receive_shadow: bool = True


@dataclass
class SpotLightComponent:
    color: Vec3 = Vec3(1.0, 1.0, 1.0)
    intensity: float = 1.0
    range: float = 10.0
    inner_cone_angle: float = math.radians(20.0)
    outer_cone_angle: float = math.radians(30.0)


@dataclass(frozen=True)
class CulledComponent:
    """Tag marking an entity that was frustum-culled."""


@dataclass(init=False)
class TransformComponent:
    """Position, rotation and scale with cached local and world matrices."""

    position: Vec3
    rotation: Quat
    scale: Vec3
    local_matrix: Mat4
    world_matrix: Mat4
    dirty: bool

    def __init__(
        self,
        position: Vec3 = Vec3.ZERO,
        rotation: Quat = Quat.IDENTITY,
        scale: Vec3 = Vec3.ONE,
    ) -> None:
        self.position = position
        self.rotation = rotation
        self.scale = scale
        self.local_matrix = Mat4.from_scale_rotation_translation(scale, rotation, position)
        self.world_matrix = self.local_matrix
        self.dirty = True

    @classmethod
    def from_position(cls, position: Vec3) -> TransformComponent:
        return cls(position, Quat.IDENTITY, Vec3.ONE)

    def update_local_matrix(self) -> None:
        """Recompute the local matrix from position, rotation and scale."""
        self.local_matrix = Mat4.from_scale_rotation_translation(
            self.scale, self.rotation, self.position
        )
        self.dirty = True