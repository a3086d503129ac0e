"""Vector, quaternion and 4x4 matrix types.

Matrices are column-major and follow right-handed conventions with a
zero-to-one depth range.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

F32_EPSILON = 2.0**-23
F32_MAX = 3.4028234663852886e38


@dataclass(frozen=True, slots=True)
class Vec3:
    """Three-component vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def splat(cls, value: float) -> Vec3:
        return cls(value, value, value)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __add__(self, other: Vec3) -> Vec3:
        if not isinstance(other, Vec3):
            return NotImplemented
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        if not isinstance(other, Vec3):
            return NotImplemented
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> Vec3:
        return Vec3(-self.x, -self.y, -self.z)

    def __mul__(self, other: float | Vec3) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3(self.x * other.x, self.y * other.y, self.z * other.z)
        if isinstance(other, (int, float)):
            return Vec3(self.x * other, self.y * other, self.z * other)
        return NotImplemented

    def __rmul__(self, other: float) -> Vec3:
        if isinstance(other, (int, float)):
            return self * other
        return NotImplemented

    def __truediv__(self, other: float | Vec3) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3(self.x / other.x, self.y / other.y, self.z / other.z)
        if isinstance(other, (int, float)):
            return Vec3(self.x / other, self.y / other, self.z / other)
        return NotImplemented

    def dot(self, other: Vec3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vec3) -> Vec3:
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalize(self) -> Vec3:
        """Return the unit vector in this direction; a zero vector raises ValueError."""
        length = self.length()
        if length == 0.0 or not math.isfinite(length):
            raise ValueError("cannot normalize a zero-length or non-finite vector")
        return self / length

    def distance(self, other: Vec3) -> float:
        return (self - other).length()

    def min(self, other: Vec3) -> Vec3:
        return Vec3(min(self.x, other.x), min(self.y, other.y), min(self.z, other.z))

    def max(self, other: Vec3) -> Vec3:
        return Vec3(max(self.x, other.x), max(self.y, other.y), max(self.z, other.z))

    def extend(self, w: float) -> Vec4:
        return Vec4(self.x, self.y, self.z, w)

    def to_list(self) -> list[float]:
        return [self.x, self.y, self.z]

    def _any_orthonormal_vector(self) -> Vec3:
        sign = math.copysign(1.0, self.z)
        a = -1.0 / (sign + self.z)
        b = self.x * self.y * a
        return Vec3(b, sign + self.y * self.y * a, -self.x)


Vec3.ZERO = Vec3(0.0, 0.0, 0.0)
Vec3.ONE = Vec3(1.0, 1.0, 1.0)
Vec3.X = Vec3(1.0, 0.0, 0.0)
Vec3.Y = Vec3(0.0, 1.0, 0.0)
Vec3.Z = Vec3(0.0, 0.0, 1.0)


@dataclass(frozen=True, slots=True)
class Vec4:
    """Four-component vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z
        yield self.w

    def __add__(self, other: Vec4) -> Vec4:
        if not isinstance(other, Vec4):
            return NotImplemented
        return Vec4(self.x + other.x, self.y + other.y, self.z + other.z, self.w + other.w)

    def __sub__(self, other: Vec4) -> Vec4:
        if not isinstance(other, Vec4):
            return NotImplemented
        return Vec4(self.x - other.x, self.y - other.y, self.z - other.z, self.w - other.w)

    def __neg__(self) -> Vec4:
        return Vec4(-self.x, -self.y, -self.z, -self.w)

    def __mul__(self, other: float) -> Vec4:
        if isinstance(other, (int, float)):
            return Vec4(self.x * other, self.y * other, self.z * other, self.w * other)
        return NotImplemented

    def __rmul__(self, other: float) -> Vec4:
        return self.__mul__(other)

    def dot(self, other: Vec4) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z + self.w * other.w

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalize_or_zero(self) -> Vec4:
        """Return the unit vector, or the zero vector if that is not possible."""
        length = self.length()
        if length > 0.0 and math.isfinite(length):
            recip = 1.0 / length
            if math.isfinite(recip):
                return self * recip
        return Vec4.ZERO

    def truncate(self) -> Vec3:
        return Vec3(self.x, self.y, self.z)


Vec4.ZERO = Vec4(0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True, slots=True)
class Quat:
    """Rotation quaternion stored as (x, y, z, w)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    @classmethod
    def from_axis_angle(cls, axis: Vec3, angle: float) -> Quat:
        s = math.sin(angle * 0.5)
        c = math.cos(angle * 0.5)
        v = axis * s
        return cls(v.x, v.y, v.z, c)

    @classmethod
    def from_rotation_x(cls, angle: float) -> Quat:
        return cls(math.sin(angle * 0.5), 0.0, 0.0, math.cos(angle * 0.5))

    @classmethod
    def from_rotation_y(cls, angle: float) -> Quat:
        return cls(0.0, math.sin(angle * 0.5), 0.0, math.cos(angle * 0.5))

    @classmethod
    def from_rotation_z(cls, angle: float) -> Quat:
        return cls(0.0, 0.0, math.sin(angle * 0.5), math.cos(angle * 0.5))

    @classmethod
    def from_rotation_arc(cls, source: Vec3, target: Vec3) -> Quat:
        """Shortest rotation taking unit vector ``source`` onto unit vector ``target``."""
        one_minus_eps = 1.0 - 2.0 * F32_EPSILON
        d = source.dot(target)
        if d > one_minus_eps:
            return cls.IDENTITY
        if d < -one_minus_eps:
            return cls.from_axis_angle(source._any_orthonormal_vector(), math.pi)
        c = source.cross(target)
        return cls(c.x, c.y, c.z, 1.0 + d).normalize()

    @classmethod
    def _from_rotation_axes(cls, x_axis: Vec3, y_axis: Vec3, z_axis: Vec3) -> Quat:
        m00, m01, m02 = x_axis
        m10, m11, m12 = y_axis
        m20, m21, m22 = z_axis
        if m22 <= 0.0:
            dif10 = m11 - m00
            omm22 = 1.0 - m22
            if dif10 <= 0.0:
                four_xsq = omm22 - dif10
                inv4x = 0.5 / math.sqrt(four_xsq)
                return cls(four_xsq * inv4x, (m01 + m10) * inv4x,
                           (m02 + m20) * inv4x, (m12 - m21) * inv4x)
            four_ysq = omm22 + dif10
            inv4y = 0.5 / math.sqrt(four_ysq)
            return cls((m01 + m10) * inv4y, four_ysq * inv4y,
                       (m12 + m21) * inv4y, (m20 - m02) * inv4y)
        sum10 = m11 + m00
        opm22 = 1.0 + m22
        if sum10 <= 0.0:
            four_zsq = opm22 - sum10
            inv4z = 0.5 / math.sqrt(four_zsq)
            return cls((m02 + m20) * inv4z, (m12 + m21) * inv4z,
                       four_zsq * inv4z, (m01 - m10) * inv4z)
        four_wsq = opm22 + sum10
        inv4w = 0.5 / math.sqrt(four_wsq)
        return cls((m12 - m21) * inv4w, (m20 - m02) * inv4w,
                   (m01 - m10) * inv4w, four_wsq * inv4w)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z
        yield self.w

    def __mul__(self, other: Quat | Vec3) -> Quat | Vec3:
        if isinstance(other, Vec3):
            return self.rotate(other)
        if not isinstance(other, Quat):
            return NotImplemented
        x0, y0, z0, w0 = self
        x1, y1, z1, w1 = other
        return Quat(
            w0 * x1 + x0 * w1 + y0 * z1 - z0 * y1,
            w0 * y1 - x0 * z1 + y0 * w1 + z0 * x1,
            w0 * z1 + x0 * y1 - y0 * x1 + z0 * w1,
            w0 * w1 - x0 * x1 - y0 * y1 - z0 * z1,
        )

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z + self.w * self.w)

    def normalize(self) -> Quat:
        """Return a unit quaternion; a zero quaternion raises ValueError."""
        length = self.length()
        if length == 0.0 or not math.isfinite(length):
            raise ValueError("cannot normalize a zero-length or non-finite quaternion")
        return Quat(self.x / length, self.y / length, self.z / length, self.w / length)

    def rotate(self, v: Vec3) -> Vec3:
        """Rotate ``v`` by this (unit) quaternion."""
        b = Vec3(self.x, self.y, self.z)
        b2 = b.dot(b)
        return (v * (self.w * self.w - b2)
                + b * (v.dot(b) * 2.0)
                + b.cross(v) * (self.w * 2.0))


Quat.IDENTITY = Quat(0.0, 0.0, 0.0, 1.0)


def _determinant(rows: list[list[float]]) -> float:
    if len(rows) == 1:
        return rows[0][0]
    head, *rest = rows
    return sum(
        (-1.0 if j % 2 else 1.0) * value * _determinant([row[:j] + row[j + 1:] for row in rest])
        for j, value in enumerate(head)
    )


@dataclass(frozen=True, slots=True)
class Mat4:
    """Column-major 4x4 matrix."""

    x_axis: Vec4
    y_axis: Vec4
    z_axis: Vec4
    w_axis: Vec4

    @classmethod
    def from_cols(cls, x_axis: Vec4, y_axis: Vec4, z_axis: Vec4, w_axis: Vec4) -> Mat4:
        return cls(x_axis, y_axis, z_axis, w_axis)

    @classmethod
    def from_translation(cls, translation: Vec3) -> Mat4:
        return cls(
            Vec4(1.0, 0.0, 0.0, 0.0),
            Vec4(0.0, 1.0, 0.0, 0.0),
            Vec4(0.0, 0.0, 1.0, 0.0),
            translation.extend(1.0),
        )

    @classmethod
    def from_scale(cls, scale: Vec3) -> Mat4:
        return cls(
            Vec4(scale.x, 0.0, 0.0, 0.0),
            Vec4(0.0, scale.y, 0.0, 0.0),
            Vec4(0.0, 0.0, scale.z, 0.0),
            Vec4(0.0, 0.0, 0.0, 1.0),
        )

    @classmethod
    def from_quat(cls, rotation: Quat) -> Mat4:
        return cls.from_scale_rotation_translation(Vec3.ONE, rotation, Vec3.ZERO)

    @classmethod
    def from_scale_rotation_translation(cls, scale: Vec3, rotation: Quat, translation: Vec3) -> Mat4:
        x, y, z, w = rotation
        x2, y2, z2 = x + x, y + y, z + z
        xx, xy, xz = x * x2, x * y2, x * z2
        yy, yz, zz = y * y2, y * z2, z * z2
        wx, wy, wz = w * x2, w * y2, w * z2
        x_axis = Vec4(1.0 - (yy + zz), xy + wz, xz - wy, 0.0)
        y_axis = Vec4(xy - wz, 1.0 - (xx + zz), yz + wx, 0.0)
        z_axis = Vec4(xz + wy, yz - wx, 1.0 - (xx + yy), 0.0)
        return cls(
            x_axis * scale.x,
            y_axis * scale.y,
            z_axis * scale.z,
            translation.extend(1.0),
        )

    @classmethod
    def perspective_rh(cls, fov_y_radians: float, aspect: float, z_near: float, z_far: float) -> Mat4:
        """Right-handed perspective projection mapping depth to [0, 1]."""
        if z_near <= 0.0 or z_far <= 0.0:
            raise ValueError("z_near and z_far must be positive")
        sin_fov = math.sin(0.5 * fov_y_radians)
        cos_fov = math.cos(0.5 * fov_y_radians)
        h = cos_fov / sin_fov
        w = h / aspect
        r = z_far / (z_near - z_far)
        return cls(
            Vec4(w, 0.0, 0.0, 0.0),
            Vec4(0.0, h, 0.0, 0.0),
            Vec4(0.0, 0.0, r, -1.0),
            Vec4(0.0, 0.0, r * z_near, 0.0),
        )

    @property
    def columns(self) -> tuple[Vec4, Vec4, Vec4, Vec4]:
        return (self.x_axis, self.y_axis, self.z_axis, self.w_axis)

    def to_cols_array_2d(self) -> list[list[float]]:
        return [list(col) for col in self.columns]

    def row(self, index: int) -> Vec4:
        if not 0 <= index < 4:
            raise IndexError(f"row index {index} out of range")
        return Vec4(*(tuple(col)[index] for col in self.columns))

    def __matmul__(self, other: Mat4 | Vec4) -> Mat4 | Vec4:
        if isinstance(other, Vec4):
            return (self.x_axis * other.x + self.y_axis * other.y
                    + self.z_axis * other.z + self.w_axis * other.w)
        if isinstance(other, Mat4):
            return Mat4(*(self @ col for col in other.columns))
        return NotImplemented

    def transform_point3(self, point: Vec3) -> Vec3:
        """Apply the affine part of the matrix to a point (no perspective divide)."""
        return (self.x_axis * point.x + self.y_axis * point.y
                + self.z_axis * point.z + self.w_axis).truncate()

    def _determinant(self) -> float:
        return _determinant([list(self.row(i)) for i in range(4)])

    def to_scale_rotation_translation(self) -> tuple[Vec3, Quat, Vec3]:
        """Split an affine matrix into (scale, rotation, translation)."""
        det = self._determinant()
        scale = Vec3(
            self.x_axis.length() * math.copysign(1.0, det),
            self.y_axis.length(),
            self.z_axis.length(),
        )
        if scale.x == 0.0 or scale.y == 0.0 or scale.z == 0.0:
            raise ValueError("matrix has a zero scale axis")
        rotation = Quat._from_rotation_axes(
            self.x_axis.truncate() * (1.0 / scale.x),
            self.y_axis.truncate() * (1.0 / scale.y),
            self.z_axis.truncate() * (1.0 / scale.z),
        )
        return scale, rotation, self.w_axis.truncate()


Mat4.IDENTITY = Mat4(
    Vec4(1.0, 0.0, 0.0, 0.0),
    Vec4(0.0, 1.0, 0.0, 0.0),
    Vec4(0.0, 0.0, 1.0, 0.0),
    Vec4(0.0, 0.0, 0.0, 1.0),
)