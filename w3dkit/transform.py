"""Matrix decomposition helpers."""

from __future__ import annotations

from w3dkit.vector import Mat4, Quat, Vec3


def decompose_trs(m: Mat4) -> tuple[Vec3, Quat, Vec3]:
    """Decompose ``m`` into (translation, rotation, scale)."""
    scale, rotation, translation = m.to_scale_rotation_translation()
    return translation, rotation, scale