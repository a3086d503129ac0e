"""Interleaved mesh vertex: 20 little-endian 32-bit floats, 80 bytes."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from itertools import chain, islice
from typing import ClassVar, Sequence

# Attribute order and widths, matching shader locations 0 to 6.
_FIELDS: tuple[tuple[str, int], ...] = (
    ("position", 3),
    ("uv0", 2),
    ("uv1", 2),
    ("normal", 3),
    ("tangent", 3),
    ("bitangent", 3),
    ("color", 4),
)

_LAYOUT = struct.Struct("<" + "f" * sum(width for _, width in _FIELDS))


def _floats(values: Sequence[float], width: int, name: str) -> tuple[float, ...]:
    result = tuple(float(v) for v in values)
    if len(result) != width:
        raise ValueError(f"{name} needs {width} components, got {len(result)}")
    return result


@dataclass
class Vertex:
    """One vertex with position, two UV sets, tangent frame and colour."""

    position: tuple[float, float, float]
    uv0: tuple[float, float]
    uv1: tuple[float, float]
    normal: tuple[float, float, float]
    tangent: tuple[float, float, float]
    bitangent: tuple[float, float, float]
    color: tuple[float, float, float, float]

    SIZE: ClassVar[int] = _LAYOUT.size

    @classmethod
    def new(
        cls,
        position: Sequence[float],
        normal: Sequence[float],
        uv0: Sequence[float],
    ) -> Vertex:
        """Vertex with ``uv1`` mirroring ``uv0``, a default tangent frame and white colour."""
        uv = _floats(uv0, 2, "uv0")
        return cls(
            position=_floats(position, 3, "position"),
            uv0=uv,
            uv1=uv,
            normal=_floats(normal, 3, "normal"),
            tangent=(1.0, 0.0, 0.0),
            bitangent=(0.0, 1.0, 0.0),
            color=(1.0, 1.0, 1.0, 1.0),
        )

    def to_bytes(self) -> bytes:
        """Pack the vertex in its interleaved GPU layout."""
        return _LAYOUT.pack(*chain.from_iterable(getattr(self, name) for name, _ in _FIELDS))

    @classmethod
    def from_bytes(cls, data: bytes) -> Vertex:
        """Unpack a vertex from exactly ``SIZE`` bytes."""
        if len(data) != cls.SIZE:
            raise ValueError(f"vertex data must be {cls.SIZE} bytes, got {len(data)}")
        values = iter(_LAYOUT.unpack(data))
        return cls(**{name: tuple(islice(values, width)) for name, width in _FIELDS})