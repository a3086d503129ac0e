"""Surface material parameters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ShadingModel(Enum):
    PBR = "pbr"
    UNLIT = "unlit"


class AlphaMode(Enum):
    OPAQUE = "opaque"
    MASK = "mask"
    BLEND = "blend"


@dataclass
class Material:
    """Metallic-roughness material."""

    name: str = ""
    shading_model: ShadingModel = ShadingModel.PBR
    albedo: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    metallic: float = 0.0
    roughness: float = 0.5
    emissive: tuple[float, float, float] = (0.0, 0.0, 0.0)
    alpha_mode: AlphaMode = AlphaMode.OPAQUE
    alpha_cutoff: float = 0.5
    double_sided: bool = False