"""Vector math, bounding volumes and culling, an archetype ECS, meshes, materials and glTF/HDR loaders for 3D rendering."""

__version__ = "0.1.0"

__all__ = [
    "aabb",
    "components",
    "frustum",
    "gltf_loader",
    "hdr_loader",
    "material",
    "mesh",
    "primitives",
    "scheduler",
    "sphere",
    "transform",
    "vector",
    "vertex",
    "world",
]