# w3dkit

Building blocks for a small 3D engine, in pure Python.

- **Math** (`w3dkit.vector`): immutable `Vec3`, `Vec4`, `Quat` and column-major
  `Mat4`. Matrices use right-handed conventions with a zero-to-one depth range;
  `Mat4` supports `a @ b` for matrix products and `m @ v` for a `Vec4`.
  `Vec3.normalize()` and `Quat.normalize()` raise `ValueError` on a zero vector;
  `Vec4.normalize_or_zero()` returns the zero vector instead.
- **Bounding volumes**: `w3dkit.aabb.Aabb` (with `center()`, `half_extents()`,
  `from_points()`) and `w3dkit.sphere.BoundingSphere` (centred on the centroid,
  radius reaching the farthest point).
- **Culling**: `w3dkit.frustum.Frustum.from_view_projection()` extracts six
  planes from a view-projection matrix; `cull_sphere()` returns `True` when a
  sphere lies entirely outside.
- **Decomposition**: `w3dkit.transform.decompose_trs(m)` returns
  `(translation, rotation, scale)`.
- **ECS** (`w3dkit.world.World`): archetype storage keyed by component type.
  `create_entity`, `destroy_entity` (ids are recycled), `add_component`
  (replaces a component of the same type), `remove_component`,
  `get_component`, `has_component`, `query_entities`, `iter`, `for_each_mut`,
  `for_each_without_mut` and `archetype_of`.
- **Scheduler** (`w3dkit.scheduler`): runs systems in insertion order. A system
  is a `System` subclass or any callable `(world, delta_time, total_time)`;
  `add_system` returns the scheduler so calls can be chained.
- **Components** (`w3dkit.components`): `TransformComponent`,
  `CameraComponent`, `DirectionalLightComponent`, `PointLightComponent`,
  `SpotLightComponent`, `HierarchyComponent`, `NameComponent`,
  `RenderableComponent` and the `CulledComponent` tag.
- **Assets**:
  - `w3dkit.vertex.Vertex`: an interleaved vertex of 20 little-endian floats
    (`Vertex.SIZE == 80`) with `to_bytes()` and `from_bytes()`.
  - `w3dkit.mesh.Mesh`: vertices and indices with a computed `aabb` and
    `bounding_sphere`.
  - `w3dkit.material`: `Material`, `ShadingModel` and `AlphaMode`.
  - `w3dkit.primitives`: `triangle()`, `cube()` and `uv_sphere(radius, stacks, sectors)`.
    The sphere uses at least 2 stacks and 3 sectors, and its vertices carry
    analytic tangents.
  - `w3dkit.hdr_loader.load_hdr_from_bytes`: decodes Radiance `.hdr` images to
    linear float RGB.
  - `w3dkit.gltf_loader.load_from_bytes`: loads every mesh primitive of a glTF
    or GLB document, with its material and its textures converted to RGBA8.

## Install

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Examples

Frustum culling:

```python
import math
from w3dkit.vector import Mat4, Vec3
from w3dkit.sphere import BoundingSphere
from w3dkit.frustum import Frustum

proj = Mat4.perspective_rh(math.pi / 2, 1.0, 0.1, 100.0)
frustum = Frustum.from_view_projection(proj)
frustum.cull_sphere(BoundingSphere(Vec3(0.0, 0.0, -5.0), 0.5))   # False: visible
frustum.cull_sphere(BoundingSphere(Vec3(0.0, 0.0, 200.0), 0.5))  # True: culled
```

Entities, components and systems:

```python
from w3dkit.world import World
from w3dkit.scheduler import Scheduler
from w3dkit.components import TransformComponent, HierarchyComponent
from w3dkit.vector import Vec3

world = World()
e = world.create_entity()
world.add_component(e, TransformComponent.from_position(Vec3(1.0, 2.0, 3.0)))

def flush_transforms(world, delta_time, total_time):
    def update(t):
        if t.dirty:
            t.world_matrix = t.local_matrix
            t.dirty = False
    world.for_each_without_mut(TransformComponent, HierarchyComponent, update)

scheduler = Scheduler()
scheduler.add_system(flush_transforms)
scheduler.run(world, 0.016, 0.0)

world.get_component(e, TransformComponent).dirty  # False
```

Meshes:

```python
from w3dkit.primitives import uv_sphere

mesh = uv_sphere(1.0, 16, 32)
mesh.aabb.half_extents()
mesh.bounding_sphere.radius
vertex_bytes = b"".join(v.to_bytes() for v in mesh.vertices)
```

Loading assets:

```python
from w3dkit.gltf_loader import load_from_bytes
from w3dkit.hdr_loader import load_hdr_from_bytes

with open("model.glb", "rb") as fh:
    primitives = load_from_bytes(fh.read())

for prim in primitives:
    print(len(prim.mesh.vertices), prim.material.alpha_mode, prim.albedo_image is not None)

with open("sky.hdr", "rb") as fh:
    env = load_hdr_from_bytes(fh.read())
```

Load errors are raised as exceptions: `GltfParseError` or
`MissingPositionsError` (both subclasses of `GltfError`) from the glTF loader,
and `HdrError` from the HDR loader.

## What it does not do

- There is no renderer: nothing here opens a window, talks to a GPU or draws.
  The package prepares data (matrices, culling results, vertex bytes, RGBA8
  textures, float HDR pixels) for a renderer to consume.
- There is no command-line tool; everything is used as a library.
- The glTF loader works only from the bytes it is given. Buffers and images
  must come from the GLB binary chunk, buffer views or base64 `data:` URIs;
  references to external files raise `GltfParseError`. Scenes, nodes,
  animations and skins are not read, only mesh primitives and their materials.
- The HDR loader accepts only the `32-bit_rle_rgbe` pixel format with the
  standard `-Y <height> +X <width>` orientation.
- `World.for_each_mut` and `World.for_each_without_mut` call the function on
  each component in turn; there is no parallel execution.