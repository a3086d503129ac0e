[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "w3dkit"
version = "0.1.0"
description = "Core building blocks for a 3D renderer: vector math, bounding volumes, frustum culling, an archetype ECS, meshes, materials, and glTF and HDR loaders."
requires-python = ">=3.10"
keywords = ["3d", "ecs", "rendering", "gltf", "glb", "hdr", "frustum", "mesh", "pbr"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["w3dkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
