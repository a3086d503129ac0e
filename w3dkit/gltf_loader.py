"""Loading of glTF 2.0 documents, JSON or GLB, into meshes, materials and textures.

Everything must be held in the given bytes: buffers and images come from the
GLB binary chunk, buffer views or base64 data URIs. External files cannot be
resolved and are reported as errors.
"""

from __future__ import annotations

import base64
import binascii
import io
import json
import math
import struct
from dataclasses import dataclass
from enum import Enum
from itertools import chain, repeat
from typing import Any, Callable, Sequence

from PIL import Image

from w3dkit.material import AlphaMode, Material
from w3dkit.mesh import Mesh
from w3dkit.vertex import Vertex

Vec3Tuple = tuple[float, float, float]

_GLB_MAGIC = b"glTF"
_CHUNK_JSON = 0x4E4F534A
_CHUNK_BIN = 0x004E4942

_FLOAT = 5126
_COMPONENTS: dict[int, tuple[str, float]] = {
    5120: ("b", 127.0),
    5121: ("B", 255.0),
    5122: ("h", 32767.0),
    5123: ("H", 65535.0),
    5125: ("I", 4294967295.0),
    _FLOAT: ("f", 1.0),
}
_WIDTHS = {"SCALAR": 1, "VEC2": 2, "VEC3": 3, "VEC4": 4, "MAT2": 4, "MAT3": 9, "MAT4": 16}


class GltfError(Exception):
    """A glTF document could not be loaded."""


class GltfParseError(GltfError):
    """The document, its buffers or its images are malformed or unreachable."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"gltf parse error: {reason}")
        self.reason = reason


class MissingPositionsError(GltfError):
    """A primitive has no POSITION attribute."""

    def __init__(self) -> None:
        super().__init__("primitive missing POSITION attribute")


class ImageFormat(Enum):
    """Pixel layouts of decoded images."""

    R8 = "r8"
    R8G8 = "r8g8"
    R8G8B8 = "r8g8b8"
    R8G8B8A8 = "r8g8b8a8"
    R16 = "r16"
    R16G16 = "r16g16"
    R16G16B16 = "r16g16b16"
    R16G16B16A16 = "r16g16b16a16"
    R32G32B32FLOAT = "r32g32b32float"
    R32G32B32A32FLOAT = "r32g32b32a32float"


@dataclass
class ImageData:
    """Decoded image pixels in one of the ``ImageFormat`` layouts."""

    format: ImageFormat
    width: int
    height: int
    pixels: bytes


@dataclass
class RgbaImage:
    """Decoded RGBA8 image ready for GPU upload."""

    data: bytes
    width: int
    height: int


@dataclass
class GltfPrimitive:
    """One glTF primitive: geometry, material parameters and optional textures."""

    mesh: Mesh
    material: Material
    albedo_image: RgbaImage | None = None
    normal_image: RgbaImage | None = None
    metallic_roughness_image: RgbaImage | None = None
    emissive_image: RgbaImage | None = None


# ── vector helpers ────────────────────────────────────────────────────────────


def cross_vecs(a: Sequence[float], b: Sequence[float]) -> Vec3Tuple:
    """Cross product of two 3-vectors."""
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def cross_scaled(n: Sequence[float], t: Sequence[float], handedness: float) -> Vec3Tuple:
    """Bitangent ``(n x t) * handedness``."""
    bx, by, bz = cross_vecs(n, t)
    return (bx * handedness, by * handedness, bz * handedness)


def normalize(v: Sequence[float]) -> Vec3Tuple:
    """Unit vector in the direction of ``v``; +X when ``v`` is nearly zero."""
    length = math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])
    if length < 1e-6:
        return (1.0, 0.0, 0.0)
    return (v[0] / length, v[1] / length, v[2] / length)


def orthonormal_tangent_frame(n: Sequence[float]) -> tuple[Vec3Tuple, Vec3Tuple]:
    """Some (tangent, bitangent) pair perpendicular to the normal ``n``."""
    up = (0.0, 1.0, 0.0) if abs(n[1]) < 0.9 else (1.0, 0.0, 0.0)
    t = normalize(cross_vecs(up, n))
    b = cross_vecs(n, t)
    return t, b


# ── pixel conversion ──────────────────────────────────────────────────────────

_BYTE_LAYOUTS: dict[ImageFormat, tuple[int, Callable[[bytes], tuple[int, ...]]]] = {
    ImageFormat.R8G8B8: (3, lambda c: (c[0], c[1], c[2], 255)),
    ImageFormat.R8G8: (2, lambda c: (c[0], c[1], 0, 255)),
    ImageFormat.R8: (1, lambda c: (c[0], c[0], c[0], 255)),
    ImageFormat.R16G16B16A16: (8, lambda c: (c[1], c[3], c[5], c[7])),
    ImageFormat.R16G16B16: (6, lambda c: (c[1], c[3], c[5], 255)),
    ImageFormat.R16G16: (4, lambda c: (c[1], c[3], 0, 255)),
    ImageFormat.R16: (2, lambda c: (c[1], c[1], c[1], 255)),
}

_FLOAT_LAYOUTS: dict[ImageFormat, struct.Struct] = {
    ImageFormat.R32G32B32FLOAT: struct.Struct("<3f"),
    ImageFormat.R32G32B32A32FLOAT: struct.Struct("<4f"),
}

_F32 = struct.Struct("<f")


def _unit_to_u8(value: float) -> int:
    if math.isnan(value):
        return 0
    clamped = min(max(value, 0.0), 1.0)
    # Round the product to single precision, as the pixel data is 32-bit float.
    return int(_F32.unpack(_F32.pack(clamped * 255.0))[0])


def to_rgba8(image: ImageData) -> bytes:
    """Convert the pixels of ``image`` to tightly packed RGBA8."""
    pixels = bytes(image.pixels)
    fmt = image.format
    if fmt is ImageFormat.R8G8B8A8:
        return pixels
    if fmt in _FLOAT_LAYOUTS:
        layout = _FLOAT_LAYOUTS[fmt]
        if len(pixels) % layout.size:
            raise ValueError(f"{fmt.name} pixel data is not a whole number of pixels")
        out = bytearray()
        for channels in layout.iter_unpack(pixels):
            rgba = [_unit_to_u8(v) for v in channels]
            if len(rgba) == 3:
                rgba.append(255)
            out.extend(rgba)
        return bytes(out)
    size, convert = _BYTE_LAYOUTS[fmt]
    if len(pixels) % size:
        raise ValueError(f"{fmt.name} pixel data is not a whole number of pixels")
    return bytes(
        value
        for start in range(0, len(pixels), size)
        for value in convert(pixels[start:start + size])
    )


_PILLOW_MODES = {
    "L": ImageFormat.R8,
    "LA": ImageFormat.R8G8,
    "RGB": ImageFormat.R8G8B8,
    "RGBA": ImageFormat.R8G8B8A8,
    "I;16": ImageFormat.R16,
    "I;16L": ImageFormat.R16,
}


def _pillow_to_image_data(img: Image.Image) -> ImageData:
    width, height = img.size
    mode = img.mode
    if mode == "I":
        values = (v for (v,) in struct.iter_unpack("=i", img.tobytes("raw", "I")))
        pixels = b"".join(struct.pack("<H", min(max(v, 0), 0xFFFF)) for v in values)
        return ImageData(ImageFormat.R16, width, height, pixels)
    if mode == "I;16B":
        raw = img.tobytes()
        pixels = bytes(b for hi, lo in zip(raw[::2], raw[1::2]) for b in (lo, hi))
        return ImageData(ImageFormat.R16, width, height, pixels)
    if mode == "P":
        img = img.convert("RGBA" if "transparency" in img.info else "RGB")
    elif mode in ("1", "F"):
        img = img.convert("L")
    elif mode not in _PILLOW_MODES:
        img = img.convert("RGBA")
    return ImageData(_PILLOW_MODES[img.mode], width, height, img.tobytes())


def _decode_image(data: bytes) -> ImageData:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return _pillow_to_image_data(img)
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise GltfParseError(f"image decode failed: {exc}") from exc


# ── container parsing ─────────────────────────────────────────────────────────


def _split_glb(data: bytes) -> tuple[bytes, bytes | None]:
    if len(data) < 12:
        raise GltfParseError("truncated GLB header")
    _, version, length = struct.unpack_from("<4sII", data, 0)
    if version != 2:
        raise GltfParseError(f"unsupported GLB version {version}")
    if length > len(data):
        raise GltfParseError("GLB length exceeds the data")
    chunks: list[tuple[int, bytes]] = []
    offset = 12
    while offset < length:
        if offset + 8 > length:
            raise GltfParseError("truncated GLB chunk header")
        chunk_length, chunk_type = struct.unpack_from("<II", data, offset)
        start = offset + 8
        end = start + chunk_length
        if end > length:
            raise GltfParseError("GLB chunk exceeds the data")
        chunks.append((chunk_type, data[start:end]))
        offset = end
    if not chunks or chunks[0][0] != _CHUNK_JSON:
        raise GltfParseError("GLB does not start with a JSON chunk")
    blob = chunks[1][1] if len(chunks) > 1 and chunks[1][0] == _CHUNK_BIN else None
    return chunks[0][1], blob


def _load_uri(uri: str) -> bytes:
    if not uri.startswith("data:"):
        raise GltfParseError(f"external reference in slice import: {uri}")
    header, sep, payload = uri[5:].partition(",")
    if not sep or not header.endswith(";base64"):
        raise GltfParseError("unsupported data URI")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise GltfParseError(f"invalid base64 data: {exc}") from exc


def _field(obj: Any, key: str) -> Any:
    if not isinstance(obj, dict) or key not in obj:
        raise GltfParseError(f"missing required field {key!r}")
    return obj[key]


def _convert_material(mat: dict[str, Any]) -> Material:
    pbr = mat.get("pbrMetallicRoughness", {})
    mode_name = mat.get("alphaMode", "OPAQUE")
    try:
        alpha_mode = AlphaMode[mode_name]
    except (KeyError, TypeError):
        raise GltfParseError(f"invalid alphaMode {mode_name!r}") from None
    return Material(
        name=mat.get("name") or "",
        albedo=tuple(float(v) for v in pbr.get("baseColorFactor", (1.0, 1.0, 1.0, 1.0))),
        metallic=float(pbr.get("metallicFactor", 1.0)),
        roughness=float(pbr.get("roughnessFactor", 1.0)),
        emissive=tuple(float(v) for v in mat.get("emissiveFactor", (0.0, 0.0, 0.0))),
        alpha_mode=alpha_mode,
        alpha_cutoff=float(mat.get("alphaCutoff", 0.5)),
        double_sided=bool(mat.get("doubleSided", False)),
    )


@dataclass
class _Accessor:
    values: list[tuple[Any, ...]]
    component_type: int
    normalized: bool
    width: int

    def floats(self, normalize_ints: bool) -> list[tuple[float, ...]]:
        if self.component_type == _FLOAT or not normalize_ints:
            return [tuple(float(v) for v in item) for item in self.values]
        limit = _COMPONENTS[self.component_type][1]
        return [tuple(max(v / limit, -1.0) for v in item) for item in self.values]


class _Document:
    def __init__(self, data: bytes) -> None:
        if data[:4] == _GLB_MAGIC:
            json_bytes, blob = _split_glb(data)
        else:
            json_bytes, blob = data, None
        try:
            root = json.loads(json_bytes)
        except ValueError as exc:
            raise GltfParseError(f"invalid JSON: {exc}") from exc
        if not isinstance(root, dict) or not isinstance(root.get("asset"), dict):
            raise GltfParseError("missing required field 'asset'")
        self.root = root
        self.buffers = [self._load_buffer(buf, blob) for buf in root.get("buffers", [])]
        self.images = [self._load_image(img) for img in root.get("images", [])]

    def item(self, kind: str, index: Any) -> dict[str, Any]:
        items = self.root.get(kind, [])
        if not isinstance(index, int) or not 0 <= index < len(items):
            raise GltfParseError(f"invalid index {index!r} into {kind}")
        return items[index]

    @staticmethod
    def _load_buffer(buf: dict[str, Any], blob: bytes | None) -> bytes:
        if "uri" in buf:
            data = _load_uri(buf["uri"])
        elif blob is None:
            raise GltfParseError("buffer refers to a missing binary chunk")
        else:
            data = blob
        if len(data) < _field(buf, "byteLength"):
            raise GltfParseError("buffer is shorter than its byteLength")
        return data

    def _load_image(self, img: dict[str, Any]) -> ImageData:
        if "bufferView" in img:
            data, _ = self._view(img["bufferView"])
        elif "uri" in img:
            data = _load_uri(img["uri"])
        else:
            raise GltfParseError("image has neither bufferView nor uri")
        return _decode_image(data)

    def _view(self, index: Any) -> tuple[bytes, int | None]:
        view = self.item("bufferViews", index)
        buffer_index = _field(view, "buffer")
        if not isinstance(buffer_index, int) or not 0 <= buffer_index < len(self.buffers):
            raise GltfParseError(f"invalid buffer index {buffer_index!r}")
        buffer = self.buffers[buffer_index]
        start = view.get("byteOffset", 0)
        end = start + _field(view, "byteLength")
        if end > len(buffer):
            raise GltfParseError("buffer view exceeds its buffer")
        return buffer[start:end], view.get("byteStride")

    def _elements(
        self, view_index: Any, byte_offset: int, count: int, component_type: int, width: int
    ) -> list[tuple[Any, ...]]:
        code = _COMPONENTS[component_type][0]
        layout = struct.Struct("<" + code * width)
        data, stride = self._view(view_index)
        stride = stride or layout.size
        if count and byte_offset + stride * (count - 1) + layout.size > len(data):
            raise GltfParseError("accessor exceeds its buffer view")
        return [layout.unpack_from(data, byte_offset + stride * i) for i in range(count)]

    def accessor(self, index: Any, widths: set[int]) -> _Accessor:
        acc = self.item("accessors", index)
        component_type = _field(acc, "componentType")
        if component_type not in _COMPONENTS:
            raise GltfParseError(f"invalid componentType {component_type!r}")
        width = _WIDTHS.get(_field(acc, "type"))
        if width not in widths:
            raise GltfParseError(f"unexpected accessor type {acc['type']!r}")
        count = _field(acc, "count")
        if "bufferView" in acc:
            values = self._elements(
                acc["bufferView"], acc.get("byteOffset", 0), count, component_type, width
            )
        else:
            zero = 0.0 if component_type == _FLOAT else 0
            values = [(zero,) * width] * count
        sparse = acc.get("sparse")
        if sparse is not None:
            self._apply_sparse(sparse, values, component_type, width)
        return _Accessor(values, component_type, bool(acc.get("normalized", False)), width)

    def _apply_sparse(
        self, sparse: dict[str, Any], values: list[tuple[Any, ...]], component_type: int, width: int
    ) -> None:
        count = _field(sparse, "count")
        idx = _field(sparse, "indices")
        vals = _field(sparse, "values")
        idx_type = _field(idx, "componentType")
        if idx_type not in (5121, 5123, 5125):
            raise GltfParseError(f"invalid sparse index componentType {idx_type!r}")
        targets = self._elements(_field(idx, "bufferView"), idx.get("byteOffset", 0), count, idx_type, 1)
        replacements = self._elements(
            _field(vals, "bufferView"), vals.get("byteOffset", 0), count, component_type, width
        )
        for (target,), value in zip(targets, replacements):
            if target >= len(values):
                raise GltfParseError("sparse index out of range")
            values[target] = value

    def texture_image(self, info: dict[str, Any] | None) -> RgbaImage | None:
        if info is None:
            return None
        texture = self.item("textures", _field(info, "index"))
        source = texture.get("source")
        if not isinstance(source, int) or not 0 <= source < len(self.images):
            return None
        img = self.images[source]
        return RgbaImage(data=to_rgba8(img), width=img.width, height=img.height)

    def primitive(self, prim: dict[str, Any]) -> GltfPrimitive:
        attributes = _field(prim, "attributes")
        if "POSITION" not in attributes:
            raise MissingPositionsError()
        positions = self.accessor(attributes["POSITION"], {3}).floats(False)
        count = len(positions)

        def per_vertex(name: str, widths: set[int], normalize_ints: bool, default: tuple[float, ...]):
            if name not in attributes:
                return [default] * count
            acc = self.accessor(attributes[name], widths)
            values = acc.floats(normalize_ints or acc.normalized)
            if len(values) != count:
                raise GltfParseError(f"{name} count does not match POSITION count")
            return values

        normals = per_vertex("NORMAL", {3}, False, (0.0, 1.0, 0.0))
        uv0s = per_vertex("TEXCOORD_0", {2}, True, (0.0, 0.0))
        uv1s = per_vertex("TEXCOORD_1", {2}, True, (0.0, 0.0))
        colors = [
            c if len(c) == 4 else (*c, 1.0)
            for c in per_vertex("COLOR_0", {3, 4}, True, (1.0, 1.0, 1.0, 1.0))
        ]
        tangents: list[tuple[float, ...]] = []
        if "TANGENT" in attributes:
            acc = self.accessor(attributes["TANGENT"], {4})
            tangents = acc.floats(acc.normalized)

        if "indices" in prim:
            indices = [int(i) for (i,) in self.accessor(prim["indices"], {1}).values]
        else:
            indices = list(range(count))

        vertices = []
        for pos, n, uv0, uv1, color, t in zip(
            positions, normals, uv0s, uv1s, colors, chain(tangents, repeat(None))
        ):
            if t is not None:
                tangent = (t[0], t[1], t[2])
                bitangent = cross_scaled(n, tangent, t[3])
            else:
                tangent, bitangent = orthonormal_tangent_frame(n)
            vertices.append(
                Vertex(
                    position=pos,
                    uv0=uv0,
                    uv1=uv1,
                    normal=n,
                    tangent=tangent,
                    bitangent=bitangent,
                    color=color,
                )
            )

        mat = self.item("materials", prim["material"]) if "material" in prim else {}
        pbr = mat.get("pbrMetallicRoughness", {})
        return GltfPrimitive(
            mesh=Mesh(vertices, indices),
            material=_convert_material(mat),
            albedo_image=self.texture_image(pbr.get("baseColorTexture")),
            normal_image=self.texture_image(mat.get("normalTexture")),
            metallic_roughness_image=self.texture_image(pbr.get("metallicRoughnessTexture")),
            emissive_image=self.texture_image(mat.get("emissiveTexture")),
        )


def load_from_bytes(data: bytes) -> list[GltfPrimitive]:
    """Load every mesh primitive of a GLB or glTF document held in ``data``."""
    doc = _Document(bytes(data))
    return [
        doc.primitive(prim)
        for mesh in doc.root.get("meshes", [])
        for prim in _field(mesh, "primitives")
    ]