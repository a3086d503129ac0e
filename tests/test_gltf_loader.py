import base64
import io
import json
import math
import struct

import pytest
from PIL import Image

from w3dkit.gltf_loader import (
    GltfError,
    GltfParseError,
    ImageData,
    ImageFormat,
    MissingPositionsError,
    cross_scaled,
    cross_vecs,
    load_from_bytes,
    normalize,
    orthonormal_tangent_frame,
    to_rgba8,
)
from w3dkit.material import AlphaMode
from w3dkit.vector import Vec3

_CODES = {5126: "f", 5121: "B", 5123: "H", 5125: "I"}


class _Builder:
    def __init__(self):
        self.blob = bytearray()
        self.views = []
        self.accessors = []

    def view(self, raw):
        while len(self.blob) % 4:
            self.blob.append(0)
        self.views.append({"buffer": 0, "byteOffset": len(self.blob), "byteLength": len(raw)})
        self.blob.extend(raw)
        return len(self.views) - 1

    def accessor(self, values, acc_type, component_type=5126, normalized=False):
        flat = [v for item in values for v in (item if isinstance(item, (tuple, list)) else (item,))]
        raw = struct.pack(f"<{len(flat)}{_CODES[component_type]}", *flat)
        acc = {
            "bufferView": self.view(raw),
            "componentType": component_type,
            "count": len(values),
            "type": acc_type,
        }
        if normalized:
            acc["normalized"] = True
        self.accessors.append(acc)
        return len(self.accessors) - 1

    def root(self, primitives, **extra):
        root = {
            "asset": {"version": "2.0"},
            "buffers": [{"byteLength": len(self.blob)}],
            "bufferViews": self.views,
            "accessors": self.accessors,
            "meshes": [{"primitives": primitives}],
        }
        root.update(extra)
        return root

    def json_bytes(self, root):
        uri = "data:application/octet-stream;base64," + base64.b64encode(bytes(self.blob)).decode()
        root["buffers"][0]["uri"] = uri
        return json.dumps(root).encode()

    def glb_bytes(self, root):
        js = json.dumps(root).encode()
        js += b" " * (-len(js) % 4)
        blob = bytes(self.blob) + b"\0" * (-len(self.blob) % 4)
        body = struct.pack("<II", len(js), 0x4E4F534A) + js + struct.pack("<II", len(blob), 0x004E4942) + blob
        return struct.pack("<4sII", b"glTF", 2, 12 + len(body)) + body


TRI = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 2.0, -1.0)]


def _png(mode, size, pixels):
    img = Image.new(mode, size)
    img.putdata(pixels)
    out = io.BytesIO()
    img.save(out, format="PNG")
    return "data:image/png;base64," + base64.b64encode(out.getvalue()).decode()


# ── normalize ────────────────────────────────────────────────────────────────


def test_normalize_unit_vector_unchanged():
    v = normalize((1.0, 0.0, 0.0))
    assert v == pytest.approx((1.0, 0.0, 0.0), abs=1e-6)


def test_normalize_scaled_vector():
    assert normalize((3.0, 0.0, 0.0))[0] == pytest.approx(1.0, abs=1e-6)


def test_normalize_near_zero_returns_fallback():
    assert normalize((0.0, 0.0, 0.0)) == (1.0, 0.0, 0.0)


# ── cross_vecs / cross_scaled ────────────────────────────────────────────────


def test_cross_x_y_gives_z():
    assert cross_vecs((1.0, 0.0, 0.0), (0.0, 1.0, 0.0)) == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)


def test_cross_scaled_positive_handedness():
    b = cross_scaled((0.0, 0.0, 1.0), (1.0, 0.0, 0.0), 1.0)
    assert b == pytest.approx((0.0, 1.0, 0.0), abs=1e-6)


def test_cross_scaled_negative_handedness_flips():
    b = cross_scaled((0.0, 0.0, 1.0), (1.0, 0.0, 0.0), -1.0)
    assert b[1] == pytest.approx(-1.0, abs=1e-6)


# ── orthonormal_tangent_frame ────────────────────────────────────────────────


def _len(v):
    return math.sqrt(sum(c * c for c in v))


def _dot(a, b):
    return sum(x * y for x, y in zip(a, b))


def test_tangent_frame_orthonormal_for_z_normal():
    n = (0.0, 0.0, 1.0)
    t, b = orthonormal_tangent_frame(n)
    assert _len(t) == pytest.approx(1.0, abs=1e-5)
    assert _len(b) == pytest.approx(1.0, abs=1e-5)
    assert abs(_dot(t, n)) < 1e-5
    assert abs(_dot(b, n)) < 1e-5


def test_tangent_frame_orthonormal_for_y_normal():
    n = (0.0, 1.0, 0.0)
    t, _ = orthonormal_tangent_frame(n)
    assert _len(t) == pytest.approx(1.0, abs=1e-5)
    assert abs(_dot(t, n)) < 1e-5


# ── to_rgba8 ─────────────────────────────────────────────────────────────────


def _img(fmt, pixels):
    return ImageData(format=fmt, width=1, height=1, pixels=bytes(pixels))


def test_to_rgba8_r8g8b8a8_passthrough():
    assert to_rgba8(_img(ImageFormat.R8G8B8A8, [10, 20, 30, 200])) == bytes([10, 20, 30, 200])


def test_to_rgba8_r8g8b8_adds_alpha():
    assert to_rgba8(_img(ImageFormat.R8G8B8, [1, 2, 3])) == bytes([1, 2, 3, 255])


def test_to_rgba8_r8g8_pads_blue_alpha():
    assert to_rgba8(_img(ImageFormat.R8G8, [50, 100])) == bytes([50, 100, 0, 255])


def test_to_rgba8_r8_grayscale_expands():
    assert to_rgba8(_img(ImageFormat.R8, [128])) == bytes([128, 128, 128, 255])


def test_to_rgba8_r16_takes_high_byte():
    assert to_rgba8(_img(ImageFormat.R16, [0xAB, 0xCD])) == bytes([0xCD, 0xCD, 0xCD, 255])


def test_to_rgba8_r16g16b16a16_takes_high_bytes():
    out = to_rgba8(_img(ImageFormat.R16G16B16A16, [0, 1, 0, 2, 0, 3, 0, 4]))
    assert out == bytes([1, 2, 3, 4])


def test_to_rgba8_r16g16b16_and_r16g16():
    assert to_rgba8(_img(ImageFormat.R16G16B16, [0, 9, 0, 8, 0, 7])) == bytes([9, 8, 7, 255])
    assert to_rgba8(_img(ImageFormat.R16G16, [0, 9, 0, 8])) == bytes([9, 8, 0, 255])


def test_to_rgba8_r32g32b32_float_clamps_and_converts():
    pixels = struct.pack("<3f", 0.5, 1.0, 2.0)
    out = to_rgba8(_img(ImageFormat.R32G32B32FLOAT, pixels))
    assert out[0] == int(0.5 * 255.0)
    assert out[1] == 255
    assert out[2] == 255
    assert out[3] == 255


def test_to_rgba8_r32g32b32a32_float_converts():
    pixels = struct.pack("<4f", 0.25, 0.5, 0.75, 1.0)
    out = to_rgba8(_img(ImageFormat.R32G32B32A32FLOAT, pixels))
    assert list(out) == [int(0.25 * 255.0), int(0.5 * 255.0), int(0.75 * 255.0), 255]


def test_to_rgba8_rejects_partial_pixel():
    with pytest.raises(ValueError):
        to_rgba8(_img(ImageFormat.R8G8B8, [1, 2]))


# ── load_from_bytes ──────────────────────────────────────────────────────────


def test_positions_only_uses_defaults():
    b = _Builder()
    pos = b.accessor(TRI, "VEC3")
    prims = load_from_bytes(b.json_bytes(b.root([{"attributes": {"POSITION": pos}}])))
    assert len(prims) == 1
    mesh = prims[0].mesh
    assert mesh.indices == [0, 1, 2]
    v = mesh.vertices[0]
    assert v.normal == (0.0, 1.0, 0.0)
    assert v.uv0 == (0.0, 0.0)
    assert v.color == (1.0, 1.0, 1.0, 1.0)
    assert v.tangent == pytest.approx((0.0, 0.0, 1.0))
    assert v.bitangent == pytest.approx((1.0, 0.0, 0.0))
    assert mesh.aabb.min == Vec3(0.0, 0.0, -1.0)
    assert mesh.aabb.max == Vec3(1.0, 2.0, 0.0)
    assert prims[0].albedo_image is None


def test_attributes_indices_and_tangents():
    b = _Builder()
    pos = b.accessor(TRI, "VEC3")
    nrm = b.accessor([(0.0, 0.0, 1.0)] * 3, "VEC3")
    tan = b.accessor([(1.0, 0.0, 0.0, -1.0)] * 3, "VEC4")
    uv = b.accessor([(0.0, 0.0), (65535, 0), (0, 65535)], "VEC2", component_type=5123, normalized=True)
    col = b.accessor([(255, 0, 51)] * 3, "VEC3", component_type=5121, normalized=True)
    idx = b.accessor([2, 1, 0], "SCALAR", component_type=5123)
    prim = {
        "attributes": {"POSITION": pos, "NORMAL": nrm, "TANGENT": tan, "TEXCOORD_0": uv, "COLOR_0": col},
        "indices": idx,
    }
    (result,) = load_from_bytes(b.json_bytes(b.root([prim])))
    assert result.mesh.indices == [2, 1, 0]
    v1 = result.mesh.vertices[1]
    assert v1.position == (1.0, 0.0, 0.0)
    assert v1.uv0 == (1.0, 0.0)
    assert v1.uv1 == (0.0, 0.0)
    assert v1.tangent == (1.0, 0.0, 0.0)
    assert v1.bitangent == pytest.approx((0.0, -1.0, 0.0))
    assert v1.color == pytest.approx((1.0, 0.0, 0.2, 1.0))


def test_glb_container_loads():
    b = _Builder()
    pos = b.accessor(TRI, "VEC3")
    prims = load_from_bytes(b.glb_bytes(b.root([{"attributes": {"POSITION": pos}}])))
    assert [v.position for v in prims[0].mesh.vertices] == TRI


def test_sparse_accessor_overrides_zeros():
    b = _Builder()
    idx_view = b.view(struct.pack("<H", 2))
    val_view = b.view(struct.pack("<3f", 1.0, 2.0, 3.0))
    b.accessors.append({
        "componentType": 5126,
        "count": 3,
        "type": "VEC3",
        "sparse": {
            "count": 1,
            "indices": {"bufferView": idx_view, "componentType": 5123},
            "values": {"bufferView": val_view},
        },
    })
    prims = load_from_bytes(b.json_bytes(b.root([{"attributes": {"POSITION": 0}}])))
    positions = [v.position for v in prims[0].mesh.vertices]
    assert positions == [(0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (1.0, 2.0, 3.0)]


def test_material_conversion():
    b = _Builder()
    pos = b.accessor(TRI, "VEC3")
    material = {
        "name": "steel",
        "pbrMetallicRoughness": {
            "baseColorFactor": [0.5, 0.25, 1.0, 0.75],
            "metallicFactor": 0.9,
            "roughnessFactor": 0.1,
        },
        "emissiveFactor": [0.1, 0.2, 0.3],
        "alphaMode": "MASK",
        "alphaCutoff": 0.3,
        "doubleSided": True,
    }
    root = b.root([{"attributes": {"POSITION": pos}, "material": 0}], materials=[material])
    mat = load_from_bytes(b.json_bytes(root))[0].material
    assert mat.name == "steel"
    assert mat.albedo == (0.5, 0.25, 1.0, 0.75)
    assert mat.metallic == 0.9
    assert mat.roughness == 0.1
    assert mat.emissive == (0.1, 0.2, 0.3)
    assert mat.alpha_mode is AlphaMode.MASK
    assert mat.alpha_cutoff == 0.3
    assert mat.double_sided is True


def test_default_material_uses_gltf_defaults():
    b = _Builder()
    pos = b.accessor(TRI, "VEC3")
    mat = load_from_bytes(b.json_bytes(b.root([{"attributes": {"POSITION": pos}}])))[0].material
    assert mat.name == ""
    assert mat.albedo == (1.0, 1.0, 1.0, 1.0)
    assert mat.metallic == 1.0
    assert mat.roughness == 1.0
    assert mat.alpha_mode is AlphaMode.OPAQUE
    assert mat.alpha_cutoff == 0.5


def test_textures_are_decoded_to_rgba():
    b = _Builder()
    pos = b.accessor(TRI, "VEC3")
    images = [
        {"uri": _png("RGB", (2, 1), [(10, 20, 30), (40, 50, 60)])},
        {"uri": _png("RGBA", (1, 1), [(1, 2, 3, 4)])},
    ]
    material = {
        "pbrMetallicRoughness": {"baseColorTexture": {"index": 0}},
        "normalTexture": {"index": 1},
    }
    root = b.root(
        [{"attributes": {"POSITION": pos}, "material": 0}],
        materials=[material],
        images=images,
        textures=[{"source": 0}, {"source": 1}],
    )
    prim = load_from_bytes(b.json_bytes(root))[0]
    assert prim.albedo_image.data == bytes([10, 20, 30, 255, 40, 50, 60, 255])
    assert (prim.albedo_image.width, prim.albedo_image.height) == (2, 1)
    assert prim.normal_image.data == bytes([1, 2, 3, 4])
    assert prim.metallic_roughness_image is None
    assert prim.emissive_image is None


def test_missing_positions_raises():
    b = _Builder()
    nrm = b.accessor([(0.0, 1.0, 0.0)], "VEC3")
    data = b.json_bytes(b.root([{"attributes": {"NORMAL": nrm}}]))
    with pytest.raises(MissingPositionsError) as info:
        load_from_bytes(data)
    assert str(info.value) == "primitive missing POSITION attribute"
    assert isinstance(info.value, GltfError)


def test_invalid_json_raises_parse_error():
    with pytest.raises(GltfParseError) as info:
        load_from_bytes(b"{not json")
    assert str(info.value).startswith("gltf parse error: ")


def test_missing_asset_raises_parse_error():
    with pytest.raises(GltfParseError):
        load_from_bytes(json.dumps({"meshes": []}).encode())


def test_external_buffer_uri_raises():
    root = {"asset": {"version": "2.0"}, "buffers": [{"uri": "mesh.bin", "byteLength": 4}]}
    with pytest.raises(GltfParseError):
        load_from_bytes(json.dumps(root).encode())


def test_wrong_glb_version_raises():
    data = struct.pack("<4sII", b"glTF", 1, 12)
    with pytest.raises(GltfParseError):
        load_from_bytes(data)


def test_invalid_alpha_mode_raises():
    b = _Builder()
    pos = b.accessor(TRI, "VEC3")
    root = b.root([{"attributes": {"POSITION": pos}, "material": 0}], materials=[{"alphaMode": "GLOW"}])
    with pytest.raises(GltfParseError):
        load_from_bytes(b.json_bytes(root))


def test_mismatched_attribute_count_raises():
    b = _Builder()
    pos = b.accessor(TRI, "VEC3")
    nrm = b.accessor([(0.0, 1.0, 0.0)], "VEC3")
    with pytest.raises(GltfParseError):
        load_from_bytes(b.json_bytes(b.root([{"attributes": {"POSITION": pos, "NORMAL": nrm}}])))


def test_undecodable_image_raises():
    b = _Builder()
    pos = b.accessor(TRI, "VEC3")
    bad = "data:image/png;base64," + base64.b64encode(b"not an image").decode()
    root = b.root([{"attributes": {"POSITION": pos}}], images=[{"uri": bad}])
    with pytest.raises(GltfParseError):
        load_from_bytes(b.json_bytes(root))


def test_document_without_meshes_is_empty():
    assert load_from_bytes(json.dumps({"asset": {"version": "2.0"}}).encode()) == []