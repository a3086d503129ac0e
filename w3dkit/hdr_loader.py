"""Radiance RGBE (.hdr) image decoding to linear float RGB."""

from __future__ import annotations

import math
from dataclasses import dataclass

_SIGNATURE = b"#?RADIANCE"
_RGBE_FORMAT = b"32-bit_rle_rgbe"
_MIN_RLE_WIDTH = 8
_MAX_RLE_WIDTH = 0x7FFF

Rgbe = tuple[int, int, int, int]


class HdrError(Exception):
    """The data is not a decodable Radiance HDR image."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"image decode error: {reason}")
        self.reason = reason


@dataclass
class HdrImage:
    """Equirectangular HDR image with linear RGB float pixels in row-major order."""

    pixels: list[tuple[float, float, float]]
    width: int
    height: int


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def read(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise HdrError("unexpected end of data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def byte(self) -> int:
        return self.read(1)[0]

    def line(self) -> bytes:
        end = self._data.find(b"\n", self._pos)
        if end < 0:
            raise HdrError("unexpected end of header")
        line = self._data[self._pos:end]
        self._pos = end + 1
        return line.rstrip(b"\r")


def _read_header(reader: _Reader) -> tuple[int, int]:
    if reader.line().strip() != _SIGNATURE:
        raise HdrError("missing Radiance signature")
    while True:
        line = reader.line().strip()
        if not line:
            break
        if line.startswith(b"#"):
            continue
        key, sep, value = line.partition(b"=")
        if sep and key.strip() == b"FORMAT" and value.strip() != _RGBE_FORMAT:
            raise HdrError(f"unsupported pixel format {value.strip().decode(errors='replace')}")
    parts = reader.line().split()
    if len(parts) != 4 or parts[0] != b"-Y" or parts[2] != b"+X":
        raise HdrError("unsupported image orientation")
    try:
        height, width = int(parts[1]), int(parts[3])
    except ValueError:
        raise HdrError("malformed dimensions line") from None
    if height < 0 or width < 0:
        raise HdrError("negative image dimensions")
    return width, height


def _read_old_rle(reader: _Reader, width: int, first: Rgbe | None = None) -> list[Rgbe]:
    pixels: list[Rgbe] = []
    shift = 0
    pending = first
    while len(pixels) < width:
        rgbe = pending if pending is not None else tuple(reader.read(4))
        pending = None
        if rgbe[:3] == (1, 1, 1):
            if not pixels:
                raise HdrError("run without a preceding pixel")
            count = rgbe[3] << shift
            if len(pixels) + count > width:
                raise HdrError("run overflows scanline")
            pixels.extend([pixels[-1]] * count)
            shift += 8
        else:
            pixels.append(rgbe)
            shift = 0
    return pixels


def _read_channel(reader: _Reader, width: int) -> bytearray:
    out = bytearray()
    while len(out) < width:
        count = reader.byte()
        if count > 128:
            run = count - 128
            if len(out) + run > width:
                raise HdrError("run overflows scanline")
            out.extend(bytes([reader.byte()]) * run)
        else:
            if count == 0 or len(out) + count > width:
                raise HdrError("invalid run length")
            out.extend(reader.read(count))
    return out


def _read_scanline(reader: _Reader, width: int) -> list[Rgbe]:
    if not _MIN_RLE_WIDTH <= width <= _MAX_RLE_WIDTH:
        return _read_old_rle(reader, width)
    first = tuple(reader.read(4))
    if first[0] != 2 or first[1] != 2 or first[2] & 0x80:
        return _read_old_rle(reader, width, first)
    if (first[2] << 8 | first[3]) != width:
        raise HdrError("scanline width does not match image width")
    channels = [_read_channel(reader, width) for _ in range(4)]
    return list(zip(*channels))


def _to_linear(rgbe: Rgbe) -> tuple[float, float, float]:
    r, g, b, e = rgbe
    if e == 0:
        return (0.0, 0.0, 0.0)
    scale = math.ldexp(1.0, e - (128 + 8))
    return (r * scale, g * scale, b * scale)


def load_hdr_from_bytes(data: bytes) -> HdrImage:
    """Decode a Radiance HDR image held in memory."""
    reader = _Reader(data)
    width, height = _read_header(reader)
    pixels = [
        _to_linear(rgbe)
        for _ in range(height)
        for rgbe in _read_scanline(reader, width)
    ]
    return HdrImage(pixels=pixels, width=width, height=height)