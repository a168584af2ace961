import io
import struct
import zlib

import pytest
from PIL import Image

PNG_CHANNELS = {0: 1, 2: 3, 3: 1, 4: 2, 6: 4}


@pytest.fixture
def make_image():
    """Factory producing encoded image bytes created with PIL."""
    def _make(mode="RGB", fmt="PNG", size=(2, 2)):
        img = Image.new(mode, size)
        buf = io.BytesIO()
        img.save(buf, format=fmt)
        return buf.getvalue()
    return _make


@pytest.fixture
def make_png():
    """
    Factory writing a PNG chunk by chunk, for bit depths PIL can't save.
    With pixels=False the IDAT is left empty, enough for PIL to read the header.
    """
    def chunk(tag, body):
        return struct.pack(">I", len(body)) + tag + body + struct.pack(">I", zlib.crc32(tag + body))

    def _make(color_type=2, bit_depth=8, size=(2, 2), pixels=True):
        width, height = size
        header = struct.pack(">IIBBBBB", width, height, bit_depth, color_type, 0, 0, 0)
        row = 1 + (width * PNG_CHANNELS[color_type] * bit_depth + 7) // 8
        raw = b"\x00" * row * height if pixels else b""

        data = b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", header)
        if color_type == 3:
            data += chunk(b"PLTE", b"\x00\x00\x00" * (1 << bit_depth))
        data += chunk(b"IDAT", zlib.compress(raw)) + chunk(b"IEND", b"")
        return data
    return _make


@pytest.fixture
def png_bytes(make_image):
    return make_image("RGB", "PNG", (4, 3))
