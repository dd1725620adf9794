import struct
import zlib

import pytest

from png_chunks import PNG_SIGNATURE, crc32

# 1x1, 8-bit grayscale, no interlace
IHDR_DATA = struct.pack(">IIBBBBB", 1, 1, 8, 0, 0, 0, 0)
# one scanline: filter byte + one pixel
IDAT_DATA = zlib.compress(b"\x00\x7f")


def raw_chunk(ctype: bytes, data: bytes = b"") -> bytes:
    return struct.pack(">I", len(data)) + ctype + data + struct.pack(">I", crc32(ctype + data))


def build_png(*extra: bytes, after_idat: bytes = b"") -> bytes:
    """Signature, IHDR, ``extra`` chunks, IDAT, ``after_idat``, IEND."""
    return (
        PNG_SIGNATURE
        + raw_chunk(b"IHDR", IHDR_DATA)
        + b"".join(extra)
        + raw_chunk(b"IDAT", IDAT_DATA)
        + after_idat
        + raw_chunk(b"IEND")
    )


@pytest.fixture
def minimal_png() -> bytes:
    return build_png()


@pytest.fixture
def png_with_text() -> bytes:
    return build_png(
        raw_chunk(b"gAMA", struct.pack(">I", 45455)),
        raw_chunk(b"tEXt", b"Author\x00John Doe"),
        raw_chunk(b"tEXt", b"Title\x00Sunset"),
    )
