import struct
from typing import Iterable

from png_chunks import PNG_SIGNATURE, Chunk
from png_errors import InvalidLengthError

# PNG caps chunk lengths at 2^31 - 1
MAX_CHUNK_LENGTH = 0x7FFFFFFF


def encode_chunk(chunk: Chunk) -> bytes:
    if len(chunk.data) > MAX_CHUNK_LENGTH:
        raise InvalidLengthError(f"Chunk {chunk.type} payload of {len(chunk.data)} bytes exceeds the PNG limit")
    return b"".join([
        struct.pack(">I", len(chunk.data)),
        chunk.type_bytes,
        chunk.data,
        struct.pack(">I", chunk.crc),
    ])


def write_chunks(chunks: Iterable[Chunk]) -> bytes:
    """Serialize chunks behind the PNG signature, recomputing every CRC."""
    out = bytearray(PNG_SIGNATURE)
    for chunk in chunks:
        out += encode_chunk(chunk)
    return bytes(out)
