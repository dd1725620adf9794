#!/usr/bin/env python3

import logging
import struct
from dataclasses import dataclass
from typing import Iterator, List, Optional

from png_chunks import PNG_SIGNATURE, Chunk, ChunkType, crc32, is_valid_chunk_type
from png_errors import (
    IntegrityError,
    InvalidChunkTypeError,
    InvalidHeaderError,
    MissingTerminatorError,
    TruncatedDataError,
)

logger = logging.getLogger(__name__)


@dataclass
class ChunkInfo:
    index: int
    offset: int
    chunk: Chunk
    crc: int

    @property
    def length(self) -> int:
        return len(self.chunk.data)

    @property
    def end(self) -> int:
        return self.offset + 12 + self.length


def has_png_signature(data: bytes) -> bool:
    return len(data) >= len(PNG_SIGNATURE) and data[:len(PNG_SIGNATURE)] == PNG_SIGNATURE


def read_exact(data: bytes, offset: int, n: int, what: str, chunk_type: Optional[str] = None) -> bytes:
    if offset + n > len(data):
        where = f" of chunk {chunk_type}" if chunk_type else ""
        raise TruncatedDataError(
            f"Unexpected end of data while reading {what}{where} at offset {offset}",
            offset=offset,
            chunk_type=chunk_type,
        )
    return data[offset:offset + n]


def scan_chunks(data: bytes) -> Iterator[ChunkInfo]:
    """
    Walk the chunk records of a PNG byte string, verifying every CRC.
    Stops after IEND; running off the end of the buffer without one
    raises MissingTerminatorError.
    """
    if not has_png_signature(data):
        raise InvalidHeaderError("Invalid PNG signature. This is not a valid PNG file.")

    offset = len(PNG_SIGNATURE)
    index = 0
    while True:
        if offset >= len(data):
            raise MissingTerminatorError(f"PNG data ended after {index} chunks without an IEND chunk")

        length = struct.unpack(">I", read_exact(data, offset, 4, "chunk length"))[0]
        type_bytes = read_exact(data, offset + 4, 4, "chunk type")
        ctype = type_bytes.decode("latin-1")

        payload = read_exact(data, offset + 8, length, "chunk data", ctype)
        crc_read = struct.unpack(">I", read_exact(data, offset + 8 + length, 4, "CRC", ctype))[0]

        # CRC first, so a damaged tag reports as corruption
        crc_calc = crc32(payload, crc32(type_bytes))
        if crc_calc != crc_read:
            raise IntegrityError(ctype, offset, expected=crc_calc, actual=crc_read)
        if not is_valid_chunk_type(ctype):
            raise InvalidChunkTypeError(f"Invalid chunk type {type_bytes!r} at offset {offset}")

        info = ChunkInfo(index=index, offset=offset, chunk=Chunk(ctype, payload), crc=crc_read)
        logger.debug("chunk %d %s length=%d offset=%d", index, ctype, length, offset)
        yield info

        offset = info.end
        index += 1
        if ctype == ChunkType.IEND:
            if offset < len(data):
                logger.warning("ignoring %d trailing bytes after IEND", len(data) - offset)
            return


def read_chunks(data: bytes) -> List[Chunk]:
    """Parse a full PNG byte string into its ordered chunk list (IEND included)."""
    return [info.chunk for info in scan_chunks(data)]


def trailing_bytes(data: bytes) -> bytes:
    end = len(PNG_SIGNATURE)
    for info in scan_chunks(data):
        end = info.end
    return data[end:]
