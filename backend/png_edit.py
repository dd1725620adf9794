"""
Mutations over an in-memory chunk list.

Every function works on the caller's list in place and keeps the list's
framing intact: IHDR and IEND cannot be removed, and a missing IEND is
placed last. Chunks are never modified, only swapped for new values.
"""
import logging
from typing import Dict, List, Mapping, Optional, Tuple

from png_chunks import Chunk, ChunkType
from png_errors import InvalidOperationError
from png_read import read_chunks
from png_text import (
    PhysicalResolution,
    ResolutionUnit,
    decode_phys,
    decode_text_chunk,
    phys_chunk,
    text_chunk_for,
)
from png_write import write_chunks

logger = logging.getLogger(__name__)

FRAMING_TYPES = frozenset({ChunkType.IHDR.value, ChunkType.IEND.value})


def _find_index(chunks: List[Chunk], chunk_type: str) -> int:
    for i, c in enumerate(chunks):
        if c.type == chunk_type:
            return i
    return -1


def remove_chunks(chunks: List[Chunk], chunk_type: str) -> int:
    """Remove every chunk of ``chunk_type``; returns how many were removed."""
    if chunk_type in FRAMING_TYPES:
        raise InvalidOperationError(f"Refusing to remove {chunk_type}; the image would no longer parse.")
    before = len(chunks)
    chunks[:] = [c for c in chunks if c.type != chunk_type]
    removed = before - len(chunks)
    if removed:
        logger.debug("removed %d %s chunk(s)", removed, chunk_type)
    return removed


def insert_or_replace_chunk(chunks: List[Chunk], new_chunk: Chunk) -> int:
    """
    Place a single-instance chunk. An existing chunk of the same type is
    replaced where it stands; otherwise the chunk goes right after IHDR
    (or first, when there is no IHDR). A missing IEND is appended last.
    """
    if new_chunk.multi_instance:
        raise InvalidOperationError(
            f"Use add_or_update_text_chunk or add_chunk for multi-instance chunks like {new_chunk.type}."
        )

    index = _find_index(chunks, new_chunk.type)
    if index >= 0:
        chunks[index] = new_chunk
        logger.debug("replaced %s at index %d", new_chunk.type, index)
        return index

    if new_chunk.type == ChunkType.IEND:
        index = len(chunks)
    else:
        ihdr = _find_index(chunks, ChunkType.IHDR)
        index = ihdr + 1 if ihdr >= 0 else 0
    chunks.insert(index, new_chunk)
    logger.debug("inserted %s at index %d", new_chunk.type, index)
    return index


def add_chunk(chunks: List[Chunk], new_chunk: Chunk) -> int:
    """Add a multi-instance chunk just before IEND (or at the end without one)."""
    if not new_chunk.multi_instance:
        raise InvalidOperationError(
            f"Use insert_or_replace_chunk for single-instance chunks like {new_chunk.type}."
        )

    index = _find_index(chunks, ChunkType.IEND)
    if index < 0:
        index = len(chunks)
    chunks.insert(index, new_chunk)
    logger.debug("added %s at index %d", new_chunk.type, index)
    return index


def add_or_update_text_chunk(chunks: List[Chunk], new_chunk: Chunk) -> int:
    """
    Replace the first textual chunk (of any text type) carrying the same
    keyword as ``new_chunk``, or add it if none does. Existing chunks that
    fail to decode abort the update.
    """
    if not new_chunk.is_text:
        raise InvalidOperationError(
            f"add_or_update_text_chunk is only for textual chunks (tEXt, iTXt, zTXt), got {new_chunk.type}."
        )

    keyword = decode_text_chunk(new_chunk).keyword
    for i, chunk in enumerate(chunks):
        if chunk.is_text and decode_text_chunk(chunk).keyword == keyword:
            chunks[i] = new_chunk
            logger.debug("updated %r: %s -> %s at index %d", keyword, chunk.type, new_chunk.type, i)
            return i

    return add_chunk(chunks, new_chunk)


def add_or_update_text_chunks(chunks: List[Chunk], metadata: Mapping[str, str],
                              chunk_type: str = ChunkType.TEXT) -> List[int]:
    """Apply a keyword -> text mapping, writing each entry as ``chunk_type``."""
    return [
        add_or_update_text_chunk(chunks, text_chunk_for(chunk_type, keyword, text))
        for keyword, text in metadata.items()
    ]


def read_text_chunks(chunks: List[Chunk]) -> Dict[str, str]:
    """Keyword -> text for every textual chunk; later duplicates win."""
    metadata: Dict[str, str] = {}
    for chunk in chunks:
        if chunk.is_text:
            record = decode_text_chunk(chunk)
            metadata[record.keyword] = record.text
    return metadata


def remove_text_chunks(chunks: List[Chunk], keyword: str) -> int:
    before = len(chunks)
    chunks[:] = [
        c for c in chunks
        if not (c.is_text and decode_text_chunk(c).keyword == keyword)
    ]
    return before - len(chunks)


def get_physical_resolution(chunks: List[Chunk]) -> Optional[PhysicalResolution]:
    index = _find_index(chunks, ChunkType.PHYS)
    if index < 0:
        return None
    return decode_phys(chunks[index].data)


def set_physical_resolution(chunks: List[Chunk], x: int, y: int,
                            unit: int = ResolutionUnit.METER) -> int:
    return insert_or_replace_chunk(chunks, phys_chunk(x, y, unit))


def read_metadata(data: bytes) -> Tuple[Dict[str, str], Optional[PhysicalResolution]]:
    chunks = read_chunks(data)
    return read_text_chunks(chunks), get_physical_resolution(chunks)


def write_metadata(data: bytes, text: Optional[Mapping[str, str]] = None,
                   phys: Optional[PhysicalResolution] = None,
                   chunk_type: str = ChunkType.TEXT) -> bytes:
    chunks = read_chunks(data)
    if text:
        add_or_update_text_chunks(chunks, text, chunk_type)
    if phys is not None:
        set_physical_resolution(chunks, *phys)
    return write_chunks(chunks)
