import logging
import zlib
from typing import Optional

from png_errors import DecompressionLimitError, MalformedStreamError

logger = logging.getLogger(__name__)

COMPRESSION_LEVEL = 9
RAW_DEFLATE = -zlib.MAX_WBITS
ZLIB_FRAMED = zlib.MAX_WBITS

# Upper bound on inflated text; a small zTXt payload can otherwise expand ~1000x.
MAX_INFLATED_BYTES = 64 * 1024 * 1024


def set_max_inflated_bytes(limit: int) -> None:
    global MAX_INFLATED_BYTES
    if limit <= 0:
        raise ValueError(f"inflate limit must be positive, got {limit}")
    MAX_INFLATED_BYTES = limit


def compress(data: bytes) -> bytes:
    """Raw deflate, no zlib or gzip framing."""
    co = zlib.compressobj(COMPRESSION_LEVEL, zlib.DEFLATED, RAW_DEFLATE)
    return co.compress(data) + co.flush()


def _inflate(data: bytes, wbits: int, max_length: int) -> bytes:
    do = zlib.decompressobj(wbits)
    # one byte of headroom tells "exactly at the limit" apart from "over it"
    out = do.decompress(data, max_length + 1)
    if len(out) > max_length:
        raise DecompressionLimitError(
            f"Inflated text exceeds {max_length} bytes ({len(data)} compressed bytes)",
            limit=max_length,
        )
    out += do.flush()
    if not do.eof:
        raise zlib.error("incomplete or truncated stream")
    if do.unused_data:
        raise zlib.error(f"{len(do.unused_data)} bytes after end of stream")
    return out


def decompress(data: bytes, max_length: Optional[int] = None) -> bytes:
    """
    Inflate a raw deflate stream, falling back to zlib framing.

    Output beyond ``max_length`` bytes (default ``MAX_INFLATED_BYTES``) raises
    DecompressionLimitError instead of being produced.
    """
    limit = MAX_INFLATED_BYTES if max_length is None else max_length
    try:
        return _inflate(data, RAW_DEFLATE, limit)
    except zlib.error as raw_err:
        # most encoders in the wild wrap the stream in zlib framing
        try:
            out = _inflate(data, ZLIB_FRAMED, limit)
        except zlib.error:
            raise MalformedStreamError(f"Invalid deflate stream: {raw_err}") from raw_err
        logger.debug("inflated %d bytes using zlib framing", len(data))
        return out
