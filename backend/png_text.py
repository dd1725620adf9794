"""
Payload codecs for the textual chunks (tEXt, zTXt, iTXt) and pHYs.

tEXt and zTXt carry Latin-1 text; iTXt carries UTF-8 with an optional
language tag and translated keyword. Compressed payloads use the
adapter in png_deflate.
"""
import struct
from enum import IntEnum
from typing import Callable, Dict, NamedTuple, Optional, Tuple, Union

from png_chunks import Chunk, ChunkType
from png_deflate import compress, decompress
from png_errors import (
    FieldRangeError,
    InvalidCharsetError,
    InvalidKeywordError,
    InvalidLengthError,
    InvalidOperationError,
    KeywordCharsetError,
    MissingSeparatorError,
    TruncatedDataError,
    UnsupportedMethodError,
)

MAX_KEYWORD_LENGTH = 79
COMPRESSION_DEFLATE = 0
PHYS_FORMAT = ">IIB"
PHYS_LENGTH = struct.calcsize(PHYS_FORMAT)
METERS_PER_INCH = 0.0254


class TextRecord(NamedTuple):
    keyword: str
    text: str


class InternationalTextRecord(NamedTuple):
    keyword: str
    text: str
    compressed: bool = False
    language_tag: str = ""
    translated_keyword: str = ""


class ResolutionUnit(IntEnum):
    UNKNOWN = 0
    METER = 1


class PhysicalResolution(NamedTuple):
    x: int
    y: int
    unit: int = ResolutionUnit.UNKNOWN

    @classmethod
    def from_dpi(cls, dpi_x: float, dpi_y: Optional[float] = None) -> "PhysicalResolution":
        if dpi_y is None:
            dpi_y = dpi_x
        return cls(round(dpi_x / METERS_PER_INCH), round(dpi_y / METERS_PER_INCH), ResolutionUnit.METER)

    @property
    def dpi(self) -> Optional[Tuple[float, float]]:
        if self.unit != ResolutionUnit.METER:
            return None
        return (self.x * METERS_PER_INCH, self.y * METERS_PER_INCH)


def _is_latin1_printable(ch: str) -> bool:
    o = ord(ch)
    return 0x20 <= o <= 0x7E or 0xA1 <= o <= 0xFF


def validate_keyword(keyword: str, latin1: bool = True) -> None:
    if not isinstance(keyword, str) or not 1 <= len(keyword) <= MAX_KEYWORD_LENGTH:
        raise InvalidKeywordError(
            f"Keyword must be between 1 and {MAX_KEYWORD_LENGTH} characters long, got {keyword!r}"
        )
    if "\0" in keyword:
        raise KeywordCharsetError("Keyword cannot contain null characters")
    if latin1:
        bad = [ch for ch in keyword if not _is_latin1_printable(ch)]
        if bad:
            raise KeywordCharsetError(f"Keyword {keyword!r} has non-printable Latin-1 characters: {bad!r}")


def validate_latin1_text(text: str) -> None:
    if "\0" in text:
        raise InvalidCharsetError("Text cannot contain null characters")
    bad = [ch for ch in text if ch != "\n" and not _is_latin1_printable(ch)]
    if bad:
        raise InvalidCharsetError(f"Text has characters outside printable Latin-1: {bad[:8]!r}")


def _encode(value: str, encoding: str, field: str) -> bytes:
    try:
        return value.encode(encoding)
    except UnicodeEncodeError as e:
        raise InvalidCharsetError(f"{field} is not valid {encoding}: {e}") from e


def _decode(raw: bytes, encoding: str, field: str) -> str:
    try:
        return raw.decode(encoding)
    except UnicodeDecodeError as e:
        raise InvalidCharsetError(f"{field} is not valid {encoding}: {e}") from e


def _read_field(data: bytes, pos: int, chunk_type: str, field: str) -> Tuple[bytes, int]:
    end = data.find(b"\0", pos)
    if end < 0:
        raise MissingSeparatorError(f"{chunk_type} chunk is missing the null separator after {field}")
    return data[pos:end], end + 1


# --- tEXt -------------------------------------------------------------------

def encode_text(keyword: str, text: str) -> bytes:
    validate_keyword(keyword)
    validate_latin1_text(text)
    return keyword.encode("latin-1") + b"\0" + text.encode("latin-1")


def decode_text(data: bytes) -> TextRecord:
    keyword, pos = _read_field(data, 0, "tEXt", "keyword")
    body = data[pos:]
    # only one NUL is allowed in the whole payload
    if b"\0" in body:
        raise InvalidCharsetError("tEXt text contains a null character")
    return TextRecord(keyword.decode("latin-1"), body.decode("latin-1"))


def text_chunk(keyword: str, text: str) -> Chunk:
    return Chunk(ChunkType.TEXT, encode_text(keyword, text))


# --- zTXt -------------------------------------------------------------------

def encode_ztxt(keyword: str, text: str) -> bytes:
    validate_keyword(keyword)
    validate_latin1_text(text)
    return (
        keyword.encode("latin-1")
        + b"\0"
        + bytes([COMPRESSION_DEFLATE])
        + compress(text.encode("latin-1"))
    )


def decode_ztxt(data: bytes) -> TextRecord:
    keyword, pos = _read_field(data, 0, "zTXt", "keyword")
    if pos >= len(data):
        raise TruncatedDataError("zTXt chunk ends before the compression method", offset=pos, chunk_type="zTXt")
    method = data[pos]
    if method != COMPRESSION_DEFLATE:
        raise UnsupportedMethodError("zTXt", method)
    text = decompress(data[pos + 1:])
    return TextRecord(keyword.decode("latin-1"), text.decode("latin-1"))


def ztxt_chunk(keyword: str, text: str) -> Chunk:
    return Chunk(ChunkType.ZTXT, encode_ztxt(keyword, text))


# --- iTXt -------------------------------------------------------------------

def encode_itxt(keyword: str, text: str, compressed: bool = False,
                language_tag: str = "", translated_keyword: str = "") -> bytes:
    validate_keyword(keyword, latin1=False)
    if "\0" in language_tag:
        raise InvalidCharsetError("Language tag cannot contain null characters")
    if "\0" in translated_keyword:
        raise InvalidCharsetError("Translated keyword cannot contain null characters")
    if "\0" in text:
        raise InvalidCharsetError("Text cannot contain null characters")

    text_bytes = _encode(text, "utf-8", "Text")
    if compressed:
        text_bytes = compress(text_bytes)

    return b"".join([
        _encode(keyword, "utf-8", "Keyword"),
        b"\0",
        bytes([1 if compressed else 0, COMPRESSION_DEFLATE]),
        _encode(language_tag, "ascii", "Language tag"),
        b"\0",
        _encode(translated_keyword, "utf-8", "Translated keyword"),
        b"\0",
        text_bytes,
    ])


def decode_itxt(data: bytes) -> InternationalTextRecord:
    keyword, pos = _read_field(data, 0, "iTXt", "keyword")
    if pos + 2 > len(data):
        raise TruncatedDataError("iTXt chunk ends before the compression fields", offset=pos, chunk_type="iTXt")
    flag, method = data[pos], data[pos + 1]
    if method != COMPRESSION_DEFLATE:
        raise UnsupportedMethodError("iTXt", method)

    language_tag, pos = _read_field(data, pos + 2, "iTXt", "language tag")
    translated, pos = _read_field(data, pos, "iTXt", "translated keyword")

    text_bytes = data[pos:]
    if flag:
        text_bytes = decompress(text_bytes)

    return InternationalTextRecord(
        keyword=_decode(keyword, "utf-8", "Keyword"),
        text=_decode(text_bytes, "utf-8", "Text"),
        compressed=bool(flag),
        language_tag=_decode(language_tag, "ascii", "Language tag"),
        translated_keyword=_decode(translated, "utf-8", "Translated keyword"),
    )


def itxt_chunk(keyword: str, text: str, compressed: bool = False,
               language_tag: str = "", translated_keyword: str = "") -> Chunk:
    return Chunk(ChunkType.ITXT, encode_itxt(keyword, text, compressed, language_tag, translated_keyword))


# --- pHYs -------------------------------------------------------------------

def encode_phys(x: int, y: int, unit: int = ResolutionUnit.UNKNOWN) -> bytes:
    for name, value in (("x", x), ("y", y)):
        if not 0 <= value <= 0xFFFFFFFF:
            raise FieldRangeError(f"pHYs {name} density {value} does not fit in 32 bits")
    if not 0 <= unit <= 0xFF:
        raise FieldRangeError(f"pHYs unit specifier {unit} does not fit in one byte")
    return struct.pack(PHYS_FORMAT, x, y, unit)


def decode_phys(data: bytes) -> PhysicalResolution:
    if len(data) != PHYS_LENGTH:
        raise InvalidLengthError(f"pHYs chunk must be {PHYS_LENGTH} bytes, got {len(data)}")
    x, y, unit = struct.unpack(PHYS_FORMAT, data)
    try:
        unit = ResolutionUnit(unit)
    except ValueError:
        pass
    return PhysicalResolution(x, y, unit)


def phys_chunk(x: int, y: int, unit: int = ResolutionUnit.UNKNOWN) -> Chunk:
    return Chunk(ChunkType.PHYS, encode_phys(x, y, unit))


# --- dispatch ---------------------------------------------------------------

AnyTextRecord = Union[TextRecord, InternationalTextRecord]

TEXT_DECODERS: Dict[ChunkType, Callable[[bytes], AnyTextRecord]] = {
    ChunkType.TEXT: decode_text,
    ChunkType.ZTXT: decode_ztxt,
    ChunkType.ITXT: decode_itxt,
}


def decode_text_chunk(chunk: Chunk) -> AnyTextRecord:
    decoder = TEXT_DECODERS.get(chunk.kind)
    if decoder is None:
        raise InvalidOperationError(f"Cannot extract keyword from non-textual chunk {chunk.type}")
    return decoder(chunk.data)


def text_chunk_for(chunk_type: str, keyword: str, text: str, **options) -> Chunk:
    """Build a textual chunk of the given type; options only apply to iTXt."""
    kind = ChunkType.of(chunk_type)
    if kind is ChunkType.ITXT:
        return itxt_chunk(keyword, text, **options)
    if kind not in (ChunkType.TEXT, ChunkType.ZTXT):
        raise InvalidOperationError(f"{chunk_type} is not a textual chunk type (tEXt, iTXt, zTXt)")
    if any(options.values()):
        raise InvalidOperationError(f"{chunk_type} chunks do not support {sorted(k for k, v in options.items() if v)}")
    if kind is ChunkType.ZTXT:
        return ztxt_chunk(keyword, text)
    return text_chunk(keyword, text)
