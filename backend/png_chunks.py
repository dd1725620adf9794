import binascii
from dataclasses import dataclass
from enum import Enum
from typing import Dict

from png_errors import InvalidChunkTypeError

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


class ChunkType(str, Enum):
    IHDR = "IHDR"
    PLTE = "PLTE"
    IDAT = "IDAT"
    IEND = "IEND"
    PHYS = "pHYs"
    TEXT = "tEXt"
    ZTXT = "zTXt"
    ITXT = "iTXt"
    # any other well-formed tag; passed through untouched
    OPAQUE = "opaque"

    @classmethod
    def of(cls, tag: str) -> "ChunkType":
        try:
            member = cls(tag)
        except ValueError:
            return cls.OPAQUE
        return cls.OPAQUE if member is cls.OPAQUE else member


TEXT_CHUNK_TYPES = frozenset({ChunkType.TEXT.value, ChunkType.ZTXT.value, ChunkType.ITXT.value})

# Types that may legally appear more than once. Everything else is single-instance.
MULTI_INSTANCE_TYPES = TEXT_CHUNK_TYPES | {ChunkType.IDAT.value, "sPLT"}

KNOWN_CHUNKS = {
    # Critical
    "IHDR", "PLTE", "IDAT", "IEND",
    # Ancillary
    "bKGD", "cHRM", "dSIG", "eXIf", "gAMA", "hIST", "iCCP", "iTXt",
    "pHYs", "sBIT", "sPLT", "sRGB", "tEXt", "tIME", "tRNS", "zTXt",
    # APNG
    "acTL", "fcTL", "fdAT",
}


def crc32(data: bytes, value: int = 0) -> int:
    return binascii.crc32(data, value) & 0xffffffff


def is_valid_chunk_type(tag) -> bool:
    return (
        isinstance(tag, str)
        and len(tag) == 4
        and tag.isascii()
        and tag.isalpha()
    )


def chunk_flags(chunk_type: str) -> Dict[str, bool]:
    """Property bits encoded in the case of each tag letter."""
    if not is_valid_chunk_type(chunk_type):
        return {"ancillary": False, "private": False, "reserved": False, "safe_to_copy": False}

    return {
        "ancillary": chunk_type[0].islower(),
        "private": chunk_type[1].islower(),
        "reserved": chunk_type[2].islower(),
        "safe_to_copy": chunk_type[3].islower(),
    }


@dataclass(frozen=True)
class Chunk:
    type: str
    data: bytes = b""

    def __post_init__(self):
        if isinstance(self.type, ChunkType):
            object.__setattr__(self, "type", self.type.value)
        if not is_valid_chunk_type(self.type):
            raise InvalidChunkTypeError(f"Chunk type must be four ASCII letters, got {self.type!r}")
        if not isinstance(self.data, bytes):
            object.__setattr__(self, "data", bytes(self.data))

    def __len__(self) -> int:
        return len(self.data)

    @property
    def kind(self) -> ChunkType:
        return ChunkType.of(self.type)

    @property
    def critical(self) -> bool:
        return self.type[0].isupper()

    @property
    def ancillary(self) -> bool:
        return not self.critical

    @property
    def private(self) -> bool:
        return self.type[1].islower()

    @property
    def reserved(self) -> bool:
        return self.type[2].islower()

    @property
    def safe_to_copy(self) -> bool:
        return self.type[3].islower()

    @property
    def multi_instance(self) -> bool:
        return self.type in MULTI_INSTANCE_TYPES

    @property
    def is_text(self) -> bool:
        return self.type in TEXT_CHUNK_TYPES

    @property
    def type_bytes(self) -> bytes:
        return self.type.encode("ascii")

    @property
    def crc(self) -> int:
        return crc32(self.data, crc32(self.type_bytes))

    def __repr__(self) -> str:
        return f"Chunk(type={self.type!r}, length={len(self.data)})"
