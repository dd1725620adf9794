import pytest

from png_chunks import Chunk, ChunkType, chunk_flags, crc32
from png_errors import InvalidChunkTypeError
from png_text import TEXT_DECODERS, decode_itxt


def test_crc32_matches_known_iend_crc():
    assert crc32(b"IEND") == 0xAE426082


def test_crc32_can_be_chained():
    assert crc32(b"Author", crc32(b"tEXt")) == crc32(b"tEXtAuthor")


def test_chunk_crc_covers_type_and_data():
    chunk = Chunk("tEXt", b"a\x00b")
    assert chunk.crc == crc32(b"tEXta\x00b")


@pytest.mark.parametrize("tag", ["IHD", "IHDRX", "IH1R", "IH R", "ÄHDR", b"IHDR"])
def test_invalid_chunk_types_are_rejected(tag):
    with pytest.raises(InvalidChunkTypeError):
        Chunk(tag)


def test_enum_member_is_normalised_to_plain_tag():
    chunk = Chunk(ChunkType.IEND)
    assert chunk.type == "IEND"
    assert type(chunk.type) is str
    assert chunk == Chunk("IEND", b"")


def test_criticality_is_derived_from_first_letter():
    assert Chunk("IHDR").critical
    assert not Chunk("IHDR").ancillary
    assert Chunk("tEXt").ancillary
    assert not Chunk("tEXt").critical


def test_property_bits():
    chunk = Chunk("prvt")
    assert chunk.ancillary
    assert chunk.private
    assert chunk.reserved
    assert chunk.safe_to_copy
    assert chunk_flags("prvt") == {
        "ancillary": True,
        "private": True,
        "reserved": True,
        "safe_to_copy": True,
    }


def test_text_decoding_dispatches_on_kind():
    assert set(TEXT_DECODERS) == {ChunkType.TEXT, ChunkType.ZTXT, ChunkType.ITXT}
    assert TEXT_DECODERS[Chunk("iTXt").kind] is decode_itxt
    assert Chunk("gAMA").kind not in TEXT_DECODERS


def test_kind_maps_unknown_tags_to_opaque():
    assert Chunk("pHYs").kind is ChunkType.PHYS
    assert Chunk("iTXt").kind is ChunkType.ITXT
    assert Chunk("gAMA").kind is ChunkType.OPAQUE
    assert ChunkType.of("iCCP") is ChunkType.OPAQUE


def test_cardinality_classes():
    assert Chunk("tEXt").multi_instance
    assert Chunk("zTXt").multi_instance
    assert Chunk("IDAT").multi_instance
    assert not Chunk("pHYs").multi_instance
    assert not Chunk("gAMA").multi_instance
    assert Chunk("iTXt").is_text
    assert not Chunk("IDAT").is_text


def test_chunk_is_immutable():
    chunk = Chunk("tEXt", b"a\x00b")
    with pytest.raises(AttributeError):
        chunk.data = b"other"


def test_bytearray_payload_is_frozen_to_bytes():
    chunk = Chunk("gAMA", bytearray(b"\x00\x00\xb1\x8f"))
    assert isinstance(chunk.data, bytes)
    assert len(chunk) == 4
