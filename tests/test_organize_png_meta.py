import json

import pytest

from conftest import build_png, raw_chunk
from organize_png_meta import inspect_png, pretty_print_meta
from png_errors import IntegrityError
from png_text import encode_itxt, encode_phys


@pytest.fixture
def rich_png():
    return build_png(
        raw_chunk(b"pHYs", encode_phys(2835, 2835, 1)),
        raw_chunk(b"tEXt", b"Author\x00John Doe"),
        raw_chunk(b"prVt", b"secret"),
        after_idat=raw_chunk(b"iTXt", encode_itxt("Title", "Titel", language_tag="de")),
    )


def test_report_sections_in_priority_order(rich_png):
    report = inspect_png(rich_png)
    keys = list(report)
    assert keys[0] == "forensic"
    assert keys.index("chunks") < keys.index("text") < keys.index("file")


def test_report_contents(rich_png):
    report = inspect_png(rich_png)
    assert report["ihdr"]["width"] == 1
    assert report["ihdr"]["bit_depth"] == 8
    assert report["text"] == {"Author": "John Doe", "Title": "Titel"}
    assert report["physical"]["x"] == 2835
    assert report["physical"]["unit"] == 1
    assert report["physical"]["dpi"] == pytest.approx((72.0, 72.0), abs=0.01)
    assert report["chunk_counts"]["tEXt"] == 1
    assert report["iend_index"] == len(report["chunks"]) - 1
    assert report["file"]["size"] == len(rich_png)

    itxt = [t for t in report["text_chunks"] if t["type"] == "iTXt"][0]
    assert itxt["language_tag"] == "de"
    assert itxt["compressed"] is False


def test_report_flags_unknown_and_reserved_chunks():
    data = build_png(raw_chunk(b"prvt", b"x"))
    report = inspect_png(data)
    assert report["unknown_ancillary_chunks"] == [{"type": "prvt", "index": 1, "length": 1}]
    assert report["forensic"]["reserved_bit_violations"] == [{"index": 1, "type": "prvt"}]
    assert report["forensic"]["unknown_ancillary_chunks"] == 1


def test_report_trailing_bytes(minimal_png):
    report = inspect_png(minimal_png + b"\xde\xad")
    assert report["trailing_bytes"] == 2
    assert report["trailing_hexdump"] == "dead"
    assert report["forensic"]["trailing_after_IEND_bytes"] == 2


def test_report_drops_false_forensic_flags(minimal_png):
    assert inspect_png(minimal_png)["forensic"] == {}


def test_report_duplicates(png_with_text):
    assert inspect_png(png_with_text)["duplicates"] == {"tEXt": 2}


def test_report_is_json_serializable(rich_png):
    json.dumps(inspect_png(rich_png))


def test_report_propagates_integrity_errors(minimal_png):
    corrupted = bytearray(minimal_png)
    corrupted[20] ^= 1
    with pytest.raises(IntegrityError):
        inspect_png(bytes(corrupted))


def test_pretty_print(minimal_png, capsys):
    pretty_print_meta(inspect_png(minimal_png))
    assert '"iend_index": 2' in capsys.readouterr().out
