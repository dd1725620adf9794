import hashlib
import json
import struct
from collections import OrderedDict
from typing import Any, Dict, List

from png_chunks import KNOWN_CHUNKS, chunk_flags
from png_edit import get_physical_resolution, read_text_chunks
from png_read import scan_chunks
from png_text import decode_text_chunk

PRIORITY_KEYS: List[str] = [
    "forensic",
    "markers",
    "duplicates",
    "unknown_ancillary_chunks",
    "chunk_counts",
    "chunks",
    "ihdr",
    "text",
    "text_chunks",
    "physical",
    "file",
    "iend_index",
    "trailing_bytes",
    "trailing_hexdump",
]

MARKER_PRIORITY: List[str] = [
    "IHDR", "iCCP", "pHYs", "tIME",
    "iTXt", "tEXt", "zTXt", "acTL",
    "fcTL", "fdAT", "IEND"
]


def _file_hashes(data: bytes) -> Dict[str, Any]:
    return {
        "size": len(data),
        "md5": hashlib.md5(data).hexdigest(),
        "sha256": hashlib.sha256(data).hexdigest(),
    }


def _decode_ihdr(payload: bytes):
    if len(payload) != 13:
        return None
    w, h, bit_depth, color_type, comp, filt, inter = struct.unpack(">IIBBBBB", payload)
    return {
        "width": w,
        "height": h,
        "bit_depth": bit_depth,
        "color_type": color_type,
        "compression": comp,
        "filter": filt,
        "interlace": inter,
    }


def collect_meta(data: bytes) -> Dict[str, Any]:
    """Raw, unordered facts about a PNG byte string. Raises PngError on bad input."""
    infos = list(scan_chunks(data))
    chunks = [i.chunk for i in infos]

    rows = []
    for info in infos:
        row = {
            "index": info.index,
            "offset": info.offset,
            "length": info.length,
            "type": info.chunk.type,
            "crc_hex": f"{info.crc:08X}",
        }
        row.update(chunk_flags(info.chunk.type))
        rows.append(row)

    iend = infos[-1]
    trailing = data[iend.end:]

    text_chunks = []
    for info in infos:
        if info.chunk.is_text:
            record = decode_text_chunk(info.chunk)
            entry = {"index": info.index, "type": info.chunk.type}
            entry.update(record._asdict())
            text_chunks.append(entry)

    phys = get_physical_resolution(chunks)
    physical = None
    if phys is not None:
        physical = {"x": phys.x, "y": phys.y, "unit": int(phys.unit), "dpi": phys.dpi}

    type_counts: Dict[str, int] = {}
    for c in chunks:
        type_counts[c.type] = type_counts.get(c.type, 0) + 1

    markers: Dict[str, Any] = {}
    for name in MARKER_PRIORITY:
        positions = [i.index for i in infos if i.chunk.type == name]
        markers[name] = {"present": bool(positions), "count": len(positions), "positions": positions}

    ihdr = None
    if chunks and chunks[0].type == "IHDR":
        ihdr = _decode_ihdr(chunks[0].data)

    return {
        "file": _file_hashes(data),
        "chunks": rows,
        "chunk_counts": type_counts,
        "duplicates": {t: n for t, n in type_counts.items() if n > 1},
        "markers": markers,
        "unknown_ancillary_chunks": [
            {"type": r["type"], "index": r["index"], "length": r["length"]}
            for r in rows if r["ancillary"] and r["type"] not in KNOWN_CHUNKS
        ],
        "ihdr": ihdr,
        "text": read_text_chunks(chunks),
        "text_chunks": text_chunks,
        "physical": physical,
        "iend_index": iend.index,
        "trailing_bytes": len(trailing),
        "trailing_hexdump": trailing[:64].hex() if trailing else None,
    }


def _build_forensic(meta: Dict[str, Any]) -> Dict[str, Any]:
    chunks = meta.get("chunks") or []
    markers = meta.get("markers") or {}
    forensic: Dict[str, Any] = OrderedDict()

    reserved_violations = [
        {"index": c["index"], "type": c["type"]}
        for c in chunks if c.get("reserved") is True
    ]
    if reserved_violations:
        forensic["reserved_bit_violations"] = reserved_violations

    trailing = meta.get("trailing_bytes", 0) or 0
    if trailing:
        forensic["trailing_after_IEND_bytes"] = trailing

    unknown_anc = meta.get("unknown_ancillary_chunks") or []
    if unknown_anc:
        forensic["unknown_ancillary_chunks"] = len(unknown_anc)

    def present(name: str) -> bool:
        m = markers.get(name) or {}
        return bool(m.get("present"))

    forensic["icc_profile_present"] = present("iCCP")
    forensic["pixel_density_present"] = present("pHYs")
    forensic["timestamp_present"] = present("tIME")
    forensic["text_chunks_present"] = any(present(n) for n in ["iTXt", "tEXt", "zTXt"])
    forensic["apng_present"] = any(present(n) for n in ["acTL", "fcTL", "fdAT"])

    return OrderedDict((k, v) for k, v in forensic.items() if v not in (False, 0))


def organize_meta(meta: Dict[str, Any]) -> Dict[str, Any]:
    out = OrderedDict()
    out["forensic"] = _build_forensic(meta)
    for k in PRIORITY_KEYS:
        if k in meta and k not in out:
            out[k] = meta[k]
    for k, v in meta.items():
        if k not in out:
            out[k] = v
    return out


def inspect_png(data: bytes) -> Dict[str, Any]:
    return organize_meta(collect_meta(data))


def pretty_print_meta(meta: Dict[str, Any]) -> None:
    print(json.dumps(meta, indent=2, default=str))
