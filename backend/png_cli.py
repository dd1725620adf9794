#!/usr/bin/env python3
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from organize_png_meta import inspect_png
from png_edit import (
    add_or_update_text_chunk,
    read_text_chunks,
    remove_chunks,
    remove_text_chunks,
    set_physical_resolution,
)
from png_errors import PngError
from png_read import read_chunks
from png_text import PhysicalResolution, ResolutionUnit, text_chunk_for
from png_write import write_chunks

UNITS = {"unknown": ResolutionUnit.UNKNOWN, "meter": ResolutionUnit.METER}


def print_report(info: dict) -> None:
    print(f"File: {info['file']['size']} bytes  sha256={info['file']['sha256']}")
    if info.get("ihdr"):
        ih = info["ihdr"]
        print(f"IHDR: {ih['width']}x{ih['height']} bit_depth={ih['bit_depth']} color_type={ih['color_type']} "
              f"compression={ih['compression']} filter={ih['filter']} interlace={ih['interlace']}")
    if info.get("physical"):
        ph = info["physical"]
        print(f"pHYs: x={ph['x']} y={ph['y']} unit={ph['unit']} dpi={ph['dpi']}")
    print()

    if info["text_chunks"]:
        print("Text chunks:")
        for t in info["text_chunks"]:
            print(f"  [{t['index']:3d}] {t['type']} {t['keyword']}: {t['text']}")
    else:
        print("Text chunks: none")
    print()

    if info["duplicates"]:
        print("Duplicate chunk types:")
        for t, n in info["duplicates"].items():
            print(f"  {t}: {n} occurrences")
        print()

    print("Chunk listing (in file order):")
    header = f"{'idx':>3}  {'off':>10}  {'len':>8}  {'type':>4}  {'crc':>8}  {'anc':>3}  {'priv':>4}  {'resv':>4}  {'safe':>4}"
    print(header)
    print("-" * len(header))
    for c in info["chunks"]:
        print(f"{c['index']:3d}  {c['offset']:10d}  {c['length']:8d}  {c['type']:>4}  {c['crc_hex']:>8}"
              f"  {('y' if c['ancillary'] else 'n'):>3}  {('y' if c['private'] else 'n'):>4}"
              f"  {('Y' if c['reserved'] else 'n'):>4}  {('y' if c['safe_to_copy'] else 'n'):>4}")
    print()
    print(f"Trailing bytes after IEND: {info['trailing_bytes']}")


def _load(path: str):
    return read_chunks(Path(path).read_bytes())


def _save(chunks, args) -> None:
    out = Path(args.output or args.png_path)
    out.write_bytes(write_chunks(chunks))
    print(f"wrote {out}")


def cmd_inspect(args) -> int:
    info = inspect_png(Path(args.png_path).read_bytes())
    if args.json:
        print(json.dumps(info, indent=2))
    else:
        print_report(info)
    return 0


def cmd_text(args) -> int:
    for keyword, text in read_text_chunks(_load(args.png_path)).items():
        print(f"{keyword}: {text}")
    return 0


def cmd_set_text(args) -> int:
    options = {}
    if args.type == "iTXt":
        options = dict(compressed=args.compressed, language_tag=args.language, translated_keyword=args.translated)
    chunks = _load(args.png_path)
    add_or_update_text_chunk(chunks, text_chunk_for(args.type, args.keyword, args.text, **options))
    _save(chunks, args)
    return 0


def cmd_remove_text(args) -> int:
    chunks = _load(args.png_path)
    removed = remove_text_chunks(chunks, args.keyword)
    print(f"removed {removed} chunk(s)")
    _save(chunks, args)
    return 0


def cmd_set_phys(args) -> int:
    y = args.x if args.y is None else args.y
    if args.dpi:
        res = PhysicalResolution.from_dpi(args.x, y)
    else:
        res = PhysicalResolution(int(args.x), int(y), UNITS[args.unit])
    chunks = _load(args.png_path)
    set_physical_resolution(chunks, *res)
    _save(chunks, args)
    return 0


def cmd_remove(args) -> int:
    chunks = _load(args.png_path)
    removed = remove_chunks(chunks, args.chunk_type)
    print(f"removed {removed} chunk(s)")
    _save(chunks, args)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pngmeta", description="Inspect and edit PNG metadata chunks.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log chunk-level decisions")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("inspect", help="Report chunks and metadata")
    s.add_argument("png_path")
    s.add_argument("--json", action="store_true", help="Output JSON")
    s.set_defaults(func=cmd_inspect)

    s = sub.add_parser("text", help="Print keyword/text pairs")
    s.add_argument("png_path")
    s.set_defaults(func=cmd_text)

    s = sub.add_parser("set-text", help="Add or update a text chunk")
    s.add_argument("png_path")
    s.add_argument("keyword")
    s.add_argument("text")
    s.add_argument("--type", choices=["tEXt", "zTXt", "iTXt"], default="tEXt")
    s.add_argument("--compressed", action="store_true", help="Compress iTXt text")
    s.add_argument("--language", default="", help="iTXt language tag")
    s.add_argument("--translated", default="", help="iTXt translated keyword")
    s.add_argument("-o", "--output")
    s.set_defaults(func=cmd_set_text)

    s = sub.add_parser("remove-text", help="Remove text chunks by keyword")
    s.add_argument("png_path")
    s.add_argument("keyword")
    s.add_argument("-o", "--output")
    s.set_defaults(func=cmd_remove_text)

    s = sub.add_parser("set-phys", help="Set the pHYs resolution")
    s.add_argument("png_path")
    s.add_argument("x", type=float)
    s.add_argument("y", type=float, nargs="?")
    s.add_argument("--unit", choices=sorted(UNITS), default="meter")
    s.add_argument("--dpi", action="store_true", help="Treat x/y as dots per inch")
    s.add_argument("-o", "--output")
    s.set_defaults(func=cmd_set_phys)

    s = sub.add_parser("remove", help="Remove every chunk of a type")
    s.add_argument("png_path")
    s.add_argument("chunk_type")
    s.add_argument("-o", "--output")
    s.set_defaults(func=cmd_remove)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return args.func(args)
    except PngError as e:
        print(f"error: {type(e).__name__}: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
