#!/usr/bin/env python3
"""
mapc_all.py - Convert every .tmx in a directory, optionally emitting a depfile + stamp.

Usage:
  python tools/mapc_all.py -i maps -o src/maps
  python tools/mapc_all.py -i maps -o src/maps --stamp build/maps/maps.stamp --depfile build/maps/maps.d

A map that fails to convert is reported and skipped; the remaining maps are
still written. The exit status is 1 if any map failed.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from mapc import (
    DEFAULT_C_TYPE,
    ErrorCollector,
    MapConversionError,
    add_common_args,
    convert_file,
)
from tmx_loader import TmxParseError


def gather_tmx(directory: str | os.PathLike) -> List[Path]:
    return sorted(p for p in Path(directory).glob("*.tmx") if p.is_file())


def convert_all(
    tmx_files: Sequence[Path],
    out_dir: str | os.PathLike,
    errors: ErrorCollector,
    c_type: str = DEFAULT_C_TYPE,
    include_header: bool = False,
    preview_dir: Optional[str | os.PathLike] = None,
) -> List[Path]:
    written: List[Path] = []
    for tmx in tmx_files:
        try:
            written.extend(convert_file(tmx, out_dir, c_type, include_header, preview_dir))
        except (TmxParseError, MapConversionError, OSError) as e:
            errors.add_exception(tmx, e)
    return written


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("-i", "--input-directory", required=True, help="Directory containing .tmx files")
    ap.add_argument("-o", "--output-directory", required=True, help="Output directory for .h/.c files")
    ap.add_argument("--stamp", default=None, help="Stamp file path")
    ap.add_argument("--depfile", default=None, help="Depfile path")
    add_common_args(ap)
    args = ap.parse_args(argv)
    if args.depfile and not args.stamp:
        ap.error("--depfile names --stamp as its target; pass both")

    maps_dir = Path(args.input_directory).resolve()
    if not maps_dir.is_dir():
        print(f"Maps dir not found: {maps_dir}", file=sys.stderr)
        sys.exit(1)

    tmx_files = gather_tmx(maps_dir)
    if not tmx_files:
        print(f"No .tmx files found in {maps_dir}", file=sys.stderr)
        sys.exit(1)

    errors = ErrorCollector()
    written = convert_all(
        tmx_files,
        args.output_directory,
        errors,
        c_type=args.c_type,
        include_header=args.include_header,
        preview_dir=args.preview_dir,
    )
    for p in written:
        print(f"Wrote {p}")

    errors.report_and_exit(f"{len(tmx_files)} map(s) processed. ")

    if args.stamp:
        stamp_path = Path(args.stamp)
        stamp_path.parent.mkdir(parents=True, exist_ok=True)
        stamp_path.write_text("ok\n", encoding="utf-8")

        if args.depfile:
            dep_path = Path(args.depfile)
            dep_path.parent.mkdir(parents=True, exist_ok=True)
            deps = " ".join(str(p) for p in tmx_files)
            dep_path.write_text(f"{stamp_path}: {deps}\n", encoding="utf-8")


if __name__ == "__main__":
    main()
