#!/usr/bin/env python3
"""
mapc.py - Tiled .tmx map -> generated C header (size macros) + C source (tile array).

Outputs (named after the map file stem):
  - <stem>.h   #define <name>_WIDTH / <name>_HEIGHT
  - <stem>.c   const <type> <name>_map[w*h] = { ... };  one row per map row
  - <stem>.png optional preview of the tile indices (--preview-dir)

Usage:
  python tools/mapc.py maps/village.tmx
  python tools/mapc.py maps/village.tmx -o src/maps --c-type uint16_t --include-header

Notes:
- The map must have exactly one top-level tile layer and a finite size.
- Every cell must hold a tile; indices are tileset-local ids and must fit the
  chosen C type.
"""

from __future__ import annotations

import argparse
import os
import re
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np

from c_ast import Array, AstNode, Const, Define, Include, Literal
from c_codegen import generate
from map_preview import write_preview
from tmx_loader import EMPTY_TILE, TmxMap, TmxParseError, load_tmx


# ----------------------------
# Error collection
# ----------------------------

class ErrorCollector:
    """Per-map failure ledger; one bad map never hides the others."""

    def __init__(self):
        self.failures: List[Tuple[str, str]] = []  # (map path, message)

    def add_error(self, path: str | os.PathLike, message: str):
        self.failures.append((str(path), message))

    def add_exception(self, path: str | os.PathLike, e: Exception):
        # TmxParseError already carries the path in str(e)
        message = e.message if isinstance(e, TmxParseError) else str(e)
        self.add_error(path, message)

    def failed_paths(self) -> List[str]:
        return [path for path, _ in self.failures]

    def has_errors(self) -> bool:
        return bool(self.failures)

    def report_and_exit(self, prefix: str = ""):
        if not self.has_errors():
            return

        maps = len(set(self.failed_paths()))
        print(f"\n{prefix}Found {len(self.failures)} error(s) in {maps} map(s):", file=sys.stderr)
        for i, (path, message) in enumerate(self.failures, 1):
            print(f"  {i}. {path}: {message}", file=sys.stderr)
        print("", file=sys.stderr)
        sys.exit(1)


class MapConversionError(Exception):
    pass


class MapStructureError(MapConversionError):
    """Wrong number of tile layers, unbounded map or a cell without a tile."""


class TileIndexRangeError(MapConversionError):
    pass


class MapNameError(MapConversionError):
    pass


# Supported target element types and the numpy dtype bounding each.
SCALAR_TYPES: Dict[str, type] = {
    "uint8_t": np.uint8,
    "uint16_t": np.uint16,
    "uint32_t": np.uint32,
}
DEFAULT_C_TYPE = "uint8_t"


def make_c_identifier(name: str) -> str:
    if not re.search(r"[a-zA-Z0-9]", name):
        raise MapNameError(f"Cannot derive a C identifier from {name!r}: no letters or digits")
    ident = re.sub(r"[^a-zA-Z0-9_]", "_", name)
    if ident[0].isdigit():
        ident = f"map_{ident}"
    return ident


# ----------------------------
# Map -> AST
# ----------------------------


def _check_range(tiles: np.ndarray, c_type: str) -> None:
    limit = int(np.iinfo(SCALAR_TYPES[c_type]).max)
    over = np.argwhere(tiles > limit)
    if over.size:
        y, x = (int(v) for v in over[0])
        raise TileIndexRangeError(
            f"Tile index {int(tiles[y, x])} at ({x},{y}) exceeds {limit}, the {c_type} maximum"
        )


def build_tile_data(tmx: TmxMap, c_type: str = DEFAULT_C_TYPE) -> Tuple[List[AstNode], AstNode]:
    if c_type not in SCALAR_TYPES:
        raise ValueError(f"Unsupported C type {c_type!r}; pick one of {', '.join(SCALAR_TYPES)}")

    tile_layers = tmx.tile_layers()
    if len(tile_layers) != 1:
        raise MapStructureError(f"Exactly one tile layer is required, found {len(tile_layers)}")

    layer = tile_layers[0]
    if layer.tiles is None or layer.width is None or layer.height is None:
        raise MapStructureError("Map must be finite")

    tiles = layer.tiles
    empty = np.argwhere(tiles == EMPTY_TILE)
    if empty.size:
        y, x = (int(v) for v in empty[0])
        raise MapStructureError(f"Missing tile at ({x},{y}) in layer '{layer.name}'")
    _check_range(tiles, c_type)

    name = make_c_identifier(tmx.source.stem)
    # Row-major: all of row 0, then row 1, ...
    values = [Literal(str(int(v))) for v in tiles.reshape(-1)]
    tile_data = Const(
        name=f"{name}_map",
        c_type=c_type,
        value=Array(values=values, row_width=layer.width),
    )

    header_data: List[AstNode] = [
        Define(name=f"{name}_WIDTH", value=str(layer.width)),
        Define(name=f"{name}_HEIGHT", value=str(layer.height)),
    ]

    return header_data, tile_data


def build_ast(
    tmx: TmxMap, c_type: str = DEFAULT_C_TYPE, include_header: bool = False
) -> Tuple[List[AstNode], List[AstNode]]:
    header_ast, tile_data = build_tile_data(tmx, c_type)
    src_ast: List[AstNode] = [tile_data]
    if include_header:
        src_ast.insert(0, Include(filename=f"{tmx.source.stem}.h"))
    return header_ast, src_ast


# ----------------------------
# Files
# ----------------------------


def convert_file(
    path: str | os.PathLike,
    out_dir: str | os.PathLike,
    c_type: str = DEFAULT_C_TYPE,
    include_header: bool = False,
    preview_dir: Optional[str | os.PathLike] = None,
) -> List[Path]:
    """Convert one map; returns the paths written. Raises on any failure."""
    tmx = load_tmx(path)
    header_ast, src_ast = build_ast(tmx, c_type, include_header)

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    output_path = out_dir / tmx.source.name

    written: List[Path] = []
    header_path = output_path.with_suffix(".h")
    header_path.write_text(generate(header_ast), encoding="utf-8")
    written.append(header_path)

    src_path = output_path.with_suffix(".c")
    src_path.write_text(generate(src_ast), encoding="utf-8")
    written.append(src_path)

    if preview_dir is not None:
        preview_path = Path(preview_dir) / f"{tmx.source.stem}.png"
        written.append(write_preview(tmx.tile_layers()[0].tiles, preview_path))

    return written


def add_common_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument(
        "--c-type",
        default=DEFAULT_C_TYPE,
        choices=sorted(SCALAR_TYPES),
        help="Element type of the generated tile array",
    )
    ap.add_argument(
        "--include-header",
        action="store_true",
        help="Emit #include \"<stem>.h\" at the top of the generated .c",
    )
    ap.add_argument(
        "--preview-dir",
        default=None,
        help="Also write a <stem>.png preview of the tile indices here",
    )


# ----------------------------
# CLI
# ----------------------------


def main(argv: Optional[List[str]] = None):
    ap = argparse.ArgumentParser()
    ap.add_argument("input", help="Input Tiled map (.tmx)")
    ap.add_argument(
        "-o",
        "--output-directory",
        default="build/maps",
        help="Output directory for generated .h/.c files",
    )
    add_common_args(ap)
    args = ap.parse_args(argv)

    errors = ErrorCollector()
    try:
        written = convert_file(
            args.input,
            args.output_directory,
            c_type=args.c_type,
            include_header=args.include_header,
            preview_dir=args.preview_dir,
        )
    except (TmxParseError, MapConversionError, OSError) as e:
        errors.add_exception(args.input, e)
        written = []

    errors.report_and_exit("Conversion failed: ")

    for p in written:
        print(f"Wrote {p}")


if __name__ == "__main__":
    main()
