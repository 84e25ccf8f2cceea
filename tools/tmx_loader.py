#!/usr/bin/env python3
"""
tmx_loader.py - Tiled .tmx reader shared by mapc.py and mapc_all.py.

Only what the converter needs is read: map size, tileset first gids and the
layer stack. Tile layers are decoded into numpy arrays of tileset-local ids
(-1 = empty cell).

Supported tile layer encodings:
  - XML      <tile gid="..."/> children
  - csv
  - base64   uncompressed, zlib or gzip
"""

from __future__ import annotations

import base64
import gzip
import os
import re
import zlib
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import numpy as np


class TmxParseError(Exception):
    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


# Tiled stores flip/rotation flags in the top four bits of a gid.
FLIPPED_HORIZONTALLY = 0x80000000
FLIPPED_VERTICALLY = 0x40000000
FLIPPED_DIAGONALLY = 0x20000000
ROTATED_HEXAGONAL_120 = 0x10000000
GID_MASK = ~(
    FLIPPED_HORIZONTALLY | FLIPPED_VERTICALLY | FLIPPED_DIAGONALLY | ROTATED_HEXAGONAL_120
) & 0xFFFFFFFF

EMPTY_TILE = -1

LAYER_KINDS = {
    "layer": "tile",
    "objectgroup": "object",
    "imagelayer": "image",
    "group": "group",
}

CSV_SPLIT = re.compile(r"[\s,]+")


@dataclass
class TilesetRef:
    firstgid: int
    name: str
    source: Optional[str] = None  # external .tsx, if any


@dataclass
class MapLayer:
    name: str
    kind: str                             # tile, object, image, group
    width: Optional[int] = None           # None for non-tile layers and infinite maps
    height: Optional[int] = None
    tiles: Optional[np.ndarray] = None    # (height, width) local ids, EMPTY_TILE = no tile


@dataclass
class TmxMap:
    source: Path
    width: int
    height: int
    tile_width: int
    tile_height: int
    infinite: bool = False
    tilesets: List[TilesetRef] = field(default_factory=list)
    layers: List[MapLayer] = field(default_factory=list)

    def tile_layers(self) -> List[MapLayer]:
        return [layer for layer in self.layers if layer.kind == "tile"]


def _int_attr(path: str, elem: ET.Element, name: str, default: Optional[int] = None) -> int:
    raw = elem.get(name)
    if raw is None:
        if default is None:
            raise TmxParseError(path, f"<{elem.tag}> is missing '{name}'")
        return default
    try:
        return int(raw)
    except ValueError:
        raise TmxParseError(path, f"<{elem.tag}> has non-integer {name}={raw!r}") from None


# ----------------------------
# Layer data decoding
# ----------------------------


def _decode_gids(path: str, data: ET.Element, count: int) -> np.ndarray:
    encoding = data.get("encoding")
    compression = data.get("compression")

    if encoding is None or encoding == "csv":
        if encoding is None:
            raw = [t.get("gid", "0") for t in data.findall("tile")]
        else:
            raw = [x for x in CSV_SPLIT.split((data.text or "").strip()) if x]
        try:
            arr = np.array([int(x) for x in raw], dtype=np.uint32)
        except (ValueError, OverflowError):
            raise TmxParseError(path, "layer data holds a gid that is not a 32-bit unsigned integer") from None
    elif encoding == "base64":
        try:
            blob = base64.b64decode((data.text or "").strip())
        except ValueError as e:
            raise TmxParseError(path, f"bad base64 layer data: {e}") from None
        if compression and compression not in ("zlib", "gzip"):
            raise TmxParseError(path, f"unsupported layer compression: {compression}")
        try:
            if compression == "zlib":
                blob = zlib.decompress(blob)
            elif compression == "gzip":
                blob = gzip.decompress(blob)
        except (zlib.error, OSError, EOFError) as e:
            raise TmxParseError(path, f"cannot decompress {compression} layer data: {e}") from None
        if len(blob) % 4:
            raise TmxParseError(path, f"base64 layer data is {len(blob)} bytes, not a multiple of 4")
        arr = np.frombuffer(blob, dtype="<u4").astype(np.uint32)
    else:
        raise TmxParseError(path, f"unsupported layer encoding: {encoding}")

    if arr.size != count:
        raise TmxParseError(path, f"layer has {arr.size} tiles, expected {count}")
    return arr


def _to_local_ids(path: str, gids: np.ndarray, tilesets: List[TilesetRef]) -> np.ndarray:
    gids = (gids & GID_MASK).astype(np.int64)
    local = np.full(gids.shape, EMPTY_TILE, dtype=np.int64)
    used = gids != 0
    if not used.any():
        return local
    if not tilesets:
        raise TmxParseError(path, "layer references tiles but the map has no tilesets")

    firstgids = np.array(sorted(ts.firstgid for ts in tilesets), dtype=np.int64)
    owner = np.searchsorted(firstgids, gids, side="right") - 1
    orphan = used & (owner < 0)
    if orphan.any():
        gid = int(gids[orphan][0])
        raise TmxParseError(path, f"gid {gid} is below the first tileset firstgid {firstgids[0]}")
    local[used] = gids[used] - firstgids[owner[used]]
    return local


def _parse_layer(path: str, elem: ET.Element, tmx: TmxMap) -> MapLayer:
    kind = LAYER_KINDS[elem.tag]
    layer = MapLayer(name=elem.get("name", ""), kind=kind)
    if kind != "tile" or tmx.infinite:
        # Infinite maps store chunks with no fixed extent.
        return layer

    layer.width = _int_attr(path, elem, "width", tmx.width)
    layer.height = _int_attr(path, elem, "height", tmx.height)
    if layer.width <= 0 or layer.height <= 0:
        raise TmxParseError(
            path, f"tile layer '{layer.name}' has size {layer.width}x{layer.height}; both must be positive"
        )
    data = elem.find("data")
    if data is None:
        raise TmxParseError(path, f"tile layer '{layer.name}' has no <data>")
    gids = _decode_gids(path, data, layer.width * layer.height)
    layer.tiles = _to_local_ids(path, gids, tmx.tilesets).reshape(layer.height, layer.width)
    return layer


# ----------------------------
# Map
# ----------------------------


def load_tmx(path: str | os.PathLike) -> TmxMap:
    path = Path(path)
    spath = str(path)
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise TmxParseError(spath, f"invalid XML: {e}") from None

    if root.tag != "map":
        raise TmxParseError(spath, f"expected <map> root element, got <{root.tag}>")

    tmx = TmxMap(
        source=path,
        width=_int_attr(spath, root, "width"),
        height=_int_attr(spath, root, "height"),
        tile_width=_int_attr(spath, root, "tilewidth"),
        tile_height=_int_attr(spath, root, "tileheight"),
        infinite=root.get("infinite", "0") == "1",
    )

    for ts in root.findall("tileset"):
        tmx.tilesets.append(
            TilesetRef(
                firstgid=_int_attr(spath, ts, "firstgid"),
                name=ts.get("name", ""),
                source=ts.get("source"),
            )
        )

    # Top-level layers only; layers nested in a <group> are not flattened.
    for child in root:
        if child.tag in LAYER_KINDS:
            tmx.layers.append(_parse_layer(spath, child, tmx))

    return tmx
