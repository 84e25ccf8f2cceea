#!/usr/bin/env python3
"""
map_preview.py
Render a tile-index grid as a PNG so a converted map can be eyeballed.
"""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np
from PIL import Image

from tmx_loader import TmxParseError, load_tmx

# 16 distinct colours; index i uses PAL[i % 16]. Empty cells stay black.
PAL = np.array(
    [
        (29, 43, 83),
        (126, 37, 83),
        (0, 135, 81),
        (171, 82, 54),
        (95, 87, 79),
        (194, 195, 199),
        (255, 241, 232),
        (255, 0, 77),
        (255, 163, 0),
        (255, 236, 39),
        (0, 228, 54),
        (41, 173, 255),
        (131, 118, 156),
        (255, 119, 168),
        (255, 204, 170),
        (170, 255, 238),
    ],
    dtype=np.uint8,
)
EMPTY_RGB = (0, 0, 0)


def render_preview(tiles: np.ndarray, scale: int = 4) -> Image.Image:
    tiles = np.asarray(tiles)
    rgb = PAL[np.where(tiles >= 0, tiles, 0) % len(PAL)]
    rgb[tiles < 0] = EMPTY_RGB
    img = Image.fromarray(np.ascontiguousarray(rgb, dtype=np.uint8))
    if scale != 1:
        h, w = tiles.shape
        img = img.resize((w * scale, h * scale), resample=Image.NEAREST)
    return img


def write_preview(tiles: np.ndarray, path: Path, scale: int = 4) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    render_preview(tiles, scale).save(path)
    return path


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("tmx", help="Input Tiled map (.tmx)")
    ap.add_argument("out", help="Output PNG path")
    ap.add_argument("--scale", type=int, default=4, help="Pixels per tile")
    args = ap.parse_args()

    try:
        tmx = load_tmx(args.tmx)
    except (OSError, TmxParseError) as e:
        raise SystemExit(f"Error: {e}")
    layers = [layer for layer in tmx.tile_layers() if layer.tiles is not None]
    if not layers:
        raise SystemExit(f"No finite tile layer in {args.tmx}")
    out_path = write_preview(layers[0].tiles, Path(args.out), max(1, args.scale))
    print(f"Wrote {out_path}")


if __name__ == "__main__":
    main()
