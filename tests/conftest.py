from __future__ import annotations

import base64
import gzip
import struct
import sys
import zlib
from pathlib import Path
from typing import List, Optional

import pytest

TOOLS_DIR = Path(__file__).parent.parent / "tools"
sys.path.insert(0, str(TOOLS_DIR))


def tmx_layer(
    gids: List[int],
    width: int,
    height: int,
    name: str = "Ground",
    encoding: Optional[str] = "csv",
    compression: Optional[str] = None,
) -> str:
    """Build a <layer> element holding `gids` in the requested encoding."""
    if encoding is None:
        body = "".join(f'<tile gid="{g}"/>' for g in gids)
        data = f"<data>{body}</data>"
    elif encoding == "csv":
        rows = [",".join(str(g) for g in gids[y * width : (y + 1) * width]) for y in range(height)]
        data = '<data encoding="csv">\n' + ",\n".join(rows) + "\n</data>"
    else:
        blob = struct.pack(f"<{len(gids)}I", *gids)
        if compression == "zlib":
            blob = zlib.compress(blob)
        elif compression == "gzip":
            blob = gzip.compress(blob)
        attrs = f' compression="{compression}"' if compression else ""
        text = base64.b64encode(blob).decode("ascii")
        data = f'<data encoding="{encoding}"{attrs}>\n   {text}\n  </data>'
    return f'<layer id="1" name="{name}" width="{width}" height="{height}">\n  {data}\n </layer>'


def tmx_document(width: int, height: int, layers: List[str], firstgid: int = 1, infinite: bool = False) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<map version="1.10" orientation="orthogonal" renderorder="right-down" '
        f'width="{width}" height="{height}" tilewidth="8" tileheight="8" '
        f'infinite="{1 if infinite else 0}">\n'
        f' <tileset firstgid="{firstgid}" source="tiles.tsx"/>\n'
        + "\n".join(f" {layer}" for layer in layers)
        + "\n</map>\n"
    )


@pytest.fixture
def write_tmx(tmp_path: Path):
    """Write a single-layer map; gids are global ids (0 = empty)."""

    def _write(
        name: str,
        width: int,
        height: int,
        gids: List[int],
        encoding: Optional[str] = "csv",
        compression: Optional[str] = None,
        firstgid: int = 1,
        directory: Optional[Path] = None,
    ) -> Path:
        layer = tmx_layer(gids, width, height, encoding=encoding, compression=compression)
        path = (directory or tmp_path) / f"{name}.tmx"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(tmx_document(width, height, [layer], firstgid=firstgid), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_raw_tmx(tmp_path: Path):
    def _write(name: str, content: str, directory: Optional[Path] = None) -> Path:
        path = (directory or tmp_path) / f"{name}.tmx"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
