#!/usr/bin/env python3
# ascii_mosaic/intensity.py
"""
Glyph intensity model.

Scores a small raster (a rendered glyph or an image block of the same size)
as a weighted average of its first-channel samples. The raster is split by a
3x3 partition into five zones:

    +--------------------+
    |        top         |
    +------+------+------+
    | left |center| right|
    +------+------+------+
    |       bottom       |
    +--------------------+

Left and right strips span the full height and top and bottom strips the
full width, so the four corner cells are visited twice. Glyphs and image
blocks are weighted the same way.
Lower score means darker; 0 is solid black.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

import numpy as np

from ascii_mosaic.raster import RasterBuffer, Rect

__all__ = [
    "ZoneLayout",
    "zone_layout",
    "score",
]


@dataclass(frozen=True)
class ZoneLayout:
    """Zone rectangles for one raster size plus the total pixel-visit count."""
    top: Rect
    bottom: Rect
    left: Rect
    right: Rect
    center: Rect

    @property
    def zones(self) -> Tuple[Rect, ...]:
        return self.top, self.left, self.right, self.bottom, self.center

    @property
    def visits(self) -> int:
        # corners lie in a side strip and a top or bottom strip
        return 2 * self.top.area + 2 * self.left.area + self.center.area


def _split(extent: int) -> Tuple[int, int]:
    """Return (minor strip size, center size) for one axis."""
    if extent % 3 == 0:
        third = extent // 3
        return third, third
    minor = max(1, extent // 3)
    center = extent - 2 * minor
    return minor, (center if center > 0 else 1)


@lru_cache(maxsize=256)
def zone_layout(width: int, height: int) -> ZoneLayout:
    """Compute the five zones for a width x height raster."""
    if width < 1 or height < 1:
        raise ValueError(f"Cannot partition a {width}x{height} raster")
    side_w, center_w = _split(width)
    top_h, center_h = _split(height)
    # Clamping to 1 can push the center past the edge of a 1-pixel axis
    cx = min(side_w, width - center_w)
    cy = min(top_h, height - center_h)
    return ZoneLayout(
        top=Rect(0, 0, width, top_h),
        bottom=Rect(0, height - top_h, width, top_h),
        left=Rect(0, 0, side_w, height),
        right=Rect(width - side_w, 0, side_w, height),
        center=Rect(cx, cy, center_w, center_h),
    )


def score(buf: RasterBuffer) -> int:
    """Weighted average ink density of buf, in sample units (0..255)."""
    layout = zone_layout(buf.width, buf.height)
    plane = buf.data[:, :, 0]
    total = 0
    for z in layout.zones:
        total += int(plane[z.y:z.bottom, z.x:z.right].sum(dtype=np.uint64))
    return total // layout.visits
