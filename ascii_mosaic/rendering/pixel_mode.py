#!/usr/bin/env python3
# ascii_mosaic/rendering/pixel_mode.py
"""
Pixelization engine.
Fills each block_size x block_size cell with its average color. Blocks do not
overlap; the trailing row and column are clipped at the image edge and
averaged over the pixels they actually contain.
"""

from __future__ import annotations

from typing import List

import numpy as np

from ascii_mosaic.errors import InvalidRequestError
from ascii_mosaic.raster import MODE_RGB, RasterBuffer, Rect

__all__ = ["PixelizationEngine"]


class PixelizationEngine:
    name = "pixelization"

    @staticmethod
    def plan(width: int, height: int, block_size: int) -> List[Rect]:
        rects = []
        for y in range(0, height, block_size):
            for x in range(0, width, block_size):
                rects.append(Rect(x, y, min(block_size, width - x), min(block_size, height - y)))
        return rects

    def render(self, source_color: RasterBuffer, block_size: int) -> RasterBuffer:
        if block_size < 1:
            raise InvalidRequestError(f"Block size must be positive, got {block_size}")
        src = source_color if source_color.channels == 3 else source_color.to_rgb()
        dst = RasterBuffer.new(src.width, src.height, MODE_RGB)
        for r in self.plan(src.width, src.height, block_size):
            cell = src.data[r.y:r.bottom, r.x:r.right]
            avg = cell.reshape(-1, 3).sum(axis=0, dtype=np.uint64) // r.area
            dst.data[r.y:r.bottom, r.x:r.right] = avg.astype(np.uint8)
        return dst
