#!/usr/bin/env python3
# ascii_mosaic/rendering/ascii_mode.py
"""
ASCII tiling engine.

Walks the source in glyph-box sized blocks, scores each block through the
grayscale path, picks the closest glyph from a CharacterHolder and paints the
glyph shape into the destination.

Edge blocks are never shrunk. When the remaining strip is narrower than a
block, the last block is shifted back so it ends on the image boundary and
overlaps its neighbour. Overlapping writes resolve in row-major order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Tuple

import numpy as np

from ascii_mosaic import intensity
from ascii_mosaic.errors import InvalidRequestError
from ascii_mosaic.holders import CharacterHolder, Glyph
from ascii_mosaic.raster import MODE_RGB, RasterBuffer, Rect

__all__ = [
    "Block",
    "AsciiTilingEngine",
    "block_starts",
]

log = logging.getLogger(__name__)

WHITE = 255


def block_starts(extent: int, size: int) -> List[int]:
    """
    Block origins along one axis. After a block at s the next starts at
    s + size, unless s + 2 * size > extent and s + size != extent; then it
    snaps to extent - size so the final block ends exactly at extent.
    """
    if size < 1:
        raise ValueError(f"Block size must be positive, got {size}")
    if size > extent:
        return []
    starts: List[int] = []
    s = 0
    while s < extent:
        starts.append(s)
        nxt = s + size
        if s + 2 * size > extent and s + size != extent:
            nxt = extent - size
        s = nxt
    return starts


@dataclass(frozen=True)
class Block:
    """One tiling cell: where it is, how bright it is, and its true color."""
    rect: Rect
    score: int
    color: Tuple[int, int, int]


class AsciiTilingEngine:
    name = "ascii"

    def __init__(self, workers: int = 1):
        self.workers = max(1, int(workers))

    # -------------
    # Planning
    # -------------

    @staticmethod
    def plan(width: int, height: int, block_width: int, block_height: int) -> List[Rect]:
        """Row-major block rectangles covering a width x height region."""
        xs = block_starts(width, block_width)
        ys = block_starts(height, block_height)
        return [Rect(x, y, block_width, block_height) for y in ys for x in xs]

    @staticmethod
    def describe(color: RasterBuffer, gray: RasterBuffer, rect: Rect) -> Block:
        """Average color and grayscale score of one block."""
        pixels = color.data[rect.y:rect.bottom, rect.x:rect.right].reshape(-1, color.channels)
        avg = pixels.sum(axis=0, dtype=np.uint64) // pixels.shape[0]
        r, g, b = (int(v) for v in avg)
        sample = gray.crop(rect.x, rect.y, rect.width, rect.height)
        return Block(rect, intensity.score(sample), (r, g, b))

    def _describe_all(self, color: RasterBuffer, gray: RasterBuffer, rects: List[Rect]) -> Iterable[Block]:
        if self.workers == 1 or len(rects) < 2:
            return [self.describe(color, gray, r) for r in rects]
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            return list(pool.map(lambda r: self.describe(color, gray, r), rects))

    # -------------
    # Compositing
    # -------------

    @staticmethod
    def composite(dst: RasterBuffer, block: Block, glyph: Glyph, color_mode: bool) -> None:
        """Paint glyph into dst at block.rect. Inked samples are those below white."""
        r = block.rect
        shape = glyph.buffer.data
        if color_mode:
            tint = np.array(block.color, dtype=np.uint8)
            out = np.where(shape < WHITE, tint, np.uint8(WHITE))
        else:
            out = np.broadcast_to(shape, (r.height, r.width, 3))
        dst.data[r.y:r.bottom, r.x:r.right] = out

    # -------------
    # Entry
    # -------------

    def render(
        self,
        source_color: RasterBuffer,
        source_gray: RasterBuffer,
        block_width: int,
        block_height: int,
        holder: CharacterHolder,
        color_mode: bool,
    ) -> RasterBuffer:
        """
        Convert source_color into an ASCII mosaic of the same size.
        source_gray must be the grayscale reduction of source_color.
        Returns an RGB buffer; a region smaller than one block is returned as is.
        """
        if source_color.size != source_gray.size:
            raise InvalidRequestError(
                f"Color {source_color.size} and gray {source_gray.size} sources differ in size"
            )
        if holder.params.box != (block_width, block_height):
            raise InvalidRequestError(
                f"Holder glyph box {holder.params.box} does not match block {block_width}x{block_height}"
            )
        if source_color.channels != 3:
            source_color = source_color.to_rgb()

        width, height = source_color.size
        if block_width > width or block_height > height:
            log.info(
                "Glyph box %dx%d exceeds region %dx%d, leaving it unchanged",
                block_width, block_height, width, height,
            )
            return source_color.copy()

        dst = RasterBuffer.new(width, height, MODE_RGB, fill=WHITE)
        rects = self.plan(width, height, block_width, block_height)
        for block in self._describe_all(source_color, source_gray, rects):
            self.composite(dst, block, holder.closest(block.score), color_mode)
        return dst
