#!/usr/bin/env python3
# ascii_mosaic/grayscale.py
"""
Grayscale reduction feeding the ASCII tiling engine.

Each output pixel carries floor((R + G + B) / 3) in every channel. The pixel
format is preserved, so a color input yields a three-channel gray buffer.
"""

from __future__ import annotations

import numpy as np

from ascii_mosaic.raster import RasterBuffer

__all__ = ["reduce_to_grayscale"]


def reduce_to_grayscale(buf: RasterBuffer) -> RasterBuffer:
    """Return a new gray buffer of identical size and format. Input is left untouched."""
    if buf.channels == 1:
        return buf.copy()
    # uint16 holds 3 * 255 without overflow
    total = buf.data.sum(axis=2, dtype=np.uint16)
    gray = (total // 3).astype(np.uint8)
    return RasterBuffer(np.repeat(gray[:, :, np.newaxis], buf.channels, axis=2))
