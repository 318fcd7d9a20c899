#!/usr/bin/env python3
# ascii_mosaic/raster.py
"""
Raster buffer primitive shared by every stage of the pipeline.

A RasterBuffer wraps a uint8 numpy array shaped (height, width, channels)
with channels in {1, 3}. Sub-rectangle views share storage with the parent,
so the row stride of a view is the parent's stride and can exceed
width * channels. Every coordinate access is bounds-checked.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np
from PIL import Image

__all__ = [
    "Rect",
    "RasterBuffer",
    "MODE_GRAY",
    "MODE_RGB",
]

MODE_GRAY = "L"
MODE_RGB = "RGB"

_CHANNELS = {MODE_GRAY: 1, MODE_RGB: 3}

Pixel = Union[int, Sequence[int]]


# -------------------------
# Rect
# -------------------------

@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in image coordinates."""
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_points(cls, p0: Tuple[int, int], p1: Tuple[int, int]) -> "Rect":
        """Normalize two corner points (any order) into a rectangle."""
        x0, y0 = int(p0[0]), int(p0[1])
        x1, y1 = int(p1[0]), int(p1[1])
        return cls(min(x0, x1), min(y0, y1), abs(x1 - x0), abs(y1 - y0))

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def fits_within(self, width: int, height: int) -> bool:
        """True if the rectangle lies fully inside a width x height image."""
        return (
            self.x >= 0 and self.y >= 0
            and self.width >= 0 and self.height >= 0
            and self.right <= width and self.bottom <= height
        )


# -------------------------
# RasterBuffer
# -------------------------

class RasterBuffer:
    """
    Width x height grid of 8-bit samples with a fixed channel count.
    Use view() for shared-storage sub-rectangles and crop() for copies.
    """

    __hash__ = None  # mutable

    def __init__(self, data: np.ndarray):
        if data.dtype != np.uint8:
            raise TypeError(f"RasterBuffer requires uint8 samples, got {data.dtype}")
        if data.ndim == 2:
            data = data[:, :, np.newaxis]
        if data.ndim != 3 or data.shape[2] not in (1, 3):
            raise ValueError(f"Unsupported raster shape {data.shape}; expected (H, W, 1|3)")
        self._data = data

    # -------------
    # Constructors
    # -------------

    @classmethod
    def new(cls, width: int, height: int, mode: str = MODE_RGB, fill: Pixel = 0) -> "RasterBuffer":
        if mode not in _CHANNELS:
            raise ValueError(f"Unknown pixel format {mode!r}")
        if width < 1 or height < 1:
            raise ValueError(f"Raster dimensions must be positive, got {width}x{height}")
        data = np.empty((height, width, _CHANNELS[mode]), dtype=np.uint8)
        data[...] = fill
        return cls(data)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "RasterBuffer":
        """Copy an (H, W) or (H, W, 1|3) array into a new buffer."""
        return cls(np.array(arr, dtype=np.uint8, copy=True))

    @classmethod
    def from_image(cls, img: Image.Image) -> "RasterBuffer":
        """Build from a Pillow image. Modes other than L/RGB are converted to RGB."""
        if img.mode not in _CHANNELS:
            img = img.convert(MODE_RGB)
        return cls(np.array(img, dtype=np.uint8))

    # -------------
    # Geometry
    # -------------

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    @property
    def channels(self) -> int:
        return self._data.shape[2]

    @property
    def mode(self) -> str:
        return MODE_GRAY if self.channels == 1 else MODE_RGB

    @property
    def stride(self) -> int:
        """Row span in bytes. Views keep the parent's stride."""
        return self._data.strides[0]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def data(self) -> np.ndarray:
        """The underlying (H, W, C) array. Writes go through to the buffer."""
        return self._data

    def _check_xy(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} raster")

    def _check_rect(self, x: int, y: int, w: int, h: int) -> None:
        if w < 1 or h < 1:
            raise ValueError(f"Region size must be positive, got {w}x{h}")
        if x < 0 or y < 0 or x + w > self.width or y + h > self.height:
            raise IndexError(
                f"Region ({x}, {y}, {w}, {h}) outside {self.width}x{self.height} raster"
            )

    # -------------
    # Accessors
    # -------------

    def pixel(self, x: int, y: int) -> Tuple[int, ...]:
        self._check_xy(x, y)
        return tuple(int(v) for v in self._data[y, x])

    def set_pixel(self, x: int, y: int, value: Pixel) -> None:
        self._check_xy(x, y)
        self._data[y, x] = value

    def row(self, y: int) -> np.ndarray:
        """Return row y as a (W, C) array sharing storage."""
        if not 0 <= y < self.height:
            raise IndexError(f"Row {y} outside raster of height {self.height}")
        return self._data[y]

    def view(self, x: int, y: int, w: int, h: int) -> "RasterBuffer":
        """Shared-storage window. Writes into the view modify this buffer."""
        self._check_rect(x, y, w, h)
        return RasterBuffer(self._data[y:y + h, x:x + w])

    def view_rect(self, rect: Rect) -> "RasterBuffer":
        return self.view(rect.x, rect.y, rect.width, rect.height)

    def crop(self, x: int, y: int, w: int, h: int) -> "RasterBuffer":
        """Independent copy of a sub-rectangle."""
        self._check_rect(x, y, w, h)
        return RasterBuffer(np.ascontiguousarray(self._data[y:y + h, x:x + w]))

    def copy(self) -> "RasterBuffer":
        return RasterBuffer(self._data.copy())

    def paste(self, src: "RasterBuffer", x: int, y: int) -> None:
        """Write src into this buffer with its top-left corner at (x, y)."""
        self._check_rect(x, y, src.width, src.height)
        if src.channels == self.channels:
            self._data[y:y + src.height, x:x + src.width] = src.data
        elif self.channels == 3:
            self._data[y:y + src.height, x:x + src.width] = src.to_rgb().data
        else:
            raise ValueError("Cannot paste a color raster into a grayscale raster")

    def fill(self, value: Pixel) -> None:
        self._data[...] = value

    # -------------
    # Conversions
    # -------------

    def to_rgb(self) -> "RasterBuffer":
        """Three-channel copy (single channel is replicated)."""
        if self.channels == 3:
            return self.copy()
        return RasterBuffer(np.repeat(self._data, 3, axis=2))

    def to_image(self) -> Image.Image:
        if self.channels == 1:
            return Image.fromarray(np.ascontiguousarray(self._data[:, :, 0]))
        return Image.fromarray(np.ascontiguousarray(self._data))

    # -------------
    # Dunder
    # -------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return self._data.shape == other._data.shape and np.array_equal(self._data, other._data)

    def __repr__(self) -> str:
        return f"RasterBuffer({self.width}x{self.height}, mode={self.mode!r}, stride={self.stride})"
