#!/usr/bin/env python3
# ascii_mosaic/rendering/renderer.py
"""
Conversion service: the single entry point callers (CLI, batch tools, a GUI
shell) use to turn an image into an ASCII-art or pixelization mosaic.

- Common API: ConversionService.convert(mode, image, params, subset, color_mode, target)
- The mode enumeration picks the engine; there are exactly two.
- The service owns the HolderCache, so holders live as long as the service.

A target rectangle is converted on its own and pasted back into a copy of the
full image. Output is always RGB.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from PIL import Image

from ascii_mosaic.cache import HolderCache
from ascii_mosaic.composite import composite_region, extract_region, resolve_target
from ascii_mosaic.errors import InvalidRequestError
from ascii_mosaic.glyphs import PillowGlyphRenderer, RenderGlyph, RenderingParams
from ascii_mosaic.grayscale import reduce_to_grayscale
from ascii_mosaic.raster import RasterBuffer, Rect
from ascii_mosaic.rendering.ascii_mode import AsciiTilingEngine
from ascii_mosaic.rendering.pixel_mode import PixelizationEngine

__all__ = [
    "Mode",
    "ConversionRequest",
    "ConversionService",
]

log = logging.getLogger(__name__)


class Mode(Enum):
    ASCII = "ascii"
    PIXELIZATION = "pixelization"

    @classmethod
    def parse(cls, value: Union["Mode", str]) -> "Mode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidRequestError(f"Unknown conversion mode {value!r}") from None


@dataclass(frozen=True)
class ConversionRequest:
    """Everything one convert() call needs besides the image."""
    mode: Mode
    params: RenderingParams
    subset: Optional[str] = None
    color_mode: bool = False
    target: Optional[Rect] = None


@dataclass
class ConversionService:
    """
    Dispatches conversions to the ASCII or pixelization engine and keeps the
    character holders built along the way.
    """
    render_glyph: RenderGlyph = field(default_factory=PillowGlyphRenderer)
    workers: int = 1

    def __post_init__(self):
        self.cache = HolderCache(self.render_glyph)
        self.ascii_engine = AsciiTilingEngine(self.workers)
        self.pixel_engine = PixelizationEngine()

    def convert(
        self,
        mode: Union[Mode, str],
        image: Optional[RasterBuffer],
        params: RenderingParams,
        subset: Optional[str] = None,
        color_mode: bool = False,
        target: Optional[Rect] = None,
    ) -> RasterBuffer:
        if image is None:
            raise InvalidRequestError("No source image supplied")
        mode = Mode.parse(mode)
        if params.glyph_width < 1 or params.glyph_height < 1:
            raise InvalidRequestError(
                f"Glyph box must be positive, got {params.glyph_width}x{params.glyph_height}"
            )

        rect = resolve_target(image, target)
        if rect.area == 0:
            log.info("Empty target %s, nothing to convert", rect)
            return image.to_rgb()

        t0 = time.time()
        region = image if target is None else extract_region(image, rect)
        if mode is Mode.ASCII:
            out = self._convert_ascii(region, params, subset, color_mode)
        else:
            out = self.pixel_engine.render(region, params.glyph_width)
        log.debug("%s conversion of %dx%d took %.1f ms",
                  mode.value, rect.width, rect.height, (time.time() - t0) * 1000.0)

        if target is None:
            return out
        return composite_region(image, out, rect)

    def _convert_ascii(
        self,
        region: RasterBuffer,
        params: RenderingParams,
        subset: Optional[str],
        color_mode: bool,
    ) -> RasterBuffer:
        bw, bh = params.box
        if bw > region.width or bh > region.height:
            log.info("Glyph box %dx%d exceeds region %dx%d, leaving it unchanged",
                     bw, bh, region.width, region.height)
            return region.to_rgb()
        holder = self.cache.get(params, subset)
        color = region.to_rgb()
        gray = reduce_to_grayscale(color)
        return self.ascii_engine.render(color, gray, bw, bh, holder, color_mode)

    def submit(self, request: ConversionRequest, image: Optional[RasterBuffer]) -> RasterBuffer:
        return self.convert(
            request.mode, image, request.params, request.subset, request.color_mode, request.target
        )

    def convert_image(self, request: ConversionRequest, img: Image.Image) -> Image.Image:
        """Pillow in, Pillow out. Any input mode is accepted, output is RGB."""
        return self.submit(request, RasterBuffer.from_image(img)).to_image()
