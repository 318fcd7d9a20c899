#!/usr/bin/env python3
# ascii_mosaic/glyphs.py
"""
Rendering parameters and the default glyph rasterizer.

The core only needs a callable `render_glyph(char, params) -> RasterBuffer`.
PillowGlyphRenderer is the stock implementation: it draws one character in
black on a white glyph-box canvas, centered on the character's ink box.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from ascii_mosaic.raster import RasterBuffer

__all__ = [
    "RenderingParams",
    "RenderGlyph",
    "PillowGlyphRenderer",
    "load_font",
]

FontType = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

_font_cache: Dict[Tuple[Optional[str], int], FontType] = {}
_font_lock = threading.Lock()


def load_font(path: Optional[str], size: int) -> FontType:
    """Load a TrueType font, or Pillow's bundled default when path is None. Cached."""
    key = (path, int(size))
    with _font_lock:
        font = _font_cache.get(key)
        if font is None:
            if path:
                font = ImageFont.truetype(path, int(size))
            else:
                font = ImageFont.load_default(size=int(size))
            _font_cache[key] = font
        return font


@dataclass(frozen=True)
class RenderingParams:
    """
    Font identity plus the glyph box. The glyph box is also the block size of
    the ASCII tiling engine; glyph_width alone is the pixelization block size.
    """
    font_path: Optional[str]
    font_size: int
    glyph_width: int
    glyph_height: int

    @property
    def box(self) -> Tuple[int, int]:
        return self.glyph_width, self.glyph_height

    @classmethod
    def for_font(
        cls,
        font_path: Optional[str],
        font_size: int,
        glyph_width: Optional[int] = None,
        glyph_height: Optional[int] = None,
    ) -> "RenderingParams":
        """
        Derive the glyph box from the font: width is the font size and height
        the line height (ascent + descent). Explicit values win.
        """
        if glyph_width is None or glyph_height is None:
            font = load_font(font_path, font_size)
            getmetrics = getattr(font, "getmetrics", None)
            if getmetrics is not None:
                ascent, descent = getmetrics()
                line_height = ascent + descent
            else:
                line_height = font.getbbox("Mg")[3]
            glyph_width = int(font_size) if glyph_width is None else glyph_width
            glyph_height = max(1, int(line_height)) if glyph_height is None else glyph_height
        return cls(font_path, int(font_size), int(glyph_width), int(glyph_height))


RenderGlyph = Callable[[str, RenderingParams], RasterBuffer]


class PillowGlyphRenderer:
    """Rasterizes characters with Pillow's ImageDraw into grayscale buffers."""

    background = 255
    ink = 0

    def render_glyph(self, char: str, params: RenderingParams) -> RasterBuffer:
        w, h = params.box
        img = Image.new("L", (w, h), self.background)
        draw = ImageDraw.Draw(img)
        font = load_font(params.font_path, params.font_size)
        left, top, right, bottom = draw.textbbox((0, 0), char, font=font)
        x = (w - (right - left)) / 2 - left
        y = (h - (bottom - top)) / 2 - top
        draw.text((x, y), char, fill=self.ink, font=font)
        return RasterBuffer.from_image(img)

    __call__ = render_glyph
