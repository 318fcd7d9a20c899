#!/usr/bin/env python3
# ascii_mosaic/composite.py
"""
Region compositing for selected-area conversion.

Cuts a target rectangle out of the source, and pastes the converted region
back into an RGB copy of the full image at the same place.
"""

from __future__ import annotations

from typing import Optional

from ascii_mosaic.errors import InvalidRequestError
from ascii_mosaic.raster import RasterBuffer, Rect

__all__ = ["resolve_target", "extract_region", "composite_region"]


def resolve_target(image: RasterBuffer, target: Optional[Rect]) -> Rect:
    """
    Return the rectangle to convert: target, or the whole image when None.
    Raises InvalidRequestError when target is not inside the image.
    """
    if target is None:
        return Rect(0, 0, image.width, image.height)
    if not target.fits_within(image.width, image.height):
        raise InvalidRequestError(
            f"Target {target} is outside the {image.width}x{image.height} image"
        )
    return target


def extract_region(image: RasterBuffer, rect: Rect) -> RasterBuffer:
    """Independent copy of rect."""
    return image.crop(rect.x, rect.y, rect.width, rect.height)


def composite_region(image: RasterBuffer, converted: RasterBuffer, rect: Rect) -> RasterBuffer:
    """RGB copy of image with converted written over rect."""
    if converted.size != (rect.width, rect.height):
        raise InvalidRequestError(
            f"Converted region {converted.size} does not match target {rect.width}x{rect.height}"
        )
    out = image.to_rgb()
    out.paste(converted, rect.x, rect.y)
    return out
