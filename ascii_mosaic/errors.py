#!/usr/bin/env python3
# ascii_mosaic/errors.py
"""
Exception taxonomy for ASCII Mosaic.

Holder construction failures abort the whole conversion; nothing partial is
cached. A glyph box larger than the target region is not an error and has no
exception here: engines return the source unchanged.
"""

__all__ = [
    "MosaicError",
    "GlyphCreationError",
    "DegenerateIntensityRangeError",
    "InvalidRequestError",
]


class MosaicError(Exception):
    """Base class for all conversion failures."""


class GlyphCreationError(MosaicError):
    """Rendering or scoring a requested character failed."""

    def __init__(self, char: str, reason: str = ""):
        self.char = char
        msg = f"Glyph creation failed for {char!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class DegenerateIntensityRangeError(MosaicError):
    """Every glyph in a holder has the same raw score, normalization would divide by zero."""

    def __init__(self, intensity: int, count: int):
        self.intensity = intensity
        self.count = count
        super().__init__(f"All {count} glyphs share raw intensity {intensity}; cannot normalize")


class InvalidRequestError(MosaicError):
    """The conversion request is missing data or is malformed."""
