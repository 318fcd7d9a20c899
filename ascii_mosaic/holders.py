#!/usr/bin/env python3
# ascii_mosaic/holders.py
"""
Character holders: the normalized, searchable glyph set for one
(rendering parameters, subset) configuration.

Two variants, selected by HolderKind:

- FIXED_SUBSET keeps the caller's subset order, which is expected to run
  from lightest to darkest glyph (" .,:;ox%#@"). The first glyph supplies the
  max raw intensity and the last the min. Lookup is a proportional index
  projection, not a nearest-score search.
- FULL_RANGE renders ASCII 32..126, sorts ascending by raw intensity and
  looks up by binary search, returning the last visited glyph when no score
  matches exactly.

Both lookups are kept; they produce visibly different output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from ascii_mosaic import intensity
from ascii_mosaic.errors import (
    DegenerateIntensityRangeError,
    GlyphCreationError,
    InvalidRequestError,
    MosaicError,
)
from ascii_mosaic.glyphs import RenderGlyph, RenderingParams
from ascii_mosaic.raster import RasterBuffer

__all__ = [
    "HolderKind",
    "Glyph",
    "CharacterHolder",
    "PRINTABLE_CHARS",
    "holder_key",
]

log = logging.getLogger(__name__)

PRINTABLE_CHARS = "".join(chr(c) for c in range(32, 127))

HolderKey = Tuple[RenderingParams, Optional[str]]


class HolderKind(Enum):
    FIXED_SUBSET = "fixed"
    FULL_RANGE = "full"


def holder_key(params: RenderingParams, subset: Optional[str]) -> HolderKey:
    """Cache identity. subset=None means the full printable range."""
    return params, subset


@dataclass
class Glyph:
    """One rendered character with its raw and rescaled intensity."""
    char: str
    buffer: RasterBuffer = field(repr=False)
    raw: int
    score: Optional[int] = None


class CharacterHolder:
    """Ordered glyph set with min/max bookkeeping and closest-glyph lookup."""

    def __init__(
        self,
        kind: HolderKind,
        params: RenderingParams,
        glyphs: List[Glyph],
        subset: Optional[str] = None,
    ):
        if not glyphs:
            raise InvalidRequestError("A character holder needs at least one glyph")
        self.kind = kind
        self.params = params
        self.subset = subset
        self._glyphs = glyphs
        self.min_intensity = 0
        self.max_intensity = 0
        self._normalize()

    # -------------
    # Build
    # -------------

    @classmethod
    def build(
        cls,
        params: RenderingParams,
        render_glyph: RenderGlyph,
        subset: Optional[str] = None,
    ) -> "CharacterHolder":
        """
        Render and score every character of the configured set.
        Any rendering failure aborts the build with GlyphCreationError.
        """
        if subset is not None and not subset:
            raise InvalidRequestError("Character subset must not be empty")
        kind = HolderKind.FULL_RANGE if subset is None else HolderKind.FIXED_SUBSET
        chars = PRINTABLE_CHARS if subset is None else subset

        glyphs = [_create_glyph(ch, params, render_glyph) for ch in chars]
        if kind is HolderKind.FULL_RANGE:
            glyphs.sort(key=lambda g: g.raw)

        holder = cls(kind, params, glyphs, subset)
        log.debug(
            "Built %s holder: %d glyphs, raw intensity %d..%d, box %dx%d",
            kind.value, len(holder), holder.min_intensity, holder.max_intensity,
            params.glyph_width, params.glyph_height,
        )
        return holder

    def _normalize(self) -> None:
        first, last = self._glyphs[0].raw, self._glyphs[-1].raw
        if self.kind is HolderKind.FIXED_SUBSET:
            hi, lo = first, last
        else:
            lo, hi = first, last
        if hi == lo:
            raise DegenerateIntensityRangeError(lo, len(self._glyphs))
        if hi < lo:
            log.warning("Subset %r is not ordered from lightest to darkest glyph", self.subset)
        self.min_intensity, self.max_intensity = lo, hi
        span = hi - lo
        for g in self._glyphs:
            g.score = min(255, max(0, ((g.raw - lo) * 255) // span))

    # -------------
    # Identity
    # -------------

    @property
    def key(self) -> HolderKey:
        return holder_key(self.params, self.subset)

    def matches(self, params: RenderingParams, subset: Optional[str]) -> bool:
        """Same rendering params, and the same subset (fixed) or no subset (full)."""
        if self.params != params:
            return False
        if self.kind is HolderKind.FIXED_SUBSET:
            return subset is not None and subset == self.subset
        return subset is None

    # -------------
    # Lookup
    # -------------

    def closest(self, score: int) -> Glyph:
        if self.kind is HolderKind.FIXED_SUBSET:
            return self._closest_fixed(score)
        return self._closest_full(score)

    def _closest_fixed(self, score: int) -> Glyph:
        count = len(self._glyphs)
        score = min(255, max(0, int(score)))
        index = ((255 - score) * count) // 256
        return self._glyphs[min(count - 1, max(0, index))]

    def _closest_full(self, score: int) -> Glyph:
        lo, hi = 0, len(self._glyphs) - 1
        found = self._glyphs[0]
        while lo <= hi:
            mid = lo + (hi - lo) // 2
            found = self._glyphs[mid]
            if found.score == score:
                return found
            if found.score < score:
                lo = mid + 1
            else:
                hi = mid - 1
        return found

    # -------------
    # Container
    # -------------

    @property
    def glyphs(self) -> Tuple[Glyph, ...]:
        return tuple(self._glyphs)

    def __len__(self) -> int:
        return len(self._glyphs)

    def __iter__(self) -> Iterator[Glyph]:
        return iter(self._glyphs)

    def __repr__(self) -> str:
        return f"CharacterHolder({self.kind.value}, {len(self)} glyphs, params={self.params})"


def _create_glyph(char: str, params: RenderingParams, render_glyph: RenderGlyph) -> Glyph:
    try:
        buf = render_glyph(char, params)
    except MosaicError:
        raise
    except Exception as exc:
        raise GlyphCreationError(char, str(exc)) from exc
    if buf is None:
        raise GlyphCreationError(char, "renderer returned no raster")
    if buf.size != params.box:
        raise GlyphCreationError(
            char, f"raster is {buf.width}x{buf.height}, glyph box is {params.glyph_width}x{params.glyph_height}"
        )
    return Glyph(char, buf, intensity.score(buf))
