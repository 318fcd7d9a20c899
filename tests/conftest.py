"""
Pytest fixtures shared by the ascii_mosaic tests.

Glyph rendering is replaced by deterministic renderers so holder and engine
tests do not depend on installed fonts.
"""
from typing import Callable, Dict, Optional

import numpy as np
import pytest

from ascii_mosaic.glyphs import RenderingParams
from ascii_mosaic.raster import RasterBuffer


class UniformGlyphRenderer:
    """Renders every character as a flat gray box. Level comes from `levels` or ord()."""

    def __init__(self, levels: Optional[Dict[str, int]] = None):
        self.levels = levels or {}
        self.calls = 0

    def level(self, char: str) -> int:
        if char in self.levels:
            return self.levels[char]
        # 32 -> 255 ... 126 -> 67, all distinct
        return 255 - (ord(char) - 32) * 2

    def __call__(self, char: str, params: RenderingParams) -> RasterBuffer:
        self.calls += 1
        w, h = params.box
        return RasterBuffer.new(w, h, "L", fill=self.level(char))


class ShapeGlyphRenderer:
    """Renders glyphs from a char -> (H, W) array table; anything else is blank."""

    def __init__(self, shapes: Dict[str, np.ndarray]):
        self.shapes = shapes

    def __call__(self, char: str, params: RenderingParams) -> RasterBuffer:
        w, h = params.box
        if char in self.shapes:
            return RasterBuffer.from_array(self.shapes[char])
        return RasterBuffer.new(w, h, "L", fill=255)


def ramp_levels(subset: str, step: int = 25) -> Dict[str, int]:
    """Levels for a subset ordered lightest first: 255, 255 - step, ..."""
    return {ch: 255 - i * step for i, ch in enumerate(subset)}


@pytest.fixture
def params_3x3() -> RenderingParams:
    return RenderingParams(None, 3, 3, 3)


@pytest.fixture
def params_10x10() -> RenderingParams:
    return RenderingParams(None, 10, 10, 10)


@pytest.fixture
def uniform_renderer() -> UniformGlyphRenderer:
    return UniformGlyphRenderer()


@pytest.fixture
def make_image() -> Callable[..., RasterBuffer]:
    def _make(width: int, height: int, color=(0, 0, 0)) -> RasterBuffer:
        return RasterBuffer.new(width, height, "RGB", fill=color)
    return _make


@pytest.fixture
def noise_image() -> RasterBuffer:
    rng = np.random.default_rng(1234)
    return RasterBuffer(rng.integers(0, 256, size=(23, 37, 3), dtype=np.uint8))
