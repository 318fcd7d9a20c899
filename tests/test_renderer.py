import numpy as np
import pytest
from PIL import Image

from ascii_mosaic.errors import GlyphCreationError, InvalidRequestError
from ascii_mosaic.glyphs import RenderingParams
from ascii_mosaic.raster import RasterBuffer, Rect
from ascii_mosaic.rendering.pixel_mode import PixelizationEngine
from ascii_mosaic.rendering.renderer import ConversionRequest, ConversionService, Mode

from conftest import UniformGlyphRenderer


@pytest.fixture
def service(uniform_renderer):
    return ConversionService(render_glyph=uniform_renderer)


# -------------------------
# ASCII
# -------------------------

def test_black_image_uses_darkest_glyph(service, params_3x3, make_image):
    out = service.convert(Mode.ASCII, make_image(9, 9), params_3x3)
    # '~' is the darkest uniform glyph, level 67
    assert np.all(out.data == 67)


def test_black_image_in_color_mode_stays_black(service, params_3x3, make_image):
    out = service.convert("ascii", make_image(9, 9), params_3x3, color_mode=True)
    assert np.all(out.data == 0)


def test_white_image_maps_to_blank(service, params_3x3, make_image):
    out = service.convert(Mode.ASCII, make_image(9, 6, (255, 255, 255)), params_3x3, subset=" .:#")
    assert np.all(out.data == 255)


def test_holders_are_reused_between_calls(service, uniform_renderer, params_3x3, noise_image):
    first = service.convert(Mode.ASCII, noise_image, params_3x3, subset=" .:#")
    calls = uniform_renderer.calls
    second = service.convert(Mode.ASCII, noise_image, params_3x3, subset=" .:#")
    assert first == second
    assert uniform_renderer.calls == calls
    assert service.cache.builds == 1


def test_workers_do_not_change_output(uniform_renderer, params_3x3, noise_image):
    one = ConversionService(render_glyph=uniform_renderer, workers=1)
    many = ConversionService(render_glyph=uniform_renderer, workers=3)
    assert one.convert(Mode.ASCII, noise_image, params_3x3, color_mode=True) == \
        many.convert(Mode.ASCII, noise_image, params_3x3, color_mode=True)


# -------------------------
# Selected area
# -------------------------

def test_target_is_converted_in_place(service, params_3x3, noise_image):
    rect = Rect(5, 4, 12, 9)
    out = service.convert(Mode.ASCII, noise_image, params_3x3, target=rect)

    assert out.size == noise_image.size
    mask = np.ones((noise_image.height, noise_image.width), dtype=bool)
    mask[rect.y:rect.bottom, rect.x:rect.right] = False
    np.testing.assert_array_equal(out.data[mask], noise_image.data[mask])

    alone = service.convert(Mode.ASCII, noise_image.crop(5, 4, 12, 9), params_3x3)
    assert out.crop(5, 4, 12, 9) == alone


def test_target_smaller_than_glyph_box_is_untouched(service, params_3x3, noise_image):
    out = service.convert(Mode.ASCII, noise_image, params_3x3, target=Rect(0, 0, 2, 2))
    assert out == noise_image
    assert len(service.cache) == 0


def test_image_smaller_than_glyph_box_is_untouched(service, params_10x10, noise_image):
    small = noise_image.crop(0, 0, 8, 20)
    assert service.convert(Mode.ASCII, small, params_10x10) == small
    assert len(service.cache) == 0


def test_empty_target_returns_copy(service, params_3x3, noise_image):
    out = service.convert(Mode.ASCII, noise_image, params_3x3, target=Rect(3, 3, 0, 5))
    assert out == noise_image
    assert out is not noise_image


def test_pixelization_target(service, noise_image):
    params = RenderingParams(None, 4, 4, 4)
    out = service.convert(Mode.PIXELIZATION, noise_image, params, target=Rect(10, 0, 9, 10))
    expected = PixelizationEngine().render(noise_image.crop(10, 0, 9, 10), 4)
    assert out.crop(10, 0, 9, 10) == expected
    assert out.crop(0, 0, 10, 23) == noise_image.crop(0, 0, 10, 23)


# -------------------------
# Pixelization
# -------------------------

def test_pixelization_uses_glyph_width_as_block(service, noise_image):
    params = RenderingParams(None, 4, 4, 9)
    out = service.convert(Mode.PIXELIZATION, noise_image, params)
    assert out == PixelizationEngine().render(noise_image, 4)
    assert len(service.cache) == 0


def test_gray_input_gives_rgb(service, params_3x3):
    gray = RasterBuffer.new(6, 6, "L", fill=200)
    assert service.convert(Mode.PIXELIZATION, gray, params_3x3).channels == 3
    assert service.convert(Mode.ASCII, gray, params_3x3).channels == 3


# -------------------------
# Errors
# -------------------------

def test_missing_image_is_rejected(service, params_3x3):
    with pytest.raises(InvalidRequestError):
        service.convert(Mode.ASCII, None, params_3x3)


def test_unknown_mode_is_rejected(service, params_3x3, make_image):
    with pytest.raises(InvalidRequestError):
        service.convert("sepia", make_image(4, 4), params_3x3)


def test_target_outside_image_is_rejected(service, params_3x3, make_image):
    with pytest.raises(InvalidRequestError):
        service.convert(Mode.ASCII, make_image(10, 10), params_3x3, target=Rect(5, 5, 6, 2))


def test_zero_glyph_box_is_rejected(service, make_image):
    with pytest.raises(InvalidRequestError):
        service.convert(Mode.PIXELIZATION, make_image(4, 4), RenderingParams(None, 4, 0, 4))


def test_glyph_failure_propagates_and_is_not_cached(params_3x3, make_image):
    def broken(char, params):
        raise OSError("font file vanished")

    service = ConversionService(render_glyph=broken)
    with pytest.raises(GlyphCreationError):
        service.convert(Mode.ASCII, make_image(6, 6), params_3x3, subset=" #")
    assert len(service.cache) == 0


# -------------------------
# Request / Pillow surface
# -------------------------

def test_mode_parse():
    assert Mode.parse("ASCII") is Mode.ASCII
    assert Mode.parse(" pixelization ") is Mode.PIXELIZATION
    assert Mode.parse(Mode.ASCII) is Mode.ASCII


def test_submit_request(service, params_3x3, noise_image):
    req = ConversionRequest(Mode.ASCII, params_3x3, subset=" .:#", color_mode=True, target=Rect(0, 0, 9, 9))
    out = service.submit(req, noise_image)
    assert out == service.convert(Mode.ASCII, noise_image, params_3x3, " .:#", True, Rect(0, 0, 9, 9))


def test_convert_image_accepts_any_pillow_mode(params_3x3):
    service = ConversionService(render_glyph=UniformGlyphRenderer())
    img = Image.new("RGBA", (12, 7), (10, 20, 30, 128))
    out = service.convert_image(ConversionRequest(Mode.ASCII, params_3x3), img)
    assert out.mode == "RGB"
    assert out.size == (12, 7)
