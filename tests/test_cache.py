import threading

import pytest

from ascii_mosaic.cache import HolderCache
from ascii_mosaic.errors import GlyphCreationError
from ascii_mosaic.glyphs import RenderingParams
from ascii_mosaic.holders import HolderKind, holder_key
from ascii_mosaic.raster import RasterBuffer

from conftest import UniformGlyphRenderer


def test_builds_once_per_key(params_3x3, uniform_renderer):
    cache = HolderCache(uniform_renderer)
    first = cache.get(params_3x3, " o@")
    calls = uniform_renderer.calls
    assert cache.get(params_3x3, " o@") is first
    assert uniform_renderer.calls == calls == 3
    assert cache.builds == 1


def test_peek_never_builds(params_3x3, uniform_renderer):
    cache = HolderCache(uniform_renderer)
    assert cache.peek(params_3x3) is None
    assert uniform_renderer.calls == 0
    holder = cache.get(params_3x3)
    assert cache.peek(params_3x3) is holder


def test_fixed_and_full_holders_are_distinct(params_3x3, uniform_renderer):
    cache = HolderCache(uniform_renderer)
    fixed = cache.get(params_3x3, " o@")
    full = cache.get(params_3x3, None)
    assert fixed is not full
    assert fixed.kind is HolderKind.FIXED_SUBSET
    assert full.kind is HolderKind.FULL_RANGE
    assert len(cache) == 2
    assert holder_key(params_3x3, " o@") in cache
    assert holder_key(params_3x3, None) in cache


def test_new_params_build_new_holder(params_3x3, uniform_renderer):
    cache = HolderCache(uniform_renderer)
    a = cache.get(params_3x3, " o@")
    b = cache.get(RenderingParams(None, 4, 4, 4), " o@")
    assert a is not b
    assert b.params.box == (4, 4)
    assert cache.builds == 2


def test_failed_build_is_not_cached(params_3x3):
    fail = {"on": True}

    def flaky(char, params):
        if fail["on"] and char == "o":
            raise RuntimeError("boom")
        return RasterBuffer.new(3, 3, "L", fill={" ": 255, "o": 120, "@": 10}[char])

    cache = HolderCache(flaky)
    with pytest.raises(GlyphCreationError):
        cache.get(params_3x3, " o@")
    assert len(cache) == 0
    assert cache.peek(params_3x3, " o@") is None

    fail["on"] = False
    holder = cache.get(params_3x3, " o@")
    assert len(holder) == 3
    assert cache.builds == 1


def test_discard_and_clear(params_3x3, uniform_renderer):
    cache = HolderCache(uniform_renderer)
    cache.get(params_3x3, " o@")
    cache.get(params_3x3)
    assert cache.discard(params_3x3, " o@") is True
    assert cache.discard(params_3x3, " o@") is False
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0
    assert cache.holders() == []


def test_concurrent_requests_build_once(params_3x3):
    renderer = UniformGlyphRenderer()
    cache = HolderCache(renderer)
    barrier = threading.Barrier(8)
    results = []

    def worker():
        barrier.wait()
        results.append(cache.get(params_3x3))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 8
    assert all(r is results[0] for r in results)
    assert cache.builds == 1
    assert renderer.calls == 95
