"""End-to-end pipeline and the recompute session."""
import io

import pytest
from PIL import Image

from conftest import png_bytes
from digitizer import PatternSession, load_image, make_pattern, render
from errors import CanvasUnavailable, ImageLoadError
from settings import RenderSettings


def test_load_image_rejects_garbage():
    with pytest.raises(ImageLoadError):
        load_image(b"not an image")
    with pytest.raises(ImageLoadError):
        load_image(b"")


def test_zero_sized_image_has_no_canvas():
    with pytest.raises(CanvasUnavailable):
        render(Image.new("RGBA", (0, 0)), RenderSettings())


def test_make_pattern_outputs(still_rng):
    result, preview, dst, colors = make_pattern(png_bytes(100, 100, (30, 140, 60, 255)), rng=still_rng)
    assert result.raster.size == (100, 100)
    assert Image.open(io.BytesIO(preview)).size == (100, 100)
    assert len(dst) == 539 and dst[:4] == b"EMB1"
    assert 0 < len(result.palette) <= 32
    assert colors.splitlines()[0].startswith("1. ")
    assert len(colors.splitlines()) == len(result.palette)


def test_transparent_image_renders_nothing(still_rng):
    result, _, _, colors = make_pattern(png_bytes(40, 40, (255, 0, 0, 0)), rng=still_rng)
    assert len(result.strokes) == 0
    assert result.palette == []
    assert colors == ""


def test_strokes_dst_mode(still_rng):
    settings = RenderSettings(thread_spacing=2.0)
    _, _, dst, _ = make_pattern(png_bytes(60, 60, (200, 50, 50, 255)), settings,
                                dst_mode="strokes", rng=still_rng)
    assert dst[:3] == b"LA:"


def test_unknown_dst_mode(still_rng):
    result = render(Image.new("RGBA", (10, 10), (1, 1, 1, 255)), RenderSettings(), rng=still_rng)
    with pytest.raises(ValueError):
        result.stitch_file("pes")


def test_session_recomputes_only_when_stale(still_rng):
    session = PatternSession.from_bytes(png_bytes(30, 30, (10, 90, 200, 255)), rng=still_rng)
    first = session.current()
    assert session.current() is first

    # several changes, one render
    session.update(session.settings.with_thread_pattern("wave"))
    session.update(session.settings.with_stitch_direction("diagonal"))
    assert session.stale
    second = session.current()
    assert second is not first
    assert second.settings.thread_pattern.value == "wave"
    assert second.settings.stitch_direction.value == "diagonal"
    assert not session.stale

    session.update(session.settings)
    assert not session.stale


def test_session_replace_image(still_rng):
    session = PatternSession.from_bytes(png_bytes(30, 30, (10, 90, 200, 255)), rng=still_rng)
    session.recompute()
    session.replace_image(png_bytes(20, 10, (10, 90, 200, 255)))
    assert session.current().raster.size == (20, 10)
    with pytest.raises(ImageLoadError):
        session.replace_image(b"junk")
