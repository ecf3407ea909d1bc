"""Thread path synthesis, placement and drawing."""
import math

import pytest
from PIL import Image

from color import adjust_color
from geometry import draw_path, generate_path, place_path, stroke_width
from settings import ThreadPattern


@pytest.mark.parametrize("length", [0.5, 2.0, 13.0, 40.0])
def test_straight_is_two_points_symmetric(length):
    path = generate_path(length, ThreadPattern.STRAIGHT, 0.7, 5.0, 1.0)
    assert len(path) == 1
    (a, b), = [path[0]]
    assert a == (-length / 2, 0.0)
    assert b == (length / 2, 0.0)


@pytest.mark.parametrize("pattern", [ThreadPattern.WAVE, ThreadPattern.ZIGZAG])
@pytest.mark.parametrize("length", [4.0, 20.0, 33.3])
def test_wave_and_zigzag_span_length_with_21_points(pattern, length):
    (pts,) = generate_path(length, pattern, 0.5, 4.0, 2.0)
    assert len(pts) == 21
    assert pts[0][0] == pytest.approx(-length / 2)
    assert pts[-1][0] == pytest.approx(length / 2)


def test_wave_amplitude_scales_with_prominence():
    (pts,) = generate_path(20.0, "wave", 0.5, 4.0, 1.0)
    assert max(abs(y) for _, y in pts) == pytest.approx(2.0)
    # quarter period at i=5
    assert pts[5][1] == pytest.approx(2.0)


def test_zigzag_alternates():
    (pts,) = generate_path(20.0, ThreadPattern.ZIGZAG, 1.0, 3.0, 1.0)
    assert [y for _, y in pts[:4]] == [-3.0, 3.0, -3.0, 3.0]


@pytest.mark.parametrize("freq", [0.5, 1.0, 1.5, 2.37])
def test_spiral_point_count_and_origin(freq):
    (pts,) = generate_path(10.0, ThreadPattern.SPIRAL, 1.0, 6.0, freq)
    assert len(pts) == int(math.floor(freq * 100)) + 1
    assert pts[0] == (0.0, 0.0)
    radii = [math.hypot(x, y) for x, y in pts]
    assert all(b >= a for a, b in zip(radii, radii[1:]))
    assert radii[-1] <= 6.0 + 1e-9


def test_crosshatch_is_a_lattice_of_segments():
    path = generate_path(10.0, ThreadPattern.CROSSHATCH, 0.7, 5.0, 1.0)
    assert len(path) == 22
    assert all(len(seg) == 2 for seg in path)
    assert path[0] == [(-5.0, -5.0), (-5.0, 5.0)]
    assert path[11] == [(-5.0, -5.0), (5.0, -5.0)]


def test_unknown_pattern_falls_back_to_straight():
    assert generate_path(8.0, "braid", 0.7, 5.0, 1.0) == [[(-4.0, 0.0), (4.0, 0.0)]]


def test_stroke_width():
    assert stroke_width(0.0) == 1.0
    assert stroke_width(0.7) == pytest.approx(2.05)


def test_place_path_rotates_then_translates():
    placed = place_path([[(-5.0, 0.0), (5.0, 0.0)]], 10.0, 20.0, math.pi / 2)
    (a, b), = [placed[0]]
    assert a == pytest.approx((10.0, 15.0))
    assert b == pytest.approx((10.0, 25.0))


def test_draw_path_composites_partial_alpha():
    canvas = Image.new("RGBA", (20, 20), (255, 255, 255, 255))
    color = adjust_color(100, 0, 0, 0.8)
    assert draw_path(canvas, [[(2.0, 10.0), (18.0, 10.0)]], color, 3.0)
    r, g, b, a = canvas.getpixel((10, 10))
    # 80 red at 0.8 over white
    assert a == 255
    assert 100 < r < 160 and g < 80
    assert canvas.getpixel((10, 2)) == (255, 255, 255, 255)


def test_draw_path_off_canvas_is_skipped():
    canvas = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
    assert not draw_path(canvas, [[(50.0, 50.0), (60.0, 50.0)]], adjust_color(10, 10, 10), 1.0)
    assert not draw_path(canvas, [], adjust_color(10, 10, 10), 1.0)
