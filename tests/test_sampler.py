"""Region averaging over RGBA pixel buffers."""
import numpy as np
import pytest
from PIL import Image

from sampler import EMPTY_SAMPLE, sample, to_pixel_buffer


def _gradient_2x2():
    buf = np.zeros((2, 2, 4), dtype=np.uint8)
    buf[0, 0] = (10, 10, 10, 255)
    buf[0, 1] = (20, 20, 20, 255)
    buf[1, 0] = (30, 30, 30, 255)
    buf[1, 1] = (40, 40, 40, 255)
    return buf


def test_average_of_full_region():
    c = sample(_gradient_2x2(), 0, 0, 2, 2)
    assert (c.r, c.g, c.b, c.a) == (25.0, 25.0, 25.0, 255.0)
    assert c.is_opaque


def test_single_pixel():
    c = sample(_gradient_2x2(), 1, 0, 1, 1)
    assert c.rgb == (20.0, 20.0, 20.0)


def test_clipped_region_averages_fewer_pixels():
    # only the right column is inside the buffer
    c = sample(_gradient_2x2(), 1, 0, 5, 5)
    assert c.r == pytest.approx(30.0)


def test_negative_origin_is_clipped():
    c = sample(_gradient_2x2(), -1, -1, 2, 2)
    assert c.r == pytest.approx(10.0)


@pytest.mark.parametrize("args", [(0, 0, 0, 2), (0, 0, 2, 0), (5, 5, 1, 1), (-3, 0, 2, 2), (0, 2, 1, 1)])
def test_empty_region_returns_transparent_sentinel(args):
    c = sample(_gradient_2x2(), *args)
    assert c == EMPTY_SAMPLE
    assert not c.is_opaque


def test_alpha_gate_boundary():
    buf = np.zeros((1, 2, 4), dtype=np.uint8)
    buf[0, 0, 3] = 128
    buf[0, 1, 3] = 127
    assert sample(buf, 0, 0, 1, 1).is_opaque
    assert not sample(buf, 1, 0, 1, 1).is_opaque


def test_to_pixel_buffer_converts_rgb():
    arr = to_pixel_buffer(Image.new("RGB", (3, 2), (1, 2, 3)))
    assert arr.shape == (2, 3, 4)
    assert tuple(arr[1, 2]) == (1, 2, 3, 255)
