# color.py
# Stroke color derivation and per-region prominence scoring.

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple, Union
import math

from sampler import SampledColor

RGB = Tuple[int, int, int]

DEFAULT_DARKEN = 0.8
PROMINENCE_THRESHOLD = 0.1  # cells at or below this are left unstitched


@dataclass(frozen=True)
class StrokeColor:
    r: int
    g: int
    b: int
    alpha: float  # 0..1 opacity used when compositing the stroke

    @property
    def rgba(self) -> Tuple[int, int, int, int]:
        a = int(round(max(0.0, min(1.0, self.alpha)) * 255))
        return (self.r, self.g, self.b, a)

    @property
    def rgb(self) -> RGB:
        return (self.r, self.g, self.b)

    def css(self) -> str:
        return f"rgba({self.r},{self.g},{self.b}, {self.alpha:g})"


def adjust_color(r: float, g: float, b: float, factor: float = DEFAULT_DARKEN) -> StrokeColor:
    """
    Darken by `factor` and use the same factor as opacity, so stacked
    strokes build up density instead of painting over each other.
    Channels are clamped to 0..255 after flooring.
    """
    def ch(v: float) -> int:
        return max(0, min(255, int(math.floor(v * factor))))
    return StrokeColor(ch(r), ch(g), ch(b), float(factor))


def luminance(r: float, g: float, b: float) -> float:
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255.0


def saturation(r: float, g: float, b: float) -> float:
    hi = max(r, g, b)
    if hi <= 0:
        return 0.0
    return (hi - min(r, g, b)) / hi


def prominence(color: Union[SampledColor, Tuple[float, float, float]]) -> float:
    """
    Visual salience of a region: saturated mid-tones score highest,
    near-black, near-white and grays score low. Range is [0, 1.5].
    """
    r, g, b = color.rgb if isinstance(color, SampledColor) else color[:3]
    lum = luminance(r, g, b)
    sat = saturation(r, g, b)
    return (sat ** 0.3) * (1.0 - abs(lum - 0.5)) * 1.5


def rgb_string(rgb: RGB) -> str:
    r, g, b = rgb
    return f"rgb({r},{g},{b})"
