# sampler.py
# Region averaging over an RGBA pixel buffer (H x W x 4, uint8, row-major).

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import numpy as np
from PIL import Image

ALPHA_GATE = 128  # regions below this mean alpha are not stitched


@dataclass(frozen=True)
class SampledColor:
    r: float
    g: float
    b: float
    a: float

    @property
    def is_opaque(self) -> bool:
        return self.a >= ALPHA_GATE

    @property
    def rgb(self) -> Tuple[float, float, float]:
        return (self.r, self.g, self.b)


# returned when the clipped region holds no pixels; fails the alpha gate
EMPTY_SAMPLE = SampledColor(0.0, 0.0, 0.0, 0.0)


def to_pixel_buffer(image: Image.Image) -> np.ndarray:
    """RGBA copy of a PIL image as an H x W x 4 uint8 array."""
    return np.array(image.convert("RGBA"), dtype=np.uint8)


def sample(buffer: np.ndarray, x0: int, y0: int, w: int, h: int) -> SampledColor:
    """
    Average RGBA over [x0, x0+w) x [y0, y0+h), clipped to the buffer.
    Partially clipped regions average fewer pixels; an empty clip
    returns EMPTY_SAMPLE.
    """
    H, W = buffer.shape[0], buffer.shape[1]
    x_lo, y_lo = max(0, int(x0)), max(0, int(y0))
    x_hi, y_hi = min(W, int(x0) + int(w)), min(H, int(y0) + int(h))
    if x_hi <= x_lo or y_hi <= y_lo:
        return EMPTY_SAMPLE

    region = buffer[y_lo:y_hi, x_lo:x_hi, :4].astype(np.float64)
    r, g, b, a = region.reshape(-1, 4).mean(axis=0)
    return SampledColor(float(r), float(g), float(b), float(a))
