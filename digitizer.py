# digitizer.py: embroidery pattern pipeline
# Image bytes -> thread rendering -> palette, PNG preview, color list and stitch file.

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple
import io
import logging
import random

import numpy as np
from PIL import Image, UnidentifiedImageError

from errors import CanvasUnavailable, ImageLoadError
from palette import color_list_text, extract_palette
from renderer import StrokeLog, render_pattern
from sampler import to_pixel_buffer
from settings import RenderSettings
from writer import encode_placeholder_dst, encode_strokes_dst

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

DST_MODES = ("placeholder", "strokes")
PNG_FILENAME = "embroidery-pattern.png"
MAX_PIXELS = 40_000_000  # refuse absurd canvases before allocating


# --------- image boundary ---------
def load_image(image_bytes: bytes) -> Image.Image:
    """Decode to RGBA, or raise ImageLoadError."""
    if not image_bytes:
        raise ImageLoadError("empty image payload")
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadError(f"could not decode image: {e}") from e
    return img.convert("RGBA")


def _source_buffer(image: Image.Image) -> np.ndarray:
    w, h = image.size
    if w <= 0 or h <= 0:
        raise CanvasUnavailable(f"cannot allocate a {w}x{h} output raster")
    if w * h > MAX_PIXELS:
        raise CanvasUnavailable(f"{w}x{h} exceeds the {MAX_PIXELS} pixel raster limit")
    try:
        return to_pixel_buffer(image)
    except MemoryError as e:
        raise CanvasUnavailable(f"out of memory allocating a {w}x{h} raster") from e


def encode_png(raster: Image.Image) -> bytes:
    buf = io.BytesIO()
    raster.save(buf, format="PNG")
    return buf.getvalue()


# --------- results ---------
@dataclass
class PatternResult:
    raster: Image.Image
    palette: List[RGB]
    strokes: StrokeLog
    settings: RenderSettings

    def preview_png(self) -> bytes:
        return encode_png(self.raster)

    def color_list(self) -> str:
        return color_list_text(self.palette)

    def stitch_file(self, dst_mode: str = "placeholder") -> bytes:
        if dst_mode not in DST_MODES:
            raise ValueError(f"unknown dst_mode {dst_mode!r}; expected one of {DST_MODES}")
        if dst_mode == "strokes":
            return encode_strokes_dst(self.strokes)
        w, h = self.raster.size
        return encode_placeholder_dst(w, h)


def render(image: Image.Image, settings: RenderSettings, rng: Optional[random.Random] = None) -> PatternResult:
    """One full synchronous render pass over a decoded image."""
    source = _source_buffer(image)
    log = StrokeLog()
    raster = render_pattern(source, settings, rng=rng, log=log)
    palette = extract_palette(raster)
    logger.info("rendered %dx%d (%s, %s, %s): %d strokes, %d palette colors",
                raster.width, raster.height, settings.view_mode.value,
                settings.stitch_direction.value, settings.thread_pattern.value,
                len(log), len(palette))
    return PatternResult(raster=raster, palette=palette, strokes=log, settings=settings)


# --------- interactive session ---------
class PatternSession:
    """
    Holds one source image and a settings snapshot. Settings changes only
    mark the session stale; recompute() performs the full render, so a
    caller can apply several changes and render once.
    """

    def __init__(self, image: Image.Image, settings: Optional[RenderSettings] = None,
                 rng: Optional[random.Random] = None):
        self.image = image
        self.settings = settings if settings is not None else RenderSettings()
        self.rng = rng
        self.result: Optional[PatternResult] = None
        self.stale = True

    @classmethod
    def from_bytes(cls, image_bytes: bytes, settings: Optional[RenderSettings] = None,
                   rng: Optional[random.Random] = None) -> "PatternSession":
        return cls(load_image(image_bytes), settings, rng)

    def update(self, settings: RenderSettings):
        if settings != self.settings:
            self.settings = settings
            self.stale = True

    def replace_image(self, image_bytes: bytes):
        self.image = load_image(image_bytes)
        self.stale = True

    def recompute(self) -> PatternResult:
        # capture the snapshot once; updates made later apply to the next pass
        snapshot = self.settings
        self.result = render(self.image, snapshot, rng=self.rng)
        self.stale = self.settings != snapshot
        return self.result

    def current(self) -> PatternResult:
        if self.result is None or self.stale:
            return self.recompute()
        return self.result


# --------- main API called from main.py ---------
def make_pattern(image_bytes: bytes, settings: Optional[RenderSettings] = None,
                 dst_mode: str = "placeholder",
                 rng: Optional[random.Random] = None) -> Tuple[PatternResult, bytes, bytes, str]:
    """
    Returns (result, preview_png_bytes, dst_bytes, color_list_text)
    """
    settings = settings if settings is not None else RenderSettings()
    result = render(load_image(image_bytes), settings, rng=rng)
    return result, result.preview_png(), result.stitch_file(dst_mode), result.color_list()
