# renderer.py
# Thread rendering passes, drawn onto the output raster in this order:
#   1. EmbroideryCellRenderer (embroidery view mode only): square cell grid,
#      threads over the cells whose prominence clears the threshold.
#   2. ThreadFieldRenderer (every view mode): directional grid or concentric
#      rings spaced by thread_spacing * 10, a bundle of threads per opaque point.
# Both passes sample the untouched source pixels. Jitter comes from an
# injectable random.Random.

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np
from PIL import Image

from color import PROMINENCE_THRESHOLD, StrokeColor, adjust_color, prominence
from geometry import ThreadPath, ThreadStroke, draw_path
from sampler import sample
from settings import RenderSettings, StitchDirection, ThreadPattern, ViewMode

logger = logging.getLogger(__name__)

THREADS_PER_POINT = 5
POSITION_JITTER = 1.0  # full width of the positional jitter window, px
ANGLE_JITTER = 0.2     # full width of the angular jitter window, rad
FIELD_PROMINENCE = 0.7
FIELD_DARKEN = 0.8

DIRECTION_ANGLES = {
    StitchDirection.HORIZONTAL: 0.0,
    StitchDirection.VERTICAL: math.pi / 2.0,
    StitchDirection.DIAGONAL: math.pi / 4.0,
}

LatticePoint = Tuple[float, float, float]  # (x, y, angle)


@dataclass
class DrawnStroke:
    color: StrokeColor
    path: ThreadPath


@dataclass
class StrokeLog:
    """Collects placed stroke paths for stroke-based stitch export."""
    strokes: List[DrawnStroke] = field(default_factory=list)

    def add(self, color: StrokeColor, path: ThreadPath):
        self.strokes.append(DrawnStroke(color, path))

    def __len__(self) -> int:
        return len(self.strokes)


# ============================================================
# Thread bundles
# ============================================================
def jittered_strokes(
    x: float,
    y: float,
    length: float,
    angle: float,
    color: StrokeColor,
    pattern: ThreadPattern,
    prominence_value: float,
    rng: random.Random,
    count: int = THREADS_PER_POINT,
) -> List[ThreadStroke]:
    strokes = []
    for _ in range(count):
        dx = (rng.random() - 0.5) * POSITION_JITTER
        dy = (rng.random() - 0.5) * POSITION_JITTER
        da = (rng.random() - 0.5) * ANGLE_JITTER
        strokes.append(ThreadStroke(x + dx, y + dy, length, angle + da, color, pattern, prominence_value))
    return strokes


def _draw_strokes(canvas: Image.Image, strokes: List[ThreadStroke], settings: RenderSettings,
                  log: Optional[StrokeLog]) -> int:
    drawn = 0
    for st in strokes:
        path = st.placed_path(settings.wave_amplitude, settings.wave_frequency)
        if draw_path(canvas, path, st.color, st.width):
            drawn += 1
            if log is not None:
                log.add(st.color, path)
    return drawn


# ============================================================
# Thread field (lattice) pass
# ============================================================
def ring_point_count(radius: float, spacing: float) -> int:
    """Points on one ring, keeping roughly `spacing` px of arc between them."""
    return max(8, int(math.floor(2.0 * math.pi * radius / spacing)))


def directional_lattice(width: int, height: int, spacing: float, angle: float) -> Iterator[LatticePoint]:
    ny = int(math.floor(height / spacing))
    nx = int(math.floor(width / spacing))
    for j in range(ny + 1):
        for i in range(nx + 1):
            yield (i * spacing, j * spacing, angle)


def radial_lattice(width: int, height: int, spacing: float) -> Iterator[LatticePoint]:
    """Concentric rings around the image centre; angles follow the ring tangent."""
    cx, cy = width / 2.0, height / 2.0
    max_radius = math.hypot(cx, cy)
    rings = int(math.floor(max_radius / spacing))
    for k in range(1, rings + 1):
        r = k * spacing
        n = ring_point_count(r, spacing)
        for i in range(n):
            theta = (i / n) * 2.0 * math.pi
            yield (cx + r * math.cos(theta), cy + r * math.sin(theta), theta + math.pi / 2.0)


class ThreadFieldRenderer:
    def __init__(self, settings: RenderSettings, rng: Optional[random.Random] = None):
        self.settings = settings
        self.rng = rng if rng is not None else random.Random()

    def lattice(self, width: int, height: int) -> Iterator[LatticePoint]:
        spacing = self.settings.lattice_spacing
        if self.settings.stitch_direction == StitchDirection.RADIAL:
            return radial_lattice(width, height, spacing)
        angle = DIRECTION_ANGLES[self.settings.stitch_direction]
        return directional_lattice(width, height, spacing, angle)

    def render(self, source: np.ndarray, canvas: Image.Image, log: Optional[StrokeLog] = None) -> int:
        s = self.settings
        height, width = source.shape[0], source.shape[1]
        length = 2.0 * s.lattice_spacing
        points = skipped = drawn = 0

        for (x, y, angle) in self.lattice(width, height):
            points += 1
            px = sample(source, int(math.floor(x)), int(math.floor(y)), 1, 1)
            if not px.is_opaque:
                skipped += 1
                continue
            color = adjust_color(px.r, px.g, px.b, FIELD_DARKEN)
            strokes = jittered_strokes(x, y, length, angle, color, s.thread_pattern, FIELD_PROMINENCE, self.rng)
            drawn += _draw_strokes(canvas, strokes, s, log)

        logger.debug("thread field: %d lattice points, %d skipped, %d strokes drawn",
                     points, skipped, drawn)
        return drawn


# ============================================================
# Embroidery cell pass
# ============================================================
def cell_size(width: int, height: int, grid_size: int) -> float:
    return max(2.0, min(width, height) / (grid_size * 2.5))


def cell_origins(width: int, height: int, size: float) -> Iterator[Tuple[float, float]]:
    ny = int(math.ceil(height / size))
    nx = int(math.ceil(width / size))
    for j in range(ny):
        for i in range(nx):
            yield (i * size, j * size)


class EmbroideryCellRenderer:
    def __init__(self, settings: RenderSettings, rng: Optional[random.Random] = None):
        self.settings = settings
        self.rng = rng if rng is not None else random.Random()

    def render(self, source: np.ndarray, canvas: Image.Image, log: Optional[StrokeLog] = None) -> int:
        s = self.settings
        if s.view_mode != ViewMode.EMBROIDERY:
            return 0
        # radial threads come from the thread field pass alone
        if s.stitch_direction == StitchDirection.RADIAL:
            return 0

        height, width = source.shape[0], source.shape[1]
        size = cell_size(width, height, s.grid_size)
        angle = DIRECTION_ANGLES[s.stitch_direction]
        cells = salient = drawn = 0

        for (x, y) in cell_origins(width, height, size):
            cells += 1
            x0, y0 = int(math.floor(x)), int(math.floor(y))
            w = max(1, int(math.floor(x + size)) - x0)
            h = max(1, int(math.floor(y + size)) - y0)
            avg = sample(source, x0, y0, w, h)
            if not avg.is_opaque:
                continue
            score = prominence(avg)
            if score <= PROMINENCE_THRESHOLD:
                continue
            salient += 1
            color = adjust_color(avg.r, avg.g, avg.b, FIELD_DARKEN)
            cx, cy = x + size / 2.0, y + size / 2.0
            strokes = jittered_strokes(cx, cy, size, angle, color, s.thread_pattern, score, self.rng)
            drawn += _draw_strokes(canvas, strokes, s, log)

        logger.debug("embroidery cells: %d cells (size %.2f px), %d salient, %d strokes drawn",
                     cells, size, salient, drawn)
        return drawn


# ============================================================
# Full pass
# ============================================================
def render_pattern(
    source: np.ndarray,
    settings: RenderSettings,
    rng: Optional[random.Random] = None,
    log: Optional[StrokeLog] = None,
) -> Image.Image:
    """
    Full synchronous render: the source image, then the cell pass, then the
    thread field on top. Returns a new RGBA raster the size of the source.
    """
    rng = rng if rng is not None else random.Random()
    canvas = Image.fromarray(source[:, :, :4].astype(np.uint8, copy=True))
    EmbroideryCellRenderer(settings, rng).render(source, canvas, log)
    ThreadFieldRenderer(settings, rng).render(source, canvas, log)
    return canvas
