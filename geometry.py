import math
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union
from PIL import Image, ImageDraw
from shapely.geometry import MultiLineString
from shapely import affinity

from color import StrokeColor
from settings import ThreadPattern

# --- Units: pixels. Paths are built around the origin, then rotated and moved onto the canvas. ---

Point = Tuple[float, float]
Polyline = List[Point]
ThreadPath = List[Polyline]

WAVE_STEPS = 20
SPIRAL_STEPS_PER_TURN = 100
CROSSHATCH_DIVISIONS = 10


def stroke_width(prominence: float) -> float:
    return 1.0 + prominence * 1.5


def _coerce_pattern(pattern: Union[ThreadPattern, str]) -> Optional[ThreadPattern]:
    if isinstance(pattern, ThreadPattern):
        return pattern
    try:
        return ThreadPattern(str(pattern).strip().lower())
    except ValueError:
        return None


def _straight(length: float) -> ThreadPath:
    return [[(-length / 2.0, 0.0), (length / 2.0, 0.0)]]


def _wave(length: float, amplitude: float, frequency: float) -> ThreadPath:
    step = length / WAVE_STEPS
    pts = []
    for i in range(WAVE_STEPS + 1):
        x = -length / 2.0 + i * step
        y = math.sin((i / WAVE_STEPS) * frequency * math.pi * 2.0) * amplitude
        pts.append((x, y))
    return [pts]


def _zigzag(length: float, amplitude: float) -> ThreadPath:
    step = length / WAVE_STEPS
    return [[(-length / 2.0 + i * step, -amplitude if i % 2 == 0 else amplitude)
             for i in range(WAVE_STEPS + 1)]]


def _spiral(radius: float, turns: float) -> ThreadPath:
    """Archimedean spiral: radius grows linearly from 0, 100 points per turn."""
    total = turns * SPIRAL_STEPS_PER_TURN
    n = int(math.floor(total))
    pts = []
    for i in range(n + 1):
        theta = (i / SPIRAL_STEPS_PER_TURN) * math.pi * 2.0
        r = (radius / total) * i if total > 0 else 0.0
        pts.append((r * math.cos(theta), r * math.sin(theta)))
    return [pts]


def _crosshatch(length: float) -> ThreadPath:
    if length <= 0:
        return []
    half = length / 2.0
    step = length / CROSSHATCH_DIVISIONS
    offsets = [-half + k * step for k in range(CROSSHATCH_DIVISIONS + 1)]
    vertical = [[(o, -half), (o, half)] for o in offsets]
    horizontal = [[(-half, o), (half, o)] for o in offsets]
    return vertical + horizontal


def generate_path(
    length: float,
    pattern: Union[ThreadPattern, str],
    prominence: float,
    wave_amplitude: float,
    wave_frequency: float,
) -> ThreadPath:
    """
    Build the local-frame path for one thread.
    Returns a list of polylines; only crosshatch has more than one.
    Unknown patterns are drawn straight.
    """
    kind = _coerce_pattern(pattern)
    amplitude = wave_amplitude * prominence

    if kind == ThreadPattern.WAVE:
        return _wave(length, amplitude, wave_frequency)
    if kind == ThreadPattern.ZIGZAG:
        return _zigzag(length, amplitude)
    if kind == ThreadPattern.SPIRAL:
        return _spiral(amplitude, wave_frequency)
    if kind == ThreadPattern.CROSSHATCH:
        return _crosshatch(length)
    return _straight(length)


def place_path(path: ThreadPath, x: float, y: float, angle: float) -> ThreadPath:
    """Rotate a local path by `angle` radians about the origin, then move it to (x, y)."""
    lines = [pl for pl in path if len(pl) >= 2]
    if not lines:
        return []
    geom = MultiLineString(lines)
    geom = affinity.rotate(geom, angle, origin=(0.0, 0.0), use_radians=True)
    geom = affinity.translate(geom, xoff=x, yoff=y)
    return [[(float(px), float(py)) for (px, py) in ln.coords] for ln in geom.geoms]


@dataclass(frozen=True)
class ThreadStroke:
    x: float
    y: float
    length: float
    angle: float
    color: StrokeColor
    pattern: ThreadPattern
    prominence: float

    @property
    def width(self) -> float:
        return stroke_width(self.prominence)

    def placed_path(self, wave_amplitude: float, wave_frequency: float) -> ThreadPath:
        local = generate_path(self.length, self.pattern, self.prominence, wave_amplitude, wave_frequency)
        return place_path(local, self.x, self.y, self.angle)


def draw_path(canvas: Image.Image, path: ThreadPath, color: StrokeColor, width: float) -> bool:
    """
    Composite a placed path onto an RGBA canvas (source-over, partial alpha).
    Joins and caps are round. Returns False when the path misses the canvas.
    """
    if not path:
        return False
    w_px = max(1, int(round(width)))
    pad = w_px + 1
    xs = [p[0] for pl in path for p in pl]
    ys = [p[1] for pl in path for p in pl]
    x0 = max(0, int(math.floor(min(xs))) - pad)
    y0 = max(0, int(math.floor(min(ys))) - pad)
    x1 = min(canvas.width, int(math.ceil(max(xs))) + pad)
    y1 = min(canvas.height, int(math.ceil(max(ys))) + pad)
    if x1 <= x0 or y1 <= y0:
        return False

    # strokes are drawn on a small transparent tile so alpha composites once per thread
    tile = Image.new("RGBA", (x1 - x0, y1 - y0), (0, 0, 0, 0))
    draw = ImageDraw.Draw(tile)
    fill = color.rgba
    r = w_px / 2.0
    for pl in path:
        pts = [(px - x0, py - y0) for (px, py) in pl]
        draw.line(pts, fill=fill, width=w_px, joint="curve")
        if w_px >= 3:
            for (cx, cy) in (pts[0], pts[-1]):
                draw.ellipse((cx - r, cy - r, cx + r, cy + r), fill=fill)

    canvas.alpha_composite(tile, dest=(x0, y0))
    return True
