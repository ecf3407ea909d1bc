# writer.py
# Stitch-file export.
#
# encode_placeholder_dst(): fixed-grid placeholder stream behind an "EMB1"
#   header. It does not encode drawn geometry and is not a machine-readable DST.
# encode_strokes_dst(): real Tajima DST through pyembroidery, built from the
#   stroke paths the renderer actually drew.

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union
import io
import logging

from pyembroidery import EmbPattern, EmbThread, JUMP, STITCH, write_dst

from renderer import StrokeLog

logger = logging.getLogger(__name__)

HEADER_SIZE = 512
MAGIC = b"EMB1"
PLACEHOLDER_GRID_PX = 50

STITCH_FLAG = 0x02
END_FLAG = 0x01

DST_FILENAME = "embroidery-pattern.dst"
DST_MIME = "application/octet-stream"

# DST units are 0.1 mm
UNIT_SCALE = 10.0
PX_PER_MM_DEFAULT = 10.0


@dataclass(frozen=True)
class Jump:
    dx: int
    dy: int

    def to_bytes(self) -> bytes:
        # placeholder jump record; coordinates are not encoded
        return bytes((0x00, 0x00, 0x00))


@dataclass(frozen=True)
class Stitch:
    dx: int
    dy: int

    def to_bytes(self) -> bytes:
        return bytes((self.dx & 0xFF, self.dy & 0xFF, STITCH_FLAG))


Command = Union[Jump, Stitch]


@dataclass
class PatternDocument:
    commands: List[Command] = field(default_factory=list)

    @staticmethod
    def header() -> bytes:
        return MAGIC + bytes(HEADER_SIZE - len(MAGIC))

    def to_bytes(self) -> bytes:
        body = b"".join(c.to_bytes() for c in self.commands)
        return self.header() + body + bytes((0x00, 0x00, END_FLAG))


def placeholder_document(width: int, height: int, grid_px: int = PLACEHOLDER_GRID_PX) -> PatternDocument:
    """One Jump + Stitch pair per grid point, rows top to bottom."""
    doc = PatternDocument()
    for y in range(0, int(height), grid_px):
        for x in range(0, int(width), grid_px):
            doc.commands.append(Jump(0, 0))
            doc.commands.append(Stitch(x, y))
    return doc


def encode_placeholder_dst(width: int, height: int) -> bytes:
    data = placeholder_document(width, height).to_bytes()
    logger.debug("placeholder stitch file: %dx%d px -> %d bytes", width, height, len(data))
    return data


# ============================================================
# Stroke-based DST
# ============================================================
def build_stroke_pattern(log: StrokeLog, px_per_mm: float = PX_PER_MM_DEFAULT) -> EmbPattern:
    """
    Group logged strokes by color (first-drawn order), one thread per color.
    Each polyline starts with a jump to its first point and stitches the rest.
    """
    if px_per_mm is None or px_per_mm <= 0:
        px_per_mm = PX_PER_MM_DEFAULT
    scale = UNIT_SCALE / px_per_mm

    layers: Dict[Tuple[int, int, int], List[List[Tuple[float, float]]]] = {}
    for st in log.strokes:
        layers.setdefault(st.color.rgb, []).extend(pl for pl in st.path if len(pl) >= 2)

    pattern = EmbPattern()
    for i, (rgb, polylines) in enumerate(layers.items()):
        thread = EmbThread()
        thread.set_color(*rgb)
        pattern.add_thread(thread)
        for pl in polylines:
            x0, y0 = pl[0]
            pattern.add_stitch_absolute(JUMP, x0 * scale, y0 * scale)
            for (x, y) in pl[1:]:
                pattern.add_stitch_absolute(STITCH, x * scale, y * scale)
        if i != len(layers) - 1:
            pattern.color_change()
    pattern.end()
    return pattern


def encode_strokes_dst(log: StrokeLog, px_per_mm: float = PX_PER_MM_DEFAULT) -> bytes:
    pattern = build_stroke_pattern(log, px_per_mm=px_per_mm)
    buf = io.BytesIO()
    write_dst(pattern, buf)
    data = buf.getvalue()
    logger.debug("stroke stitch file: %d strokes -> %d bytes", len(log), len(data))
    return data
