# palette.py
# Distinct opaque colors of a rendered raster, and the plain-text color list export.

from typing import List, Tuple, Union
import numpy as np
from PIL import Image

from color import rgb_string
from sampler import ALPHA_GATE
from thread_colors import map_palette_to_threads

RGB = Tuple[int, int, int]

PALETTE_LIMIT = 32
COLOR_LIST_FILENAME = "thread-colors.txt"
COLOR_LIST_MIME = "text/plain"


def extract_palette(raster: Union[Image.Image, np.ndarray], limit: int = PALETTE_LIMIT) -> List[RGB]:
    """
    Exact (r, g, b) triples of pixels with alpha >= 128, in row-major
    first-seen order, capped at `limit`. No merging of near colors.
    Arrays may be H x W x 3 (treated as opaque) or H x W x 4.
    """
    arr = np.asarray(raster.convert("RGBA") if isinstance(raster, Image.Image) else raster, dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[-1] not in (3, 4):
        raise ValueError(f"expected an H x W x 3 or H x W x 4 raster, got shape {arr.shape}")
    if arr.shape[-1] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    flat = arr.reshape(-1, arr.shape[-1])
    opaque = flat[flat[:, 3] >= ALPHA_GATE, :3]
    if opaque.size == 0:
        return []

    # np.unique sorts; return_index recovers first-seen positions
    uniq, first = np.unique(opaque, axis=0, return_index=True)
    order = np.argsort(first, kind="stable")[:limit]
    return [tuple(int(c) for c in uniq[i]) for i in order]


def color_list_text(palette: List[RGB]) -> str:
    """One line per entry: "1. 310 - Black (rgb(0,0,0))"."""
    threads = map_palette_to_threads(palette)
    lines = [
        f"{i + 1}. {t['code']} - {t['name']} ({rgb_string(rgb)})"
        for i, (rgb, t) in enumerate(zip(palette, threads))
    ]
    return "\n".join(lines)
