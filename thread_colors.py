# thread_colors.py
# Stranded-cotton thread catalogue and nearest-thread lookup for palette entries.
from __future__ import annotations
from typing import Dict, List, Tuple
import numpy as np

RGB = Tuple[int, int, int]

# ---- sRGB (D65) -> CIE Lab, vectorised over N x 3 arrays ----
_SRGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
])
_WHITE_D65 = np.array([0.95047, 1.00000, 1.08883])


def rgb_to_lab(rgb) -> np.ndarray:
    c = np.atleast_2d(np.asarray(rgb, dtype=np.float64)) / 255.0
    lin = np.where(c <= 0.04045, c / 12.92, ((c + 0.055) / 1.055) ** 2.4)
    xyz = lin @ _SRGB_TO_XYZ.T / _WHITE_D65
    f = np.where(xyz > 0.008856, np.cbrt(xyz), 7.787 * xyz + 16.0 / 116.0)
    L = 116.0 * f[:, 1] - 16.0
    a = 500.0 * (f[:, 0] - f[:, 1])
    b = 200.0 * (f[:, 1] - f[:, 2])
    return np.stack([L, a, b], axis=1)


def _hex(rgb: RGB) -> str:
    return '#%02X%02X%02X' % tuple(rgb)


# ---- DMC-style stranded cotton, compact subset ----
DMC_THREADS: List[Tuple[str, str, RGB]] = [
    # neutrals
    ("B5200", "Snow White",          (255, 255, 255)),
    ("310",   "Black",               (0, 0, 0)),
    ("762",   "Very Light Pearl Gray", (236, 236, 236)),
    ("415",   "Pearl Gray",          (211, 211, 214)),
    ("318",   "Light Steel Gray",    (171, 171, 171)),
    ("414",   "Dark Steel Gray",     (140, 140, 140)),
    ("413",   "Dark Pewter Gray",    (86, 86, 86)),
    ("3865",  "Winter White",        (249, 247, 241)),
    ("ECRU",  "Ecru",                (240, 234, 218)),
    # reds / pinks
    ("666",   "Bright Red",          (237, 27, 36)),
    ("321",   "Red",                 (199, 43, 59)),
    ("816",   "Garnet",              (151, 11, 35)),
    ("3705",  "Dark Melon",          (255, 121, 146)),
    ("603",   "Cranberry",           (255, 164, 190)),
    ("818",   "Baby Pink",           (255, 223, 217)),
    ("917",   "Medium Plum",         (155, 19, 89)),
    # oranges / yellows
    ("947",   "Burnt Orange",        (255, 123, 77)),
    ("740",   "Tangerine",           (255, 139, 0)),
    ("972",   "Deep Canary",         (255, 181, 21)),
    ("973",   "Bright Canary",       (255, 227, 0)),
    ("744",   "Pale Yellow",         (255, 231, 147)),
    ("726",   "Light Topaz",         (253, 215, 85)),
    # browns / tans
    ("738",   "Very Light Tan",      (236, 204, 158)),
    ("436",   "Tan",                 (203, 144, 81)),
    ("434",   "Light Brown",         (152, 94, 51)),
    ("801",   "Dark Coffee Brown",   (101, 57, 25)),
    ("938",   "Ultra Dark Coffee Brown", (54, 31, 14)),
    # purples
    ("211",   "Light Lavender",      (227, 203, 227)),
    ("552",   "Medium Violet",       (128, 58, 107)),
    ("550",   "Very Dark Violet",    (92, 24, 78)),
    # blues
    ("775",   "Very Light Baby Blue", (217, 235, 241)),
    ("3755",  "Baby Blue",           (147, 180, 206)),
    ("799",   "Medium Delft Blue",   (116, 142, 182)),
    ("797",   "Royal Blue",          (19, 71, 125)),
    ("820",   "Very Dark Royal Blue", (14, 54, 92)),
    ("996",   "Medium Electric Blue", (48, 194, 236)),
    # greens / teals
    ("3811",  "Very Light Turquoise", (188, 227, 230)),
    ("3809",  "Very Dark Turquoise", (63, 124, 133)),
    ("704",   "Bright Chartreuse",   (158, 207, 52)),
    ("702",   "Kelly Green",         (71, 167, 47)),
    ("699",   "Green",               (5, 101, 23)),
    ("3346",  "Hunter Green",        (64, 106, 58)),
    ("3347",  "Medium Yellow Green", (113, 147, 92)),
]

_DMC_LAB = rgb_to_lab([c[2] for c in DMC_THREADS])
_DMC_BY_RGB: Dict[RGB, Tuple[str, str, RGB]] = {c[2]: c for c in DMC_THREADS}


def nearest_thread(rgb: RGB) -> dict:
    """Nearest catalogue thread by CIE76 delta E; exact catalogue colors map to themselves."""
    key = tuple(int(v) for v in rgb)
    if key in _DMC_BY_RGB:
        code, name, libc = _DMC_BY_RGB[key]
        distance = 0.0
    else:
        d = np.linalg.norm(_DMC_LAB - rgb_to_lab(key), axis=1)
        i = int(np.argmin(d))
        code, name, libc = DMC_THREADS[i]
        distance = float(d[i])
    return {
        "code": code,
        "name": name,
        "rgb": libc,
        "hex": _hex(libc),
        "distance": distance,
        "source_rgb": key,
    }


def map_palette_to_threads(palette_rgb: List[RGB]) -> List[dict]:
    """Return a list (same length as palette_rgb) of dicts with nearest thread info."""
    return [nearest_thread(rgb) for rgb in palette_rgb]
