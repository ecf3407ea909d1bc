# settings.py
# Render settings snapshot. Instances are frozen: a render pass holds one
# snapshot for its whole duration, and every change produces a new one.

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping, Tuple, Type, TypeVar, Union
import math

from errors import SettingsError

E = TypeVar("E", bound=Enum)


class ViewMode(Enum):
    NORMAL = "normal"
    STITCHES = "stitches"
    SYMBOLS = "symbols"
    EMBROIDERY = "embroidery"  # enables the per-cell pass


class StitchDirection(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DIAGONAL = "diagonal"
    RADIAL = "radial"


class ThreadPattern(Enum):
    STRAIGHT = "straight"
    WAVE = "wave"
    ZIGZAG = "zigzag"
    SPIRAL = "spiral"
    CROSSHATCH = "crosshatch"


# (min, max), both inclusive except where noted
THREAD_SPACING_RANGE: Tuple[float, float] = (0.1, 10.0)
WAVE_AMPLITUDE_RANGE: Tuple[float, float] = (0.0, 50.0)  # min exclusive
WAVE_FREQUENCY_RANGE: Tuple[float, float] = (0.1, 10.0)
THREAD_INTENSITY_RANGE: Tuple[float, float] = (0.2, 2.0)
GRID_SIZE_RANGE: Tuple[int, int] = (10, 200)

DEFAULT_GRID_SIZE = 50


def _coerce_enum(enum_cls: Type[E], field: str, value: Union[E, str]) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise SettingsError(field, value, f"expected one of: {allowed}") from None


def _check_range(field: str, value: Any, bounds: Tuple[float, float], min_exclusive: bool = False) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise SettingsError(field, value, "not a number") from None
    if not math.isfinite(v):
        raise SettingsError(field, value, "must be finite")
    lo, hi = bounds
    if min_exclusive and v <= lo:
        raise SettingsError(field, value, f"must be within ({lo}, {hi}]")
    if v < lo or v > hi:
        raise SettingsError(field, value, f"must be within [{lo}, {hi}]")
    return v


@dataclass(frozen=True)
class RenderSettings:
    view_mode: ViewMode = ViewMode.NORMAL
    stitch_direction: StitchDirection = StitchDirection.HORIZONTAL
    thread_pattern: ThreadPattern = ThreadPattern.STRAIGHT
    thread_spacing: float = 1.0
    wave_amplitude: float = 5.0
    wave_frequency: float = 1.0
    thread_intensity: float = 1.0  # display only, never changes geometry
    grid_size: int = DEFAULT_GRID_SIZE

    def __post_init__(self):
        # normalise through the same checks the setters use
        object.__setattr__(self, "view_mode", _coerce_enum(ViewMode, "view_mode", self.view_mode))
        object.__setattr__(self, "stitch_direction",
                           _coerce_enum(StitchDirection, "stitch_direction", self.stitch_direction))
        object.__setattr__(self, "thread_pattern",
                           _coerce_enum(ThreadPattern, "thread_pattern", self.thread_pattern))
        object.__setattr__(self, "thread_spacing",
                           _check_range("thread_spacing", self.thread_spacing, THREAD_SPACING_RANGE))
        object.__setattr__(self, "wave_amplitude",
                           _check_range("wave_amplitude", self.wave_amplitude, WAVE_AMPLITUDE_RANGE,
                                        min_exclusive=True))
        object.__setattr__(self, "wave_frequency",
                           _check_range("wave_frequency", self.wave_frequency, WAVE_FREQUENCY_RANGE))
        object.__setattr__(self, "thread_intensity",
                           _check_range("thread_intensity", self.thread_intensity, THREAD_INTENSITY_RANGE))
        grid = _check_range("grid_size", self.grid_size, GRID_SIZE_RANGE)
        if grid != int(grid):
            raise SettingsError("grid_size", self.grid_size, "must be a whole number")
        object.__setattr__(self, "grid_size", int(grid))

    # ---- typed setters (each returns a new snapshot) ----
    def with_view_mode(self, mode: Union[ViewMode, str]) -> "RenderSettings":
        return replace(self, view_mode=_coerce_enum(ViewMode, "view_mode", mode))

    def with_stitch_direction(self, direction: Union[StitchDirection, str]) -> "RenderSettings":
        return replace(self, stitch_direction=_coerce_enum(StitchDirection, "stitch_direction", direction))

    def with_thread_pattern(self, pattern: Union[ThreadPattern, str]) -> "RenderSettings":
        return replace(self, thread_pattern=_coerce_enum(ThreadPattern, "thread_pattern", pattern))

    def with_thread_spacing(self, spacing: float) -> "RenderSettings":
        return replace(self, thread_spacing=spacing)

    def with_wave_amplitude(self, amplitude: float) -> "RenderSettings":
        return replace(self, wave_amplitude=amplitude)

    def with_wave_frequency(self, frequency: float) -> "RenderSettings":
        return replace(self, wave_frequency=frequency)

    def with_thread_intensity(self, intensity: float) -> "RenderSettings":
        return replace(self, thread_intensity=intensity)

    def with_grid_size(self, grid_size: int) -> "RenderSettings":
        return replace(self, grid_size=grid_size)

    @property
    def lattice_spacing(self) -> float:
        """Pixel distance between thread-field lattice points."""
        return self.thread_spacing * 10.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RenderSettings":
        """
        Build settings from loosely-typed input (form fields, JSON).
        Missing or blank keys keep their defaults; unknown keys are ignored.
        """
        fields = (
            "view_mode", "stitch_direction", "thread_pattern", "thread_spacing",
            "wave_amplitude", "wave_frequency", "thread_intensity", "grid_size",
        )
        kwargs = {}
        for name in fields:
            value = data.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            kwargs[name] = value
        return cls(**kwargs)
