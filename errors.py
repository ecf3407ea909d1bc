# errors.py
# Failures surfaced to callers of the render/export pipeline.
# None of these are retried; each ends the current render or export attempt.


class PatternError(Exception):
    """Base class for pattern pipeline failures."""


class ImageLoadError(PatternError):
    """The source image could not be decoded."""


class CanvasUnavailable(PatternError):
    """The output raster could not be allocated or read back."""


class SettingsError(PatternError, ValueError):
    """A render setting was given a value outside its allowed range."""

    def __init__(self, field: str, value, reason: str):
        self.field = field
        self.value = value
        super().__init__(f"{field}={value!r}: {reason}")
