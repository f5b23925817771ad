"""Preview module for output of traced frames."""

from spheretracer.preview.export import save_png, to_uint8

__all__ = [
    "save_png",
    "to_uint8",
]
