"""Camera module.

The tracer only needs ``position`` and ``screen_vecs(width, height)`` from a
camera; ``Camera`` also provides movement helpers for interactive use.
"""

from .camera import WORLD_UP, Camera

__all__ = [
    "Camera",
    "WORLD_UP",
]
