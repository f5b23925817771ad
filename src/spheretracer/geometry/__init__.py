"""Geometry module for the sphere primitive.

Intersection routines are Taichi functions (@ti.func) returning a ``Hit``
record; a record with ``hit == 0`` means the ray missed.
"""

from .sphere import Hit, Sphere, hit_sphere, miss

__all__ = [
    "Sphere",
    "Hit",
    "hit_sphere",
    "miss",
]
