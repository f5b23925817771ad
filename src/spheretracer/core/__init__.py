"""Core rendering module.

Components:
    ray: Ray structure and vector helpers
    rng: Stateless PCG hash generator (seed / rand_f32)
    integrator: Path integrator with point-light next event estimation
    buffer: Pixel buffer with grow-only capacity
    progressive: Frame dispatcher and progressive accumulator

All compute-intensive operations use Taichi kernels.
"""

from .ray import Ray, build_onb_from_normal, max_component, min_component, ray_at, reflect, to_world, vec3
from .rng import pcg_hash, rand_f32, seed

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from spheretracer.core.integrator or spheretracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "reflect",
    "max_component",
    "min_component",
    "build_onb_from_normal",
    "to_world",
    "vec3",
    "pcg_hash",
    "seed",
    "rand_f32",
]
