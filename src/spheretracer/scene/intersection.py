"""Scene-level ray intersection queries.

Scenes are small (a few hundred spheres), so both queries are a brute-force
linear scan over a Taichi struct field of ``Sphere`` records. The field and
the number of live records are passed in by the caller; nothing here owns
scene storage.

Example:
    >>> # Within a Taichi kernel:
    >>> # hit = closest_hit(ray, spheres, n_spheres)
    >>> # occluder = any_hit(shadow_ray, spheres, n_spheres, distance_to_light)
"""

import taichi as ti

from spheretracer.core.ray import Ray
from spheretracer.geometry.sphere import Hit, hit_sphere, miss


@ti.func
def closest_hit(ray: Ray, spheres: ti.template(), n_spheres: ti.i32) -> Hit:
    """Find the intersection with the smallest t across all spheres.

    Args:
        ray: The ray to test.
        spheres: Struct field of Sphere records.
        n_spheres: Number of valid records at the start of the field.

    Returns:
        The closest Hit, or a miss record if no sphere is hit.
    """
    result = miss()
    for i in range(n_spheres):
        rec = hit_sphere(ray, spheres[i])
        if rec.hit == 1 and (result.hit == 0 or rec.t < result.t):
            result = rec
    return result


@ti.func
def any_hit(ray: Ray, spheres: ti.template(), n_spheres: ti.i32, t_max: ti.f32) -> Hit:
    """Find any intersection closer than t_max (shadow ray query).

    Stops testing once a hit is found; which sphere is reported depends on
    iteration order, which is fine since only occlusion matters.

    Args:
        ray: The ray to test.
        spheres: Struct field of Sphere records.
        n_spheres: Number of valid records at the start of the field.
        t_max: Hits at or beyond this distance are ignored.

    Returns:
        The first Hit found, or a miss record.
    """
    result = miss()
    for i in range(n_spheres):
        if result.hit == 0:
            rec = hit_sphere(ray, spheres[i])
            if rec.hit == 1 and rec.t < t_max:
                result = rec
    return result
