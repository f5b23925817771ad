"""Sphere primitive and ray-sphere intersection.

The intersection solves the quadratic in ``t`` obtained from

    |origin + t * direction - center| = radius

and keeps the nearest root in front of the ray origin. When the origin lies
inside the sphere the nearer root is negative and the far root is used, so
rays leaving a sphere from within still report the exit point.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.geometry.sphere import Hit, Sphere, hit_sphere
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from spheretracer.core.ray import Ray
from spheretracer.materials.dielectric import Material

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and surface material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        mat: The material of the sphere's surface.
    """

    center: vec3
    radius: ti.f32
    mat: Material


@ti.dataclass
class Hit:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss.
        t: Distance along the ray to the intersection. Only valid if hit == 1.
        normal: Unit surface normal at the intersection, always pointing
            outward from the primitive. Only valid if hit == 1.
        mat: Copy of the struck primitive's material.
    """

    hit: ti.i32
    t: ti.f32
    normal: vec3
    mat: Material


@ti.func
def miss() -> Hit:
    """A Hit record describing no intersection."""
    return Hit(
        hit=0,
        t=0.0,
        normal=vec3(0.0, 0.0, 0.0),
        mat=Material(color=vec3(0.0, 0.0, 0.0), fresnel=vec3(0.0, 0.0, 0.0), shininess=0.0),
    )


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere) -> Hit:
    """Intersect a ray with a sphere.

    Builds ``a t^2 + b t + c = 0`` with ``a = d . d``, ``b = 2 (oc . d)``,
    ``c = oc . oc - r^2`` and ``oc = origin - center``. A discriminant of zero
    or less is a miss, so rays that only graze the silhouette do not hit.

    Args:
        ray: The ray to test.
        sphere: The sphere to test against.

    Returns:
        A Hit with the smaller non-negative root, or the larger one when the
        origin is inside the sphere; a miss when both roots are behind the ray.
    """
    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    b = 2.0 * tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = b * b - 4.0 * a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_normal = vec3(0.0, 0.0, 0.0)

    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        # Negative roots are behind the ray origin
        t_near = (-b - sqrt_d) / (2.0 * a)
        t_far = (-b + sqrt_d) / (2.0 * a)
        t = -1.0
        if t_near >= 0.0:
            t = t_near
        elif t_far >= 0.0:
            t = t_far
        if t >= 0.0:
            did_hit = 1
            hit_t = t
            hit_normal = (oc + t * ray.direction) / sphere.radius

    return Hit(hit=did_hit, t=hit_t, normal=hit_normal, mat=sphere.mat)
