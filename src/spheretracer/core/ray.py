"""Ray data structure and vector utilities for the path tracer.

A ray carries everything one light path needs between bounces: where it
starts, where it points, how many bounces it may still take, the throughput
accumulated so far and the state of its private random generator. All
operations are Taichi functions meant to be called from inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def point() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0),
    ...               bounces=3, throughput=vec3(1.0, 1.0, 1.0), rng=0)
    ...     return ray_at(ray, 5.0)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray together with the state of the path it belongs to.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3, unit length).
        bounces: Remaining bounce budget. A ray with 0 bounces left is not
            continued after its first hit.
        throughput: Per-channel weight accumulated from previous bounces.
            Starts at (1, 1, 1) for primary rays; components are non-negative.
        rng: State of the random generator owned exclusively by this path.
    """

    origin: vec3
    direction: vec3
    bounces: ti.i32
    throughput: vec3
    rng: ti.u32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t."""
    return ray.origin + t * ray.direction


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The mirror axis (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def max_component(v: vec3) -> ti.f32:
    """Largest of the three components of v."""
    return ti.max(v.x, ti.max(v.y, v.z))


@ti.func
def min_component(v: vec3) -> ti.f32:
    """Smallest of the three components of v."""
    return ti.min(v.x, ti.min(v.y, v.z))


# =============================================================================
# Local Frames
# =============================================================================


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis from a normal vector.

    Creates a local coordinate frame where the normal is the z-axis.

    Args:
        normal: The surface normal (should be normalized).

    Returns:
        A tuple (tangent, bitangent, normal) forming an orthonormal basis.
    """
    # Choose a vector not parallel to normal
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = tm.normalize(tm.cross(a, normal))
    bitangent = tm.cross(normal, tangent)
    return tangent, bitangent, normal


@ti.func
def to_world(normal: vec3, local_dir: vec3) -> vec3:
    """Transform a direction sampled around +z into the frame of a normal.

    Sampling routines work in a frame where the hemisphere is centred on the
    z-axis; this maps such a direction as if it had been sampled around
    ``normal`` instead.

    Args:
        normal: The axis of the target frame (should be normalized).
        local_dir: Direction in local coordinates (z-up).

    Returns:
        The direction in world coordinates.
    """
    tangent, bitangent, n = build_onb_from_normal(normal)
    return local_dir.x * tangent + local_dir.y * bitangent + local_dir.z * n
