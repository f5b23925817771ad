"""Path tracing integrator with point-light next event estimation.

Radiance along a camera ray is estimated as a sum over the vertices of one
random path. At every vertex:

1. Direct light: the single point light is tested with a shadow ray and, if
   visible, contributes ``emission * brdf * (n . wl) / distance^2``.
2. Indirect light: one new direction is drawn from the material sampler and
   the path throughput is multiplied by ``brdf * |n . wi| / pdf``.
3. The path continues while bounces remain and the largest throughput
   channel stays above the configured cutoff.

Escaped rays return the background colour weighted by their throughput.
The bounce recursion is unrolled into a loop bounded by the ray's bounce
budget.

Example:
    >>> from spheretracer.config import TracerConfig
    >>> from spheretracer.core.integrator import PathIntegrator
    >>> integrator = PathIntegrator(TracerConfig())
    >>> # Within a kernel of a data-oriented class holding the integrator:
    >>> # radiance = self.integrator.trace(ray, spheres, n_spheres)
"""

import taichi as ti
import taichi.math as tm

from spheretracer.config import TracerConfig
from spheretracer.core.ray import Ray, max_component
from spheretracer.geometry.sphere import Hit
from spheretracer.materials.dielectric import brdf, sample_wi
from spheretracer.scene.intersection import any_hit, closest_hit

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.data_oriented
class PathIntegrator:
    """Estimates radiance along rays for a given configuration.

    Scalar settings are compiled into the kernels that use this integrator;
    the light and background colours live in 0-d fields.

    Attributes:
        config: The configuration this integrator was built from.
        max_bounces: Bounce budget given to primary rays.
    """

    def __init__(self, config: TracerConfig) -> None:
        self.config = config
        self.max_bounces = config.max_bounces
        self.ray_epsilon = config.ray_epsilon
        self.throughput_cutoff = config.throughput_cutoff

        self.light_position = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.light_emission = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.background_color = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.light_position[None] = config.light_position
        self.light_emission[None] = config.light_emission
        self.background_color[None] = config.background_color

    @ti.func
    def direct_light(self, hit: Hit, hit_pos: vec3, wo: vec3, spheres: ti.template(), n_spheres: ti.i32) -> vec3:
        """Radiance reflected towards wo from the point light.

        Args:
            hit: The surface hit being shaded.
            hit_pos: World position of the hit.
            wo: Direction towards the viewer.
            spheres: Struct field of Sphere records.
            n_spheres: Number of valid records.

        Returns:
            The unweighted direct-light contribution (RGB).
        """
        result = vec3(0.0, 0.0, 0.0)
        to_light = self.light_position[None] - hit_pos
        dist = tm.length(to_light)
        wl = to_light / dist
        cos_light = tm.dot(hit.normal, wl)
        # Surfaces facing away from the light receive nothing
        if cos_light > 0.0:
            shadow_ray = Ray(
                origin=hit_pos + self.ray_epsilon * wl,
                direction=wl,
                bounces=0,
                throughput=vec3(1.0, 1.0, 1.0),
                rng=ti.u32(0),
            )
            occluder = any_hit(shadow_ray, spheres, n_spheres, dist)
            if occluder.hit == 0:
                # Point light: solid-angle conversion gives the inverse-square falloff
                result = self.light_emission[None] * brdf(wl, wo, hit.normal, hit.mat) * cos_light / (dist * dist)
        return result

    @ti.func
    def trace(self, ray: Ray, spheres: ti.template(), n_spheres: ti.i32) -> vec3:
        """Estimate the radiance arriving along a ray.

        Args:
            ray: Primary or secondary ray carrying throughput, bounce budget
                and generator state.
            spheres: Struct field of Sphere records.
            n_spheres: Number of valid records.

        Returns:
            Radiance (RGB) already weighted by the ray's throughput.
        """
        radiance = vec3(0.0, 0.0, 0.0)
        current = Ray(
            origin=ray.origin,
            direction=ray.direction,
            bounces=ray.bounces,
            throughput=ray.throughput,
            rng=ray.rng,
        )

        # Active flag for path continuation
        active = 1
        for _ in range(ray.bounces + 1):
            if active == 1:
                hit = closest_hit(current, spheres, n_spheres)
                if hit.hit == 0:
                    radiance += self.background_color[None] * current.throughput
                    active = 0
                else:
                    wo = -current.direction
                    hit_pos = current.origin + hit.t * current.direction
                    radiance += self.direct_light(hit, hit_pos, wo, spheres, n_spheres) * current.throughput

                    sample, rng = sample_wi(current.rng, wo, hit.normal, hit.mat)
                    cosine = ti.abs(tm.dot(sample.wi, hit.normal))
                    # pdf == 0 marks an impossible sample; dividing would produce NaNs
                    throughput = vec3(0.0, 0.0, 0.0)
                    if sample.pdf != 0.0:
                        throughput = current.throughput * (sample.brdf * cosine / sample.pdf)

                    if current.bounces > 0 and max_component(throughput) > self.throughput_cutoff:
                        current = Ray(
                            origin=hit_pos + self.ray_epsilon * sample.wi,
                            direction=sample.wi,
                            bounces=current.bounces - 1,
                            throughput=throughput,
                            rng=rng,
                        )
                    else:
                        active = 0
        return radiance
