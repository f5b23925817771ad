"""Layered dielectric material: specular microfacet reflection over a diffuse base.

A surface is modelled as two lobes sharing energy:

- A specular reflection lobe following the Torrance-Sparrow microfacet model,
  with a normalized Blinn-Phong distribution ``D``, Schlick's Fresnel term
  ``F`` and the Cook-Torrance geometric attenuation ``G``::

      f_r = F * D * G / (4 (n . wo)(n . wi))

- A Lambertian base ``color / pi`` that only receives the light the specular
  layer does not reflect, i.e. it is weighted by ``1 - F``.

Sampling picks one lobe per call with a Russian-roulette choice biased
towards reflection for mirror-like materials, and folds the selection
probability into the returned pdf.

Example:
    >>> from spheretracer.materials.dielectric import MaterialParams
    >>> MaterialParams.diffuse((0.0, 0.0, 1.0))
    MaterialParams(color=(0.0, 0.0, 1.0), fresnel=(0.0, 0.0, 0.0), shininess=0.0)
    >>> # Use sample_wi / brdf within a Taichi kernel:
    >>> # sample, rng = sample_wi(rng, wo, normal, material)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from spheretracer.core.ray import min_component, reflect, to_world
from spheretracer.core.rng import rand_f32

# Type alias for 3D vectors
vec3 = tm.vec3

# Shininess of the mirror preset; large enough that D is practically a delta
MIRROR_SHININESS = 6000.0


@ti.dataclass
class Material:
    """Dielectric material properties.

    Attributes:
        color: Diffuse base colour (RGB, each component in [0, 1]).
        fresnel: Reflectance at normal incidence, R0 (RGB, in [0, 1]).
        shininess: Blinn-Phong exponent of the specular lobe (>= 0).
    """

    color: vec3
    fresnel: vec3
    shininess: ti.f32


@ti.dataclass
class DirSample:
    """A sampled incoming direction for a given outgoing direction.

    Attributes:
        wi: Sampled direction towards the source of incoming light.
        pdf: Density of the sample with respect to solid angle. A pdf of 0
            marks an impossible sample that must contribute nothing.
        brdf: BRDF of the sampled lobe for (wi, wo).
    """

    wi: vec3
    pdf: ti.f32
    brdf: vec3


@dataclass(frozen=True)
class MaterialParams:
    """Host-side description of a material, used to build scenes.

    Attributes:
        color: Diffuse base colour (RGB, each component in [0, 1]).
        fresnel: Reflectance at normal incidence (RGB, each in [0, 1]).
        shininess: Specular exponent (>= 0).

    Raises:
        ValueError: If a component is outside [0, 1] or shininess is negative.
    """

    color: tuple[float, float, float]
    fresnel: tuple[float, float, float] = (0.0, 0.0, 0.0)
    shininess: float = 0.0

    def __post_init__(self) -> None:
        for name, value in (("Color", self.color), ("Fresnel", self.fresnel)):
            if len(value) != 3:
                raise ValueError(f"{name} must have 3 components, got {len(value)}.")
            for i, component in enumerate(value):
                if component < 0.0 or component > 1.0:
                    raise ValueError(
                        f"{name} component {i} = {component} is outside [0, 1]. "
                        "This would violate energy conservation."
                    )
        if self.shininess < 0.0:
            raise ValueError(f"Shininess = {self.shininess} is negative.")

    @classmethod
    def diffuse(cls, color: tuple[float, float, float]) -> "MaterialParams":
        """A purely diffuse material of the given colour."""
        return cls(color=tuple(color), fresnel=(0.0, 0.0, 0.0), shininess=0.0)

    @classmethod
    def mirror(cls) -> "MaterialParams":
        """A perfect-looking mirror: full Fresnel reflectance, black base."""
        return cls(color=(0.0, 0.0, 0.0), fresnel=(1.0, 1.0, 1.0), shininess=MIRROR_SHININESS)


# =============================================================================
# Microfacet Terms
# =============================================================================


@ti.func
def fresnel_schlick(wi: vec3, wh: vec3, r0: vec3) -> vec3:
    """Schlick's approximation of the Fresnel reflectance.

    Args:
        wi: Incoming direction.
        wh: Half vector (microfacet normal).
        r0: Reflectance at normal incidence.

    Returns:
        F(wi, wh) = R0 + (1 - R0)(1 - wh . wi)^5, per channel.
    """
    return r0 + (1.0 - r0) * (1.0 - tm.dot(wh, wi)) ** 5


@ti.func
def microfacet_distribution(wh: vec3, n: vec3, shininess: ti.f32) -> ti.f32:
    """Normalized Blinn-Phong microfacet distribution.

    ``(s + 2) / (2 pi) * (n . wh)^s`` stands in for the Beckmann distribution;
    it is approximately Gaussian for large ``s`` and the leading factor keeps
    its projected integral at one.
    """
    return (shininess + 2.0) / (2.0 * tm.pi) * ti.pow(ti.max(tm.dot(n, wh), 0.0), shininess)


@ti.func
def geometric_attenuation(wi: vec3, wo: vec3, wh: vec3, n: vec3) -> ti.f32:
    """Self-shadowing and masking of the microfacets, capped at one."""
    n_dot_wh = tm.dot(n, wh)
    wo_dot_wh = tm.dot(wo, wh)
    masking = 2.0 * n_dot_wh * tm.dot(n, wo) / wo_dot_wh
    shadowing = 2.0 * n_dot_wh * tm.dot(n, wi) / wo_dot_wh
    return ti.min(1.0, ti.min(masking, shadowing))


# =============================================================================
# BRDF Evaluation
# =============================================================================


@ti.func
def reflection_brdf(wi: vec3, wo: vec3, n: vec3, mat: Material) -> vec3:
    """Torrance-Sparrow specular reflection.

    Zero when ``wo`` lies below or exactly in the surface, which happens when shading and
    geometric normals disagree; no light can travel that route.
    """
    result = vec3(0.0, 0.0, 0.0)
    if tm.dot(wo, n) > 0.0:
        wh = tm.normalize(wo + wi)
        result = (
            fresnel_schlick(wi, wh, mat.fresnel)
            * microfacet_distribution(wh, n, mat.shininess)
            * geometric_attenuation(wi, wo, wh, n)
            / (4.0 * tm.dot(n, wo) * tm.dot(n, wi))
        )
    return result


@ti.func
def diffuse_brdf(wi: vec3, wo: vec3, n: vec3, mat: Material) -> vec3:
    """Lambertian BRDF, zero unless both directions are above the surface."""
    result = vec3(0.0, 0.0, 0.0)
    if tm.dot(wo, n) >= 0.0 and tm.dot(wi, n) >= 0.0:
        result = mat.color / tm.pi
    return result


@ti.func
def attenuate_diffuse_refraction(wi: vec3, wo: vec3, brdf: vec3, mat: Material) -> vec3:
    """Scale a base-layer BRDF by the light the specular layer lets through."""
    wh = tm.normalize(wo + wi)
    return (1.0 - fresnel_schlick(wi, wh, mat.fresnel)) * brdf


@ti.func
def refraction_brdf(wi: vec3, wo: vec3, n: vec3, mat: Material) -> vec3:
    """Diffuse base lobe weighted by (1 - F)."""
    return attenuate_diffuse_refraction(wi, wo, diffuse_brdf(wi, wo, n, mat), mat)


@ti.func
def brdf(wi: vec3, wo: vec3, n: vec3, mat: Material) -> vec3:
    """Full dielectric BRDF: specular reflection plus attenuated diffuse base."""
    return reflection_brdf(wi, wo, n, mat) + refraction_brdf(wi, wo, n, mat)


# =============================================================================
# Importance Sampling
# =============================================================================


@ti.func
def lobe_probability(mat: Material) -> ti.f32:
    """Probability of sampling the reflection lobe, in [0.5, 1]."""
    return 0.5 + min_component(mat.fresnel) / 2.0


@ti.func
def cosine_sample_hemisphere(state: ti.u32):
    """Cosine-weighted direction around +z.

    Returns:
        A tuple (local_direction, next_state).
    """
    u1, rng = rand_f32(state)
    u2, rng = rand_f32(rng)
    phi = 2.0 * tm.pi * u1
    r = ti.sqrt(u2)
    local_dir = vec3(ti.cos(phi) * r, ti.sin(phi) * r, ti.sqrt(1.0 - u2))
    return local_dir, rng


@ti.func
def reflection_sample_wi(state: ti.u32, wo: vec3, n: vec3, mat: Material):
    """Sample the specular lobe by importance sampling the half vector.

    The half vector follows a power-cosine distribution around ``n`` matching
    ``D``; ``wo`` is mirrored about it to get ``wi``. A ``wi`` below the
    surface is kept but flagged with pdf = 0.

    Args:
        state: Generator state.
        wo: Outgoing direction, expected on the normal's side.
        n: Surface normal.
        mat: Surface material.

    Returns:
        A tuple (DirSample, next_state). The pdf is not yet scaled by the
        lobe selection probability.
    """
    u1, rng = rand_f32(state)
    u2, rng = rand_f32(rng)
    phi = 2.0 * tm.pi * u1
    cos_theta = ti.pow(u2, 1.0 / (mat.shininess + 1.0))
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
    wh = to_world(n, vec3(sin_theta * ti.cos(phi), sin_theta * ti.sin(phi), cos_theta))
    pdf_wh = (mat.shininess + 1.0) * ti.pow(ti.max(tm.dot(n, wh), 0.0), mat.shininess) / (2.0 * tm.pi)
    wi = reflect(-wo, wh)
    wo_dot_wh = tm.dot(wo, wh)
    pdf = 0.0
    if tm.dot(wi, n) >= 0.0 and wo_dot_wh > 0.0:
        pdf = pdf_wh / (4.0 * wo_dot_wh)
    sample = DirSample(wi=wi, pdf=pdf, brdf=reflection_brdf(wi, wo, n, mat))
    return sample, rng


@ti.func
def diffuse_sample_wi(state: ti.u32, wo: vec3, n: vec3, mat: Material):
    """Cosine-weighted hemisphere sample of the Lambertian base.

    Returns:
        A tuple (DirSample, next_state) with pdf = max(0, n . wi) / pi.
    """
    local_dir, rng = cosine_sample_hemisphere(state)
    wi = to_world(n, local_dir)
    sample = DirSample(
        wi=wi,
        pdf=ti.max(0.0, tm.dot(n, wi)) / tm.pi,
        brdf=diffuse_brdf(wi, wo, n, mat),
    )
    return sample, rng


@ti.func
def refraction_sample_wi(state: ti.u32, wo: vec3, n: vec3, mat: Material):
    """Sample the base layer; its BRDF is attenuated by (1 - F)."""
    sample, rng = diffuse_sample_wi(state, wo, n, mat)
    sample.brdf = attenuate_diffuse_refraction(sample.wi, wo, sample.brdf, mat)
    return sample, rng


@ti.func
def sample_wi(state: ti.u32, wo: vec3, n: vec3, mat: Material):
    """Sample an incoming direction for the dielectric material.

    Chooses the reflection lobe with probability ``p = lobe_probability(mat)``
    and the base lobe otherwise; the returned pdf is the chosen lobe's pdf
    multiplied by ``p`` or ``1 - p`` respectively.

    Args:
        state: Generator state owned by the current path.
        wo: Outgoing direction (towards the viewer).
        n: Surface normal.
        mat: Surface material.

    Returns:
        A tuple (DirSample, next_state).
    """
    p = lobe_probability(mat)
    xi, rng = rand_f32(state)
    sample = DirSample(wi=n, pdf=0.0, brdf=vec3(0.0, 0.0, 0.0))
    if xi < p:
        sample, rng = reflection_sample_wi(rng, wo, n, mat)
        sample.pdf *= p
    else:
        sample, rng = refraction_sample_wi(rng, wo, n, mat)
        sample.pdf *= 1.0 - p
    return sample, rng
