"""Materials module.

Every sphere carries one layered dielectric material: a glossy
Torrance-Sparrow reflection lobe over a Lambertian base whose energy is
reduced by the Fresnel term. Diffuse and mirror presets are provided by
``MaterialParams``.
"""

from .dielectric import (
    MIRROR_SHININESS,
    DirSample,
    Material,
    MaterialParams,
    brdf,
    diffuse_brdf,
    fresnel_schlick,
    geometric_attenuation,
    lobe_probability,
    microfacet_distribution,
    reflection_brdf,
    refraction_brdf,
    sample_wi,
)

__all__ = [
    "Material",
    "MaterialParams",
    "DirSample",
    "MIRROR_SHININESS",
    "fresnel_schlick",
    "microfacet_distribution",
    "geometric_attenuation",
    "reflection_brdf",
    "diffuse_brdf",
    "refraction_brdf",
    "brdf",
    "lobe_probability",
    "sample_wi",
]
