"""Progressive Monte Carlo path tracer for sphere scenes, built on Taichi.

This package renders scenes made only of spheres with:
- A layered dielectric material (Torrance-Sparrow specular over Lambertian)
- A single point light sampled with shadow rays
- Row-parallel frame dispatch with per-pixel deterministic generators
- Optional progressive accumulation with a configurable sample cap

Subpackages:
    core: Rays, random numbers, the path integrator, pixel buffer and tracer
    geometry: Sphere primitive and ray-sphere intersection
    materials: Dielectric BRDF evaluation and importance sampling
    scene: Host-side scene description, device upload and demo scenes
    camera: First-person camera producing screen vectors
    preview: Image export
"""

__version__ = "0.1.0"
