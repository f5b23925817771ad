"""Demo scenes, parameterized by elapsed time.

Scenes are rebuilt from scratch every frame, so animation is just a function
of the elapsed time in seconds. Scenes are selectable by index for front-ends
that cycle through them.

Example:
    >>> from spheretracer.scene.demo import build_scene
    >>> scene = build_scene(0.0, index=1)
    >>> len(scene)
    4
"""

import math
from collections.abc import Callable

import numpy as np

from spheretracer.materials.dielectric import MaterialParams
from spheretracer.scene.noise import Perlin
from spheretracer.scene.scene import Scene

# Half extent of the sphere terrain grid, in spheres
TERRAIN_HALF_EXTENT = 20

_TERRAIN_NOISE = Perlin(seed=0)

# Huge sphere approximating a flat floor
GROUND_CENTER = (0.0, -101.0, 0.0)
GROUND_RADIUS = 100.0
GROUND_COLOR = (0.3, 0.3, 0.3)


def _add_ground(scene: Scene) -> None:
    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, MaterialParams.diffuse(GROUND_COLOR))


def terrain_scene(elapsed: float, half_extent: int = TERRAIN_HALF_EXTENT) -> Scene:
    """A rolling grid of small red spheres above a grey floor.

    Each sphere's height is a travelling sine wave along x plus half a
    Perlin noise sample at (x, z, elapsed / 2), so the bumps drift slowly.

    Args:
        elapsed: Seconds since the animation started.
        half_extent: Grid covers [-half_extent, half_extent) in x and z.
    """
    scene = Scene()
    red = MaterialParams.diffuse((1.0, 0.0, 0.0))
    coords = np.arange(-half_extent, half_extent, dtype=np.float64)
    xs, zs = np.meshgrid(coords, coords, indexing="ij")
    heights = np.sin(xs + elapsed) + _TERRAIN_NOISE(xs, zs, elapsed / 2.0) / 2.0
    for x, y, z in zip(xs.ravel(), heights.ravel(), zs.ravel()):
        scene.add_sphere((float(x), float(y), float(z)), 0.4, red)
    _add_ground(scene)
    return scene


def showcase_scene(elapsed: float) -> Scene:
    """A blue diffuse sphere, a glossy sphere and an orbiting mirror on a floor."""
    scene = Scene()
    scene.add_sphere((0.0, 0.0, 0.0), 1.0, MaterialParams.diffuse((0.0, 0.0, 1.0)))
    scene.add_sphere(
        (-2.5, -0.25, -4.5),
        0.75,
        MaterialParams(color=(0.9, 0.6, 0.1), fresnel=(0.04, 0.04, 0.04), shininess=200.0),
    )
    angle = 0.5 * elapsed
    scene.add_sphere((3.0 * math.cos(angle), 0.0, 3.0 * math.sin(angle)), 1.0, MaterialParams.mirror())
    _add_ground(scene)
    return scene


DEMO_SCENES: tuple[Callable[[float], Scene], ...] = (terrain_scene, showcase_scene)


def build_scene(elapsed: float, index: int = 0) -> Scene:
    """Build demo scene ``index`` at time ``elapsed``.

    Raises:
        ValueError: If index does not name a demo scene.
    """
    if index < 0 or index >= len(DEMO_SCENES):
        raise ValueError(f"Unknown demo scene {index}; expected 0..{len(DEMO_SCENES) - 1}")
    return DEMO_SCENES[index](elapsed)
