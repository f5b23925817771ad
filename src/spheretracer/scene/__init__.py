"""Scene module: host-side scene description, device upload and queries.

Components:
    scene: SphereParams, Scene container and SceneBuffer (device copy)
    intersection: closest_hit and any_hit over a sphere field
    noise: Perlin noise used to lay out the terrain
    demo: Time-parameterized demo scenes
"""

from .demo import DEMO_SCENES, build_scene, showcase_scene, terrain_scene
from .intersection import any_hit, closest_hit
from .scene import Scene, SceneBuffer, SphereParams

__all__ = [
    "Scene",
    "SceneBuffer",
    "SphereParams",
    "closest_hit",
    "any_hit",
    "DEMO_SCENES",
    "build_scene",
    "terrain_scene",
    "showcase_scene",
]
