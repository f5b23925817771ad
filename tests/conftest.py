"""Pytest configuration for spheretracer tests.

Provides the Taichi session fixture and small scene/camera helpers shared by
the test modules.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture
def blue_sphere_scene():
    """A single blue diffuse unit sphere at the origin."""
    from spheretracer.materials.dielectric import MaterialParams
    from spheretracer.scene.scene import Scene

    scene = Scene()
    scene.add_sphere((0.0, 0.0, 0.0), 1.0, MaterialParams.diffuse((0.0, 0.0, 1.0)))
    return scene


@pytest.fixture
def front_camera():
    """Camera on the +z axis looking at the origin."""
    from spheretracer.camera.camera import Camera

    return Camera(position=(0.0, 0.0, 5.0), target=(0.0, 0.0, 0.0))
