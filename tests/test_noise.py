"""Unit tests for Perlin noise."""

import numpy as np
import pytest


class TestPerlin:
    """Lattice behaviour, range and determinism."""

    def test_zero_at_lattice_points(self):
        from spheretracer.scene.noise import Perlin

        noise = Perlin(seed=3)
        xs, zs = np.meshgrid(np.arange(-5.0, 5.0), np.arange(-5.0, 5.0))
        assert np.allclose(noise(xs, 2.0, zs), 0.0)

    def test_bounded_and_varied_between_lattice_points(self):
        from spheretracer.scene.noise import Perlin

        noise = Perlin(seed=0)
        rng = np.random.default_rng(1)
        points = rng.uniform(-20.0, 20.0, size=(2000, 3))
        values = noise(points[:, 0], points[:, 1], points[:, 2])
        assert values.shape == (2000,)
        assert np.all(np.abs(values) <= 1.5)
        assert values.std() > 0.05

    def test_continuous(self):
        from spheretracer.scene.noise import Perlin

        noise = Perlin(seed=0)
        a = noise(0.3, 1.7, 2.2)
        b = noise(0.3 + 1e-6, 1.7, 2.2)
        assert float(a) == pytest.approx(float(b), abs=1e-4)

    def test_same_seed_same_values(self):
        from spheretracer.scene.noise import Perlin

        assert float(Perlin(seed=7)(0.5, 0.25, 0.75)) == float(Perlin(seed=7)(0.5, 0.25, 0.75))

    def test_scalar_and_array_arguments_broadcast(self):
        from spheretracer.scene.noise import Perlin

        noise = Perlin(seed=0)
        grid = noise(np.array([0.5, 1.5]), 0.25, np.array([[0.1], [0.9]]))
        assert grid.shape == (2, 2)
        assert grid[1, 0] == pytest.approx(float(noise(0.5, 0.25, 0.9)))
