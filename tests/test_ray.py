"""Unit tests for the ray module and the per-ray random generator.

Tests cover:
- Ray dataclass and ray_at
- reflect and component helpers
- Orthonormal basis and to_world
- seed / rand_f32 range, determinism and pixel independence
"""

import numpy as np
import pytest
import taichi as ti


class TestRayBasics:
    """Tests for the Ray dataclass and basic operations."""

    def test_ray_at_positive_t(self):
        """ray_at computes origin + t * direction."""
        from spheretracer.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(
                origin=vec3(1.0, 2.0, 3.0),
                direction=vec3(1.0, 0.0, 0.0),
                bounces=3,
                throughput=vec3(1.0, 1.0, 1.0),
                rng=ti.u32(0),
            )
            result[None] = ray_at(ray, 5.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 6.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_carries_path_state(self):
        """Bounce budget, throughput and generator state survive construction."""
        from spheretracer.core.ray import Ray, vec3

        bounces = ti.field(dtype=ti.i32, shape=())
        throughput = ti.field(dtype=ti.math.vec3, shape=())
        rng = ti.field(dtype=ti.u32, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(
                origin=vec3(0.0, 0.0, 0.0),
                direction=vec3(0.0, 0.0, -1.0),
                bounces=2,
                throughput=vec3(0.5, 0.25, 1.0),
                rng=ti.u32(1234),
            )
            bounces[None] = ray.bounces
            throughput[None] = ray.throughput
            rng[None] = ray.rng

        test_kernel()
        assert bounces[None] == 2
        assert np.allclose(throughput[None].to_numpy(), [0.5, 0.25, 1.0])
        assert rng[None] == 1234


class TestVectorHelpers:
    """Tests for reflect, max_component and min_component."""

    def test_reflect_about_normal(self):
        """Reflecting a 45 degree ray about +y flips the y component."""
        from spheretracer.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert np.allclose(result[None].to_numpy(), [1.0, 1.0, 0.0], atol=1e-6)

    def test_component_extremes(self):
        from spheretracer.core.ray import max_component, min_component, vec3

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            v = vec3(0.3, -2.0, 7.5)
            result[0] = max_component(v)
            result[1] = min_component(v)

        test_kernel()
        assert result[0] == pytest.approx(7.5)
        assert result[1] == pytest.approx(-2.0)


class TestLocalFrames:
    """Tests for the orthonormal basis helpers."""

    @pytest.mark.parametrize(
        "normal",
        [(0.0, 0.0, 1.0), (1.0, 0.0, 0.0), (0.0, -1.0, 0.0), (0.577350, 0.577350, 0.577350)],
    )
    def test_onb_is_orthonormal(self, normal):
        from spheretracer.core.ray import build_onb_from_normal, vec3

        axes = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel(nx: ti.f32, ny: ti.f32, nz: ti.f32):
            t, b, n = build_onb_from_normal(ti.math.normalize(vec3(nx, ny, nz)))
            axes[0] = t
            axes[1] = b
            axes[2] = n

        test_kernel(*normal)
        basis = axes.to_numpy()
        assert np.allclose(basis @ basis.T, np.eye(3), atol=1e-5)

    def test_to_world_maps_z_to_normal(self):
        from spheretracer.core.ray import to_world, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = to_world(vec3(0.0, 1.0, 0.0), vec3(0.0, 0.0, 1.0))

        test_kernel()
        assert np.allclose(result[None].to_numpy(), [0.0, 1.0, 0.0], atol=1e-6)


class TestRandom:
    """Tests for seed and rand_f32."""

    N = 4096

    def _draw(self, frame_seed, row, col, count):
        from spheretracer.core.rng import rand_f32, seed

        values = ti.field(dtype=ti.f32, shape=count)

        @ti.kernel
        def test_kernel(frame_seed: ti.u32, row: ti.i32, col: ti.i32):
            state = seed(frame_seed, row, col)
            ti.loop_config(serialize=True)
            for i in range(count):
                value, state = rand_f32(state)
                values[i] = value

        test_kernel(frame_seed, row, col)
        return values.to_numpy()

    def test_values_in_unit_interval(self):
        values = self._draw(7, 3, 5, self.N)
        assert np.all(values >= 0.0)
        assert np.all(values < 1.0)

    def test_roughly_uniform(self):
        values = self._draw(11, 0, 0, self.N).astype(np.float64)
        assert values.mean() == pytest.approx(0.5, abs=0.03)
        assert values.var() == pytest.approx(1.0 / 12.0, abs=0.01)

    def test_same_seed_same_stream(self):
        """A pixel's stream depends only on (frame_seed, row, col)."""
        first = self._draw(42, 10, 20, 64)
        second = self._draw(42, 10, 20, 64)
        assert np.array_equal(first, second)

    def test_neighbouring_pixels_differ(self):
        base = self._draw(42, 10, 20, 64)
        assert not np.array_equal(base, self._draw(42, 10, 21, 64))
        assert not np.array_equal(base, self._draw(42, 11, 20, 64))
        assert not np.array_equal(base, self._draw(43, 10, 20, 64))
