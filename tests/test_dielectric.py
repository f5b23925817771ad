"""Unit tests for the layered dielectric material.

Tests cover:
- MaterialParams validation and presets
- Microfacet terms and lobe BRDFs at simple configurations
- Lobe selection probability
- sample_wi pdf scaling by the selection probability
- Sampling estimator agreeing with a uniform-hemisphere reference
"""

import math

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 200_000


class TestMaterialParams:
    """Tests for host-side material descriptions."""

    def test_diffuse_preset(self):
        from spheretracer.materials.dielectric import MaterialParams

        mat = MaterialParams.diffuse((0.0, 0.0, 1.0))
        assert mat.color == (0.0, 0.0, 1.0)
        assert mat.fresnel == (0.0, 0.0, 0.0)
        assert mat.shininess == 0.0

    def test_mirror_preset(self):
        from spheretracer.materials.dielectric import MIRROR_SHININESS, MaterialParams

        mat = MaterialParams.mirror()
        assert mat.color == (0.0, 0.0, 0.0)
        assert mat.fresnel == (1.0, 1.0, 1.0)
        assert mat.shininess == MIRROR_SHININESS

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"color": (1.1, 0.0, 0.0)},
            {"color": (0.5, -0.1, 0.0)},
            {"color": (0.5, 0.5, 0.5), "fresnel": (0.0, 2.0, 0.0)},
            {"color": (0.5, 0.5, 0.5), "shininess": -1.0},
            {"color": (0.5, 0.5)},
        ],
    )
    def test_invalid_components_raise(self, kwargs):
        from spheretracer.materials.dielectric import MaterialParams

        with pytest.raises(ValueError):
            MaterialParams(**kwargs)


class TestBrdfTerms:
    """Tests for BRDF evaluation."""

    def _eval(self, wi, wo, n, color, fresnel, shininess):
        from spheretracer.materials.dielectric import (
            Material,
            brdf,
            diffuse_brdf,
            fresnel_schlick,
            reflection_brdf,
            vec3,
        )

        out = ti.Vector.field(3, dtype=ti.f32, shape=4)

        @ti.kernel
        def test_kernel(wi: vec3, wo: vec3, n: vec3, color: vec3, fresnel: vec3, shininess: ti.f32):
            mat = Material(color=color, fresnel=fresnel, shininess=shininess)
            out[0] = brdf(wi, wo, n, mat)
            out[1] = reflection_brdf(wi, wo, n, mat)
            out[2] = diffuse_brdf(wi, wo, n, mat)
            out[3] = fresnel_schlick(wi, ti.math.normalize(wi + wo), fresnel)

        test_kernel(vec3(*wi), vec3(*wo), vec3(*n), vec3(*color), vec3(*fresnel), shininess)
        return out.to_numpy()

    def test_diffuse_lobe_is_color_over_pi(self):
        n = (0.0, 1.0, 0.0)
        result = self._eval(n, n, n, (0.8, 0.5, 0.2), (0.0, 0.0, 0.0), 0.0)
        assert np.allclose(result[2], np.array([0.8, 0.5, 0.2]) / math.pi, atol=1e-6)

    def test_fresnel_at_normal_incidence_is_r0(self):
        n = (0.0, 1.0, 0.0)
        result = self._eval(n, n, n, (0.0, 0.0, 0.0), (0.04, 0.5, 1.0), 10.0)
        assert np.allclose(result[3], [0.04, 0.5, 1.0], atol=1e-6)

    def test_below_surface_is_black(self):
        n = (0.0, 1.0, 0.0)
        wi = (0.0, -1.0, 0.0)
        wo = (0.0, 1.0, 0.0)
        result = self._eval(wi, wo, n, (0.8, 0.8, 0.8), (0.0, 0.0, 0.0), 0.0)
        assert np.allclose(result[2], 0.0)

    def test_reflection_zero_when_outgoing_below_surface(self):
        n = (0.0, 1.0, 0.0)
        wi = (0.6, 0.8, 0.0)
        wo = (0.6, -0.8, 0.0)
        result = self._eval(wi, wo, n, (0.0, 0.0, 0.0), (1.0, 1.0, 1.0), 50.0)
        assert np.allclose(result[1], 0.0)

    def test_reflection_zero_at_grazing_view(self):
        n = (0.0, 1.0, 0.0)
        wi = (0.6, 0.8, 0.0)
        wo = (1.0, 0.0, 0.0)
        result = self._eval(wi, wo, n, (0.5, 0.5, 0.5), (0.04, 0.04, 0.04), 50.0)
        assert np.all(np.isfinite(result))
        assert np.allclose(result[1], 0.0)

    def test_full_brdf_is_sum_of_lobes_for_black_fresnel_at_normal(self):
        """With R0 = 0 at normal incidence F = 0, so the base is unattenuated."""
        n = (0.0, 1.0, 0.0)
        result = self._eval(n, n, n, (0.8, 0.5, 0.2), (0.0, 0.0, 0.0), 0.0)
        assert np.allclose(result[0], result[1] + result[2], atol=1e-6)


class TestLobeProbability:
    """Tests for the reflection lobe selection probability."""

    @pytest.mark.parametrize(
        "fresnel, expected",
        [((0.0, 0.0, 0.0), 0.5), ((1.0, 1.0, 1.0), 1.0), ((0.2, 0.6, 0.4), 0.6)],
    )
    def test_probability(self, fresnel, expected):
        from spheretracer.materials.dielectric import Material, lobe_probability, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(fresnel: vec3):
            mat = Material(color=vec3(0.5, 0.5, 0.5), fresnel=fresnel, shininess=10.0)
            result[None] = lobe_probability(mat)

        test_kernel(vec3(*fresnel))
        assert result[None] == pytest.approx(expected, abs=1e-6)
        assert 0.5 <= result[None] <= 1.0


class TestSampling:
    """Tests for sample_wi."""

    def test_pdf_scaled_by_selection_probability(self):
        """Replaying the generator reproduces the lobe pdf times p or 1 - p."""
        from spheretracer.core.rng import rand_f32, seed
        from spheretracer.materials.dielectric import (
            Material,
            lobe_probability,
            reflection_sample_wi,
            refraction_sample_wi,
            sample_wi,
            vec3,
        )

        count = 512
        mismatches = ti.field(dtype=ti.i32, shape=())
        both_lobes = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            mat = Material(color=vec3(0.6, 0.6, 0.6), fresnel=vec3(0.5, 0.5, 0.5), shininess=20.0)
            n = vec3(0.0, 1.0, 0.0)
            wo = ti.math.normalize(vec3(0.3, 1.0, 0.1))
            p = lobe_probability(mat)
            for i in range(count):
                state = seed(ti.u32(99), i, 0)
                sample, _ = sample_wi(state, wo, n, mat)
                xi, rest = rand_f32(state)
                expected = 0.0
                if xi < p:
                    lobe, _ = reflection_sample_wi(rest, wo, n, mat)
                    expected = lobe.pdf * p
                    both_lobes[0] += 1
                else:
                    lobe, _ = refraction_sample_wi(rest, wo, n, mat)
                    expected = lobe.pdf * (1.0 - p)
                    both_lobes[1] += 1
                if ti.abs(sample.pdf - expected) > 1e-5 * ti.max(1.0, expected):
                    mismatches[None] += 1

        test_kernel()
        assert mismatches[None] == 0
        assert both_lobes[0] > 0
        assert both_lobes[1] > 0

    def test_mirror_reflects_about_normal(self):
        from spheretracer.core.rng import seed
        from spheretracer.materials.dielectric import MIRROR_SHININESS, Material, sample_wi, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())
        pdf = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            mat = Material(color=vec3(0.0, 0.0, 0.0), fresnel=vec3(1.0, 1.0, 1.0), shininess=MIRROR_SHININESS)
            sample, _ = sample_wi(seed(ti.u32(5), 0, 0), ti.math.normalize(vec3(1.0, 1.0, 0.0)), vec3(0.0, 1.0, 0.0), mat)
            result[None] = sample.wi
            pdf[None] = sample.pdf

        test_kernel()
        expected = np.array([-1.0, 1.0, 0.0]) / math.sqrt(2.0)
        assert np.allclose(result[None].to_numpy(), expected, atol=0.1)
        assert pdf[None] > 0.0

    def test_estimator_matches_uniform_reference(self):
        """E[brdf * cos / pdf] over sample_wi equals the integral of brdf * cos."""
        from spheretracer.core.rng import rand_f32, seed
        from spheretracer.materials.dielectric import Material, brdf, sample_wi, vec3

        importance = ti.Vector.field(3, dtype=ti.f64, shape=())
        uniform = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            mat = Material(color=vec3(0.8, 0.5, 0.2), fresnel=vec3(0.0, 0.0, 0.0), shininess=0.0)
            n = vec3(0.0, 1.0, 0.0)
            wo = n
            for i in range(N_SAMPLES):
                sample, _ = sample_wi(seed(ti.u32(1), i, 0), wo, n, mat)
                contrib = vec3(0.0, 0.0, 0.0)
                if sample.pdf > 0.0:
                    contrib = sample.brdf * ti.max(ti.math.dot(sample.wi, n), 0.0) / sample.pdf
                importance[None] += ti.cast(contrib, ti.f64)

                # Uniform hemisphere reference around +y, pdf = 1 / (2 pi)
                u1, state = rand_f32(seed(ti.u32(2), i, 0))
                u2, state = rand_f32(state)
                phi = 2.0 * ti.math.pi * u1
                cos_t = u2
                sin_t = ti.sqrt(ti.max(0.0, 1.0 - cos_t * cos_t))
                wi = vec3(sin_t * ti.cos(phi), cos_t, sin_t * ti.sin(phi))
                ref = brdf(wi, wo, n, mat) * cos_t * 2.0 * ti.math.pi
                uniform[None] += ti.cast(ref, ti.f64)

        test_kernel()
        estimate = importance[None].to_numpy() / N_SAMPLES
        reference = uniform[None].to_numpy() / N_SAMPLES
        assert np.allclose(estimate, reference, atol=0.02)
        # A diffuse material reflects its colour; the grazing Fresnel terms are tiny
        assert np.allclose(estimate, [0.8, 0.5, 0.2], atol=0.02)
        # Energy conservation: the material never reflects more than it receives
        assert np.all(estimate <= 1.0 + 0.02)
        assert np.all(estimate > 0.0)

    def test_lambertian_lobe_estimator_is_color(self):
        """Cosine sampling of the base lobe makes brdf * cos / pdf equal the colour."""
        from spheretracer.core.rng import seed
        from spheretracer.materials.dielectric import Material, diffuse_sample_wi, vec3

        total = ti.Vector.field(3, dtype=ti.f64, shape=())
        count = 4096

        @ti.kernel
        def test_kernel():
            mat = Material(color=vec3(0.8, 0.5, 0.2), fresnel=vec3(0.0, 0.0, 0.0), shininess=0.0)
            n = ti.math.normalize(vec3(0.3, 0.8, -0.5))
            for i in range(count):
                sample, _ = diffuse_sample_wi(seed(ti.u32(3), i, 0), n, n, mat)
                contrib = vec3(0.0, 0.0, 0.0)
                if sample.pdf > 0.0:
                    contrib = sample.brdf * ti.max(ti.math.dot(sample.wi, n), 0.0) / sample.pdf
                total[None] += ti.cast(contrib, ti.f64)

        test_kernel()
        assert np.allclose(total[None].to_numpy() / count, [0.8, 0.5, 0.2], atol=0.01)
