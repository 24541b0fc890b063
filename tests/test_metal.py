"""Unit tests for the metal material module.

Tests cover:
- Perfect mirror reflection (fuzz = 0)
- Fuzzy reflection stays within the fuzz ball around the mirror direction
- Absorption when the perturbed direction points into the surface
- Material registry operations and validation
"""

import math

import numpy as np
import pytest
import taichi as ti

NUM_SAMPLES = 2048


@pytest.fixture
def seeds():
    from spheretracer.core.sampling import make_seeds

    field = ti.field(dtype=ti.u32, shape=NUM_SAMPLES)
    field.from_numpy(make_seeds((NUM_SAMPLES,), seed=11))
    return field


class TestMetalScatter:
    """Tests for the metal scatter function."""

    def test_perfect_mirror(self):
        from spheretracer.materials.metal import scatter_metal, vec3

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())
        did_scatter = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, atten, did, _state = scatter_metal(
                vec3(0.8, 0.6, 0.2),
                0.0,
                vec3(1.0, -1.0, 0.0),
                vec3(0.0, 1.0, 0.0),
                ti.cast(12345, ti.u32),
            )
            direction[None] = d
            attenuation[None] = atten
            did_scatter[None] = did

        test_kernel()
        d = direction[None]
        inv_sqrt2 = 1.0 / math.sqrt(2.0)
        assert abs(d[0] - inv_sqrt2) < 1e-5
        assert abs(d[1] - inv_sqrt2) < 1e-5
        assert abs(d[2]) < 1e-5
        assert did_scatter[None] == 1
        assert np.allclose(attenuation[None].to_numpy(), [0.8, 0.6, 0.2])

    def test_incident_length_does_not_matter(self):
        """The incident direction is normalized before reflecting."""
        from spheretracer.materials.metal import scatter_metal, vec3

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            d, _atten, _did, _state = scatter_metal(
                vec3(1.0, 1.0, 1.0),
                0.0,
                vec3(0.0, -10.0, 0.0),
                vec3(0.0, 1.0, 0.0),
                ti.cast(12345, ti.u32),
            )
            direction[None] = d

        test_kernel()
        assert np.allclose(direction[None].to_numpy(), [0.0, 1.0, 0.0], atol=1e-6)

    def test_fuzz_bounded_perturbation(self, seeds):
        from spheretracer.materials.metal import scatter_metal, vec3

        fuzz = 0.3
        offsets = ti.field(dtype=ti.f32, shape=NUM_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(NUM_SAMPLES):
                d, _atten, _did, _state = scatter_metal(
                    vec3(1.0, 1.0, 1.0),
                    fuzz,
                    vec3(0.0, -1.0, 0.0),
                    vec3(0.0, 1.0, 0.0),
                    seeds[i],
                )
                offsets[i] = (d - vec3(0.0, 1.0, 0.0)).norm()

        test_kernel()
        assert np.allclose(offsets.to_numpy(), fuzz, atol=1e-5)

    def test_grazing_fuzzy_reflection_sometimes_absorbed(self, seeds):
        """A fuzzy metal absorbs exactly when the result points into the surface."""
        from spheretracer.materials.metal import scatter_metal, vec3

        did_scatter = ti.field(dtype=ti.i32, shape=NUM_SAMPLES)
        cosines = ti.field(dtype=ti.f32, shape=NUM_SAMPLES)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for i in range(NUM_SAMPLES):
                d, _atten, did, _state = scatter_metal(
                    vec3(0.9, 0.9, 0.9), 1.0, vec3(1.0, -0.05, 0.0), normal, seeds[i]
                )
                did_scatter[i] = did
                cosines[i] = ti.math.dot(d, normal)

        test_kernel()
        did = did_scatter.to_numpy()
        cos = cosines.to_numpy()
        assert np.any(did == 0)
        assert np.any(did == 1)
        assert np.array_equal(did == 1, cos > 0.0)


class TestMetalRegistry:
    """Tests for metal material registry operations."""

    def test_add_metal_material(self):
        from spheretracer.materials.metal import add_metal_material, get_metal_material_count

        assert add_metal_material((0.8, 0.8, 0.8)) == 0
        assert add_metal_material((0.8, 0.6, 0.2), fuzz=1.0) == 1
        assert get_metal_material_count() == 2

    def test_stored_properties(self):
        from spheretracer.materials.metal import add_metal_material, get_metal_albedo, get_metal_fuzz

        idx = add_metal_material((0.8, 0.6, 0.2), fuzz=0.25)
        albedo = ti.Vector.field(3, dtype=ti.f32, shape=())
        fuzz = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(i: ti.i32):
            albedo[None] = get_metal_albedo(i)
            fuzz[None] = get_metal_fuzz(i)

        test_kernel(idx)
        assert np.allclose(albedo[None].to_numpy(), [0.8, 0.6, 0.2])
        assert abs(fuzz[None] - 0.25) < 1e-6

    def test_clear(self):
        from spheretracer.materials.metal import (
            add_metal_material,
            clear_metal_materials,
            get_metal_material_count,
        )

        add_metal_material((0.5, 0.5, 0.5))
        clear_metal_materials()
        assert get_metal_material_count() == 0

    @pytest.mark.parametrize("fuzz", [-0.1, 1.5])
    def test_invalid_fuzz(self, fuzz):
        from spheretracer.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="Fuzz"):
            add_metal_material((0.5, 0.5, 0.5), fuzz=fuzz)

    def test_invalid_albedo(self):
        from spheretracer.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="outside"):
            add_metal_material((1.5, 0.5, 0.5))
