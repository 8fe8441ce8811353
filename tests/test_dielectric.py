"""Unit tests for the Dielectric material module.

Tests cover:
- Refraction at normal incidence
- Total internal reflection
- Fresnel reflectance (Schlick's approximation)
- Reflect/refract choice frequency
- Attenuation is always white
- Material registry operations and IOR validation
"""

import numpy as np
import pytest
import taichi as ti


class TestDielectricScatter:
    """Tests for scatter_dielectric."""

    def test_normal_incidence_mostly_refracts(self):
        """Test that head-on rays refract straight through about 96% of the time."""
        from pathtracer.core.rng import seed_rng
        from pathtracer.materials.dielectric import scatter_dielectric

        n = 10000
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            incident = ti.math.vec3(0.0, -1.0, 0.0)
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            for i in range(n):
                direction, _, _ = scatter_dielectric(1.5, incident, normal, 1, seed_rng(0, i, 0))
                directions[i] = direction

        test_kernel()
        arr = directions.to_numpy()
        refracted = arr[:, 1] < 0.0
        # Reflectance at normal incidence is r0 = 0.04
        assert abs(refracted.mean() - 0.96) < 0.01
        assert np.allclose(arr[refracted], [0.0, -1.0, 0.0], atol=1e-5)
        assert np.allclose(arr[~refracted], [0.0, 1.0, 0.0], atol=1e-5)

    def test_total_internal_reflection(self):
        """Test that steep rays leaving glass always reflect."""
        from pathtracer.core.rng import seed_rng
        from pathtracer.materials.dielectric import scatter_dielectric

        n = 200
        ys = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            # Inside the glass, hitting the surface at a grazing angle
            incident = ti.math.normalize(ti.math.vec3(0.9, 0.1, 0.0))
            normal = ti.math.vec3(0.0, -1.0, 0.0)
            for i in range(n):
                direction, _, _ = scatter_dielectric(1.5, incident, normal, 0, seed_rng(1, i, 0))
                ys[i] = direction.y

        test_kernel()
        # Reflected back down into the glass
        assert ys.to_numpy().max() < 0.0

    def test_attenuation_is_white(self):
        """Test that dielectrics never tint or absorb."""
        from pathtracer.core.rng import seed_rng
        from pathtracer.materials.dielectric import scatter_dielectric

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            _, attenuation, _ = scatter_dielectric(
                1.5,
                ti.math.vec3(0.3, -1.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
                1,
                seed_rng(0, 0, 0),
            )
            result[None] = attenuation

        test_kernel()
        assert np.allclose(result[None].to_numpy(), [1.0, 1.0, 1.0])

    def test_stream_advances_under_total_internal_reflection(self):
        """Test that a random number is consumed even when reflection is forced."""
        from pathtracer.core.rng import next_u32, seed_rng
        from pathtracer.materials.dielectric import scatter_dielectric

        states = ti.field(dtype=ti.u32, shape=2)

        @ti.kernel
        def test_kernel():
            rng = seed_rng(3, 0, 0)
            _, _, new_rng = scatter_dielectric(
                1.5,
                ti.math.normalize(ti.math.vec3(0.9, 0.1, 0.0)),
                ti.math.vec3(0.0, -1.0, 0.0),
                0,
                rng,
            )
            states[0] = next_u32(rng)
            states[1] = new_rng

        test_kernel()
        assert states[0] == states[1]


class TestDielectricHelpers:
    """Tests for will_reflect and fresnel_reflectance."""

    def test_will_reflect(self):
        """Test TIR detection from inside and outside the material."""
        from pathtracer.materials.dielectric import will_reflect

        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            grazing = ti.math.normalize(ti.math.vec3(0.9, 0.1, 0.0))
            result[0] = will_reflect(1.5, grazing, ti.math.vec3(0.0, -1.0, 0.0), 0)
            result[1] = will_reflect(
                1.5, ti.math.vec3(0.9, -0.1, 0.0), ti.math.vec3(0.0, 1.0, 0.0), 1
            )

        test_kernel()
        assert result[0] == 1
        # Entering a denser medium never totally reflects
        assert result[1] == 0

    def test_fresnel_reflectance_range(self):
        """Test reflectance grows from r0 at normal incidence toward 1 at grazing."""
        from pathtracer.materials.dielectric import fresnel_reflectance

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            result[0] = fresnel_reflectance(1.5, ti.math.vec3(0.0, -1.0, 0.0), normal, 1)
            result[1] = fresnel_reflectance(1.5, ti.math.vec3(1.0, -0.01, 0.0), normal, 1)

        test_kernel()
        assert abs(result[0] - 0.04) < 1e-4
        assert result[1] > 0.9


class TestDielectricRegistry:
    """Tests for the dielectric material registry."""

    def test_add_and_read_back(self):
        """Test that the IOR is stored per index."""
        from pathtracer.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_ior,
            get_dielectric_material_count,
        )

        add_dielectric_material(1.5)
        idx = add_dielectric_material(1.0 / 1.5)
        assert get_dielectric_material_count() == 2

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(i: ti.i32):
            result[None] = get_dielectric_ior(i)

        test_kernel(idx)
        assert abs(result[None] - 1.0 / 1.5) < 1e-6

    @pytest.mark.parametrize("ior", [0.0, -1.5, float("nan")])
    def test_invalid_ior_rejected(self, ior):
        """Test that non-positive IOR raises ValueError."""
        from pathtracer.materials.dielectric import add_dielectric_material

        with pytest.raises(ValueError):
            add_dielectric_material(ior)
