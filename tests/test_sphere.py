"""Unit tests for the sphere primitive.

Tests cover:
- Direct hits, misses and hits from inside
- Tangent rays (reported as misses)
- Exclusive t bounds
- Normal orientation and front_face
- Unnormalized ray directions
"""

import math

import taichi as ti


def _run_hit(origin, direction, center, radius, t_min=0.001, t_max=1e10):
    """Intersect one ray with one sphere and return the hit record as a dict."""
    from pathtracer.geometry.sphere import Sphere, hit_sphere

    ray_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
    ray_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
    sphere_center = ti.Vector.field(3, dtype=ti.f32, shape=())
    ray_origin[None] = origin
    ray_direction[None] = direction
    sphere_center[None] = center

    hit = ti.field(dtype=ti.i32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        sphere = Sphere(center=sphere_center[None], radius=radius)
        rec = hit_sphere(
            ray_origin[None],
            ray_direction[None],
            sphere,
            t_min,
            t_max,
        )
        hit[None] = rec.hit
        front_face[None] = rec.front_face
        t[None] = rec.t
        point[None] = rec.point
        normal[None] = rec.normal

    test_kernel()
    return {
        "hit": hit[None],
        "front_face": front_face[None],
        "t": t[None],
        "point": point[None].to_numpy(),
        "normal": normal[None].to_numpy(),
    }


class TestSphereIntersection:
    """Tests for hit_sphere."""

    def test_direct_hit(self):
        """Test a ray hitting the sphere head-on reports the near surface."""
        rec = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 0.5) < 1e-5
        assert abs(rec["point"][2] + 0.5) < 1e-5
        assert rec["front_face"] == 1
        assert abs(rec["normal"][2] - 1.0) < 1e-5

    def test_miss(self):
        """Test a ray passing beside the sphere."""
        rec = _run_hit((0.0, 2.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5)
        assert rec["hit"] == 0

    def test_hit_from_inside(self):
        """Test a ray starting inside hits the far side with an inward normal."""
        rec = _run_hit((0.0, 0.0, -1.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 0.5) < 1e-5
        assert rec["front_face"] == 0
        # Outward normal is (0, 0, -1); the stored normal faces the ray
        assert abs(rec["normal"][2] - 1.0) < 1e-5

    def test_tangent_ray_misses(self):
        """Test that a ray grazing the sphere (zero discriminant) is a miss."""
        rec = _run_hit((0.0, 1.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -2.0), 1.0)
        assert rec["hit"] == 0

    def test_sphere_behind_ray(self):
        """Test that spheres behind the origin are not hit."""
        rec = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, -2.0), 0.5)
        assert rec["hit"] == 0

    def test_t_min_is_exclusive(self):
        """Test that a root equal to t_min is rejected in favour of the far root."""
        rec = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5, t_min=0.5)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 1.5) < 1e-5
        assert rec["front_face"] == 0

    def test_t_max_is_exclusive(self):
        """Test that a root equal to t_max is rejected."""
        rec = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5, t_max=0.5)
        assert rec["hit"] == 0

    def test_normal_is_unit_length_at_oblique_angle(self):
        """Test the normal at an off-center hit."""
        rec = _run_hit((0.3, 0.2, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -2.0), 1.0)
        assert rec["hit"] == 1
        n = rec["normal"]
        assert abs(math.sqrt(n[0] ** 2 + n[1] ** 2 + n[2] ** 2) - 1.0) < 1e-5
        assert n[2] > 0.0

    def test_unnormalized_direction(self):
        """Test that t scales with the direction length."""
        rec = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, -2.0), (0.0, 0.0, -1.0), 0.5)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 0.25) < 1e-5
        assert abs(rec["point"][2] + 0.5) < 1e-5

    def test_large_distant_sphere(self):
        """Test the ground-sphere configuration used by the preset scenes."""
        rec = _run_hit((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), (0.0, -100.5, -1.0), 100.0)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 0.505) < 1e-3
        assert rec["normal"][1] > 0.99
