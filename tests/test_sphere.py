"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside
- Ray missing sphere
- Ray starting inside sphere (far root)
- min_t rejecting hits behind the threshold
- Tangent rays
"""

import pytest
import taichi as ti


def _hit(origin, direction, center, radius, min_t):
    from lensray.geometry.sphere import Sphere, hit_sphere, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f64, shape=())
    normal = ti.Vector.field(3, dtype=ti.f64, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, c: vec3, r: ti.f64, min_t: ti.f64):
        record = hit_sphere(o, d, Sphere(center=c, radius=r), min_t)
        hit[None] = record.hit
        t_val[None] = record.t
        normal[None] = record.normal

    test_kernel(vec3(*origin), vec3(*direction), vec3(*center), radius, min_t)
    n = normal[None]
    return hit[None], t_val[None], (n[0], n[1], n[2])


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_direct_hit(self):
        """Test ray hitting sphere head-on from outside."""
        hit, t, n = _hit((0, 0, 5), (0, 0, -1), (0, 0, 0), 1.0, 0.0)

        assert hit == 1
        assert t == pytest.approx(4.0)
        assert n == pytest.approx((0.0, 0.0, 1.0))

    def test_miss(self):
        """Test ray passing beside the sphere."""
        hit, _, _ = _hit((5, 0, 0), (0, 0, -1), (0, 0, 0), 1.0, 0.0)
        assert hit == 0

    def test_origin_inside_returns_far_root(self):
        """Test that a ray starting inside reports the far side."""
        hit, t, n = _hit((0, 0, 0), (0, 0, 1), (0, 0, 0), 1.0, 0.0)

        assert hit == 1
        assert t == pytest.approx(1.0)
        # Normal is the outward geometric normal, not flipped
        assert n == pytest.approx((0.0, 0.0, 1.0))

    def test_sphere_behind_ray(self):
        """Test that a sphere behind the origin is not hit."""
        hit, _, _ = _hit((0, 0, 5), (0, 0, 1), (0, 0, 0), 1.0, 0.0)
        assert hit == 0

    def test_min_t_skips_near_root(self):
        """Test that min_t past the near root selects the far root."""
        hit, t, _ = _hit((0, 0, 5), (0, 0, -1), (0, 0, 0), 1.0, 4.5)

        assert hit == 1
        assert t == pytest.approx(6.0)

    def test_min_t_past_both_roots(self):
        """Test that min_t past both roots is a miss."""
        hit, _, _ = _hit((0, 0, 5), (0, 0, -1), (0, 0, 0), 1.0, 7.0)
        assert hit == 0

    def test_unnormalized_direction_scales_t(self):
        """Test that t is measured in units of the direction length."""
        hit, t, _ = _hit((0, 0, 5), (0, 0, -2), (0, 0, 0), 1.0, 0.0)

        assert hit == 1
        assert t == pytest.approx(2.0)

    def test_tangent_ray_hits(self):
        """Test that a ray grazing the sphere reports one hit."""
        hit, t, n = _hit((1, 0, 5), (0, 0, -1), (0, 0, 0), 1.0, 0.0)

        assert hit == 1
        assert t == pytest.approx(5.0)
        assert n == pytest.approx((1.0, 0.0, 0.0), abs=1e-6)
