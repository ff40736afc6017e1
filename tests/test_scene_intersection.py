"""Tests for the object table and the first-hit scan."""

import numpy as np
import pytest
import taichi as ti


def _first_hit(origin, direction, min_t=0.0):
    from lensray.core.ray import vec3
    from lensray.scene.intersection import first_hit

    hit = ti.field(dtype=ti.i32, shape=())
    object_id = ti.field(dtype=ti.i32, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f64, shape=())
    normal = ti.Vector.field(3, dtype=ti.f64, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, min_t: ti.f64):
        rec = first_hit(o, d, min_t)
        hit[None] = rec.hit
        object_id[None] = rec.object_id
        material_id[None] = rec.material_id
        t_val[None] = rec.t
        normal[None] = rec.normal

    test_kernel(vec3(*origin), vec3(*direction), min_t)
    n = normal[None]
    return {
        "hit": hit[None],
        "object_id": object_id[None],
        "material_id": material_id[None],
        "t": t_val[None],
        "normal": (n[0], n[1], n[2]),
    }


class TestSceneConstruction:
    """Tests for adding objects to the object table."""

    def test_object_ids_are_sequential_across_kinds(self):
        """Test that every kind of object shares one id sequence."""
        from lensray.scene.intersection import (
            add_plane,
            add_sphere,
            add_triangle,
            add_triangle_soup,
            get_object_count,
        )

        assert add_sphere((0, 0, -5), 1.0) == 0
        assert add_plane((0, -1, 0), (0, 1, 0)) == 1
        assert add_triangle((0, 0, 0), (1, 0, 0), (0, 1, 0)) == 2
        assert add_triangle_soup([[(0, 0, 0), (1, 0, 0), (0, 1, 0)]]) == 3
        assert get_object_count() == 4

    def test_sphere_radius_must_be_positive(self):
        """Test that non-positive radii are rejected."""
        from lensray.scene.intersection import add_sphere

        with pytest.raises(ValueError, match="radius"):
            add_sphere((0, 0, 0), 0.0)
        with pytest.raises(ValueError, match="radius"):
            add_sphere((0, 0, 0), -1.0)

    def test_plane_normal_must_be_non_zero(self):
        """Test that a zero plane normal is rejected."""
        from lensray.scene.intersection import add_plane

        with pytest.raises(ValueError, match="normal"):
            add_plane((0, 0, 0), (0, 0, 0))

    def test_plane_normal_is_normalized(self):
        """Test that plane normals are stored with unit length."""
        from lensray.scene.intersection import add_plane, plane_normals

        add_plane((0, 0, 0), (0, 0, 4))
        n = plane_normals[0]
        assert (n[0], n[1], n[2]) == pytest.approx((0.0, 0.0, 1.0))

    def test_degenerate_triangle_rejected(self):
        """Test that collinear corners are rejected."""
        from lensray.scene.intersection import add_triangle

        with pytest.raises(ValueError, match="Degenerate"):
            add_triangle((0, 0, 0), (1, 1, 1), (2, 2, 2))

    def test_empty_soup_rejected(self):
        """Test that an empty soup is rejected."""
        from lensray.scene.intersection import add_triangle_soup

        with pytest.raises(ValueError, match="at least one"):
            add_triangle_soup([])

    def test_soup_with_degenerate_member_rejected(self):
        """Test that one degenerate member rejects the whole soup."""
        from lensray.geometry.triangle import get_triangle_count
        from lensray.scene.intersection import add_triangle_soup, get_object_count

        with pytest.raises(ValueError, match="Degenerate"):
            add_triangle_soup(
                [
                    [(0, 0, 0), (1, 0, 0), (0, 1, 0)],
                    [(0, 0, 0), (0, 0, 0), (0, 1, 0)],
                ]
            )
        assert get_triangle_count() == 0
        assert get_object_count() == 0

    def test_sphere_capacity(self):
        """Test that exceeding the sphere capacity raises RuntimeError."""
        from lensray.scene.intersection import MAX_SPHERES, add_sphere

        for k in range(MAX_SPHERES):
            add_sphere((float(k), 0.0, 0.0), 0.5)
        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            add_sphere((0.0, 0.0, 0.0), 0.5)

    def test_clear_scene(self):
        """Test that clear_scene empties every table."""
        from lensray.geometry.triangle import get_triangle_count
        from lensray.scene.intersection import (
            add_sphere,
            add_triangle,
            clear_scene,
            get_object_count,
            get_sphere_count,
        )

        add_sphere((0, 0, -5), 1.0)
        add_triangle((0, 0, 0), (1, 0, 0), (0, 1, 0))
        clear_scene()

        assert get_object_count() == 0
        assert get_sphere_count() == 0
        assert get_triangle_count() == 0


class TestFirstHit:
    """Tests for nearest-hit resolution across all objects."""

    def test_empty_scene_misses(self):
        """Test that an empty scene reports no hit."""
        result = _first_hit((0, 0, 0), (0, 0, -1))
        assert result["hit"] == 0
        assert result["object_id"] == -1

    def test_sphere_in_front_of_plane(self):
        """Test that a sphere at distance 5 wins over a plane at distance 10."""
        from lensray.scene.intersection import add_plane, add_sphere

        add_plane((0, 0, -10), (0, 0, 1), material_id=1)
        add_sphere((0, 0, -6), 1.0, material_id=2)

        result = _first_hit((0, 0, 0), (0, 0, -1))
        assert result["hit"] == 1
        assert result["object_id"] == 1
        assert result["material_id"] == 2
        assert result["t"] == pytest.approx(5.0)
        assert result["normal"] == pytest.approx((0.0, 0.0, 1.0))

    def test_order_independent_nearest(self):
        """Test that insertion order does not change the nearest object."""
        from lensray.scene.intersection import add_plane, add_sphere

        add_sphere((0, 0, -6), 1.0, material_id=2)
        add_plane((0, 0, -10), (0, 0, 1), material_id=1)

        result = _first_hit((0, 0, 0), (0, 0, -1))
        assert result["object_id"] == 0
        assert result["t"] == pytest.approx(5.0)

    def test_tie_goes_to_lowest_id(self):
        """Test that objects hit at the same t resolve to the first one."""
        from lensray.scene.intersection import add_plane

        add_plane((0, 0, -3), (0, 0, 1), material_id=4)
        add_plane((0, 0, -3), (0, 0, -1), material_id=5)

        result = _first_hit((0, 0, 0), (0, 0, -1))
        assert result["object_id"] == 0
        assert result["material_id"] == 4

    def test_min_t_skips_near_objects(self):
        """Test that min_t excludes hits before it."""
        from lensray.scene.intersection import add_plane

        add_plane((0, 0, -2), (0, 0, 1))
        add_plane((0, 0, -8), (0, 0, 1))

        result = _first_hit((0, 0, 0), (0, 0, -1), min_t=3.0)
        assert result["object_id"] == 1
        assert result["t"] == pytest.approx(8.0)

    def test_soup_object_reports_soup_id(self):
        """Test that a soup hit reports the soup's object id."""
        from lensray.scene.intersection import add_sphere, add_triangle_soup

        add_sphere((0, 5, -3), 1.0)
        soup_id = add_triangle_soup(
            np.array(
                [
                    [(-1, -1, -4), (1, -1, -4), (0, 1, -4)],
                    [(-1, -1, -2), (1, -1, -2), (0, 1, -2)],
                ]
            ),
            material_id=3,
        )

        result = _first_hit((0, 0, 0), (0, 0, -1))
        assert result["object_id"] == soup_id
        assert result["material_id"] == 3
        assert result["t"] == pytest.approx(2.0)

    def test_mixed_kinds(self):
        """Test nearest resolution over sphere, plane, triangle and soup."""
        from lensray.scene.intersection import (
            add_plane,
            add_sphere,
            add_triangle,
            add_triangle_soup,
        )

        add_plane((0, 0, -20), (0, 0, 1))
        add_triangle_soup([[(-1, -1, -9), (1, -1, -9), (0, 1, -9)]])
        add_sphere((0, 0, -8), 1.0)
        tri_id = add_triangle((-1, -1, -4), (1, -1, -4), (0, 1, -4))

        result = _first_hit((0, 0, 0), (0, 0, -1))
        assert result["object_id"] == tri_id
        assert result["t"] == pytest.approx(4.0)
