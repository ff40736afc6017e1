"""Tests for the pinhole and thin lens cameras."""

import numpy as np
import pytest
import taichi as ti


class TestCameraLookAt:
    """Tests for building the camera frame on the Python side."""

    def test_orthonormal_frame(self):
        """Test that look_at builds a right-handed orthonormal basis."""
        from lensray.camera.pinhole import Camera

        camera = Camera.look_at(
            eye=(1.0, 2.0, 3.0),
            look=(0.3, -0.2, -1.0),
            up=(0.0, 1.0, 0.0),
            focal_length=1.0,
            width=1.6,
            height=0.9,
        )
        u, v, w = (np.array(x) for x in (camera.u, camera.v, camera.w))

        for axis in (u, v, w):
            assert np.linalg.norm(axis) == pytest.approx(1.0)
        assert np.dot(u, v) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(v, w) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(u, w) == pytest.approx(0.0, abs=1e-12)
        np.testing.assert_allclose(np.cross(u, v), w, atol=1e-12)

        look = np.array((0.3, -0.2, -1.0))
        np.testing.assert_allclose(-w, look / np.linalg.norm(look), atol=1e-12)

    def test_rejects_parallel_up(self):
        """Test that an up vector parallel to look is rejected."""
        from lensray.camera.pinhole import Camera

        with pytest.raises(ValueError, match="parallel"):
            Camera.look_at((0, 0, 0), (0, 1, 0), (0, 2, 0), 1.0, 1.0, 1.0)

    def test_rejects_zero_look(self):
        """Test that a zero look direction is rejected."""
        from lensray.camera.pinhole import Camera

        with pytest.raises(ValueError, match="non-zero"):
            Camera.look_at((0, 0, 0), (0, 0, 0), (0, 1, 0), 1.0, 1.0, 1.0)

    def test_rejects_non_positive_image_plane(self):
        """Test that the image plane must have positive size."""
        from lensray.camera.pinhole import Camera

        with pytest.raises(ValueError, match="width"):
            Camera.look_at((0, 0, 0), (0, 0, -1), (0, 1, 0), 1.0, 0.0, 1.0)

    def test_with_lens(self, basic_camera):
        """Test that with_lens only changes the lens settings."""
        camera = basic_camera.with_lens(0.2, 4.0)

        assert camera.aperture == 0.2
        assert camera.focal_distance == 4.0
        assert camera.eye == basic_camera.eye
        assert basic_camera.aperture == 0.0

    def test_to_dict_round_trip(self, basic_camera):
        """Test that to_dict gives look_at arguments for the same camera."""
        from lensray.camera.pinhole import Camera

        rebuilt = Camera.look_at(**basic_camera.to_dict())
        np.testing.assert_allclose(rebuilt.u, basic_camera.u)
        np.testing.assert_allclose(rebuilt.v, basic_camera.v)
        np.testing.assert_allclose(rebuilt.w, basic_camera.w)

    def test_setup_camera_uploads_fields(self, basic_camera):
        """Test that setup_camera stores the camera in the Taichi fields."""
        from lensray.camera.pinhole import get_camera_info, setup_camera

        setup_camera(basic_camera.with_lens(0.1, 2.5))
        info = get_camera_info()

        assert info["eye"] == pytest.approx((0.0, 0.0, 3.0))
        assert info["w"] == pytest.approx((0.0, 0.0, 1.0))
        assert info["aperture"] == pytest.approx(0.1)
        assert info["focal_distance"] == pytest.approx(2.5)


def _pinhole_directions(width, height):
    from lensray.camera.pinhole import get_viewing_ray

    directions = ti.Vector.field(3, dtype=ti.f64, shape=(height, width))
    origins = ti.Vector.field(3, dtype=ti.f64, shape=(height, width))

    @ti.kernel
    def test_kernel():
        for i, j in directions:
            ray = get_viewing_ray(i, j, width, height)
            directions[i, j] = ray.direction
            origins[i, j] = ray.origin

    test_kernel()
    return origins.to_numpy(), directions.to_numpy()


class TestPinholeRays:
    """Tests for pinhole viewing rays."""

    def test_center_pixel_looks_forward(self, basic_camera):
        """Test that the center of an odd-sized image looks along -w."""
        from lensray.camera.pinhole import setup_camera

        setup_camera(basic_camera)
        origins, directions = _pinhole_directions(3, 3)

        np.testing.assert_allclose(origins[1, 1], (0.0, 0.0, 3.0))
        np.testing.assert_allclose(directions[1, 1], (0.0, 0.0, -1.0), atol=1e-12)

    def test_directions_are_unit_length(self, basic_camera):
        """Test that pinhole directions are normalized."""
        from lensray.camera.pinhole import setup_camera

        setup_camera(basic_camera)
        _, directions = _pinhole_directions(8, 5)

        np.testing.assert_allclose(np.linalg.norm(directions, axis=-1), 1.0, atol=1e-12)

    def test_row_zero_is_top(self, basic_camera):
        """Test that row 0 is at the top and column 0 at the left."""
        from lensray.camera.pinhole import setup_camera

        setup_camera(basic_camera)
        _, directions = _pinhole_directions(4, 4)

        top_left = directions[0, 0]
        assert top_left[0] < 0.0  # left: -u
        assert top_left[1] > 0.0  # top: +v

    def test_pixel_center_mapping(self, basic_camera):
        """Test the image plane point of the top-left pixel center."""
        from lensray.camera.pinhole import setup_camera

        setup_camera(basic_camera)
        _, directions = _pinhole_directions(2, 2)

        # Pixel (0, 0) of a 2x2 image on a 1x1 plane at distance 1
        expected = np.array([-0.25, 0.25, -1.0])
        np.testing.assert_allclose(directions[0, 0], expected / np.linalg.norm(expected))


def _lens_rays(width, height, lens_samples):
    from lensray.camera.thin_lens import get_viewing_ray_dof

    n = len(lens_samples)
    samples = ti.Vector.field(2, dtype=ti.f64, shape=n)
    samples.from_numpy(np.asarray(lens_samples, dtype=np.float64))
    origins = ti.Vector.field(3, dtype=ti.f64, shape=(n, height, width))
    directions = ti.Vector.field(3, dtype=ti.f64, shape=(n, height, width))

    @ti.kernel
    def test_kernel():
        for k, i, j in origins:
            ray = get_viewing_ray_dof(i, j, width, height, samples[k][0], samples[k][1])
            origins[k, i, j] = ray.origin
            directions[k, i, j] = ray.direction

    test_kernel()
    return origins.to_numpy(), directions.to_numpy()


class TestThinLensRays:
    """Tests for depth-of-field viewing rays."""

    LENS_SAMPLES = [(0.1, 0.2), (0.9, 0.4), (0.5, 0.95), (0.3, 0.7)]

    def test_zero_aperture_matches_pinhole(self, basic_camera):
        """Test that a zero aperture reproduces the pinhole rays exactly."""
        from lensray.camera.pinhole import setup_camera

        setup_camera(basic_camera.with_lens(0.0, 2.0))
        pinhole_origins, pinhole_dirs = _pinhole_directions(4, 3)
        lens_origins, lens_dirs = _lens_rays(4, 3, self.LENS_SAMPLES)

        for k in range(len(self.LENS_SAMPLES)):
            np.testing.assert_allclose(lens_origins[k], pinhole_origins, rtol=0, atol=1e-14)
            np.testing.assert_allclose(lens_dirs[k], pinhole_dirs, rtol=0, atol=1e-14)

    def test_rays_converge_on_focal_plane(self, basic_camera):
        """Test that all lens rays of a pixel meet at the same focal point."""
        from lensray.camera.pinhole import setup_camera

        focal_distance = 2.0
        setup_camera(basic_camera.with_lens(0.3, focal_distance))
        origins, directions = _lens_rays(4, 3, self.LENS_SAMPLES)

        # Focal plane: z = 3 - focal_distance (camera looks down -z)
        plane_z = 3.0 - focal_distance
        t = (plane_z - origins[..., 2]) / directions[..., 2]
        points = origins + t[..., None] * directions

        for k in range(1, len(self.LENS_SAMPLES)):
            np.testing.assert_allclose(points[k], points[0], atol=1e-9)

    def test_origins_on_lens_disk(self, basic_camera):
        """Test that ray origins lie within the aperture around the eye."""
        from lensray.camera.pinhole import setup_camera

        setup_camera(basic_camera.with_lens(0.3, 2.0))
        origins, directions = _lens_rays(2, 2, self.LENS_SAMPLES)

        offsets = origins - np.array([0.0, 0.0, 3.0])
        # Lens disk spans u and v, so origins stay in the z = 3 plane
        np.testing.assert_allclose(offsets[..., 2], 0.0, atol=1e-12)
        assert np.linalg.norm(offsets, axis=-1).max() <= 0.3 + 1e-12
        np.testing.assert_allclose(np.linalg.norm(directions, axis=-1), 1.0, atol=1e-12)

    def test_center_lens_sample_is_pinhole(self, basic_camera):
        """Test that the lens center reproduces the pinhole ray."""
        from lensray.camera.pinhole import setup_camera

        setup_camera(basic_camera.with_lens(0.3, 2.0))
        _, pinhole_dirs = _pinhole_directions(4, 3)
        origins, directions = _lens_rays(4, 3, [(0.5, 0.5)])

        np.testing.assert_allclose(origins[0, 1, 1], (0.0, 0.0, 3.0), atol=1e-12)
        np.testing.assert_allclose(directions[0], pinhole_dirs, atol=1e-12)
