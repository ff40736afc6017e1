"""Tests for reproducible sampling and the concentric disk mapping."""

import numpy as np
import pytest
import taichi as ti


class TestSampleUniform:
    """Tests for the hash-based uniform numbers."""

    def _samples(self, seed, n=4096):
        from lensray.core.sampling import sample_uniform

        values = ti.field(dtype=ti.f64, shape=(n, 2))

        @ti.kernel
        def test_kernel(seed: ti.i32):
            for k in range(n):
                for dim in ti.static(range(2)):
                    values[k, dim] = sample_uniform(k % 64, k // 64, dim, seed)

        test_kernel(seed)
        return values.to_numpy()

    def test_range(self):
        """Test that values lie in [0, 1)."""
        values = self._samples(42)
        assert values.min() >= 0.0
        assert values.max() < 1.0

    def test_deterministic(self):
        """Test that the same arguments give the same values."""
        np.testing.assert_array_equal(self._samples(42), self._samples(42))

    def test_seed_changes_sequence(self):
        """Test that a different seed gives different values."""
        assert not np.array_equal(self._samples(42), self._samples(7))

    def test_roughly_uniform(self):
        """Test the mean and the spread of the values."""
        values = self._samples(42)
        assert values.mean() == pytest.approx(0.5, abs=0.02)
        hist, _ = np.histogram(values, bins=10, range=(0.0, 1.0))
        assert hist.min() > 0.8 * values.size / 10

    def test_dimensions_are_independent(self):
        """Test that the two coordinates of a sample differ."""
        values = self._samples(42)
        assert not np.allclose(values[:, 0], values[:, 1])


class TestConcentricDiskSample:
    """Tests for the square-to-disk mapping."""

    def _map(self, points):
        from lensray.core.sampling import concentric_disk_sample

        n = len(points)
        inputs = ti.Vector.field(2, dtype=ti.f64, shape=n)
        outputs = ti.Vector.field(2, dtype=ti.f64, shape=n)
        inputs.from_numpy(np.asarray(points, dtype=np.float64))

        @ti.kernel
        def test_kernel():
            for k in range(n):
                outputs[k] = concentric_disk_sample(inputs[k][0], inputs[k][1])

        test_kernel()
        return outputs.to_numpy()

    def test_center_maps_to_origin(self):
        """Test that the square's center maps to the disk's center."""
        result = self._map([(0.5, 0.5)])
        np.testing.assert_allclose(result[0], (0.0, 0.0), atol=1e-15)

    def test_corners_map_to_circle(self):
        """Test that the square's corners land on the unit circle."""
        result = self._map([(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.0, 1.0)])
        np.testing.assert_allclose(np.linalg.norm(result, axis=1), 1.0, atol=1e-12)

    def test_edge_midpoints(self):
        """Test that edge midpoints map to the axes."""
        result = self._map([(1.0, 0.5), (0.5, 1.0)])
        np.testing.assert_allclose(result[0], (1.0, 0.0), atol=1e-12)
        np.testing.assert_allclose(result[1], (0.0, 1.0), atol=1e-12)

    def test_grid_inside_disk(self):
        """Test that a grid of the square stays inside the unit disk."""
        grid = np.linspace(0.0, 1.0, 33)
        points = np.array([(u, v) for u in grid for v in grid])
        result = self._map(points)

        radii = np.linalg.norm(result, axis=1)
        assert radii.max() <= 1.0 + 1e-12
        # Area preserving: a uniform grid has a mean close to the origin
        np.testing.assert_allclose(result.mean(axis=0), (0.0, 0.0), atol=1e-3)

    def test_uniform_density(self):
        """Test that equal areas of the disk receive equal shares of a grid."""
        n = 64
        centers = (np.arange(n) + 0.5) / n
        points = np.array([(u, v) for u in centers for v in centers])
        radii = np.linalg.norm(self._map(points), axis=1)

        # A disk of radius r holds r^2 of the area
        assert np.mean(radii < 0.5) == pytest.approx(0.25, abs=0.02)
        assert np.mean(radii < 1.0 / np.sqrt(2.0)) == pytest.approx(0.5, abs=0.02)

        # Four annuli of equal area
        edges = np.sqrt(np.linspace(0.0, 1.0, 5))
        counts, _ = np.histogram(radii, bins=edges)
        np.testing.assert_allclose(counts / radii.size, 0.25, atol=0.02)
