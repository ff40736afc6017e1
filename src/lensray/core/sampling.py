"""Lens sampling and reproducible per-sample random numbers.

The thin-lens camera needs two uniform numbers per sample to pick a point on
the aperture. Instead of Taichi's per-thread generator (whose sequence depends
on how pixels are scheduled across threads) each draw is computed from a
stateless integer hash of (pixel, sample, dimension, seed). The same image is
therefore produced regardless of thread count, and progressive passes can
continue a sample sequence exactly where the previous pass stopped.

Uniform numbers are turned into aperture points with the concentric mapping
of Shirley and Chiu ("A Low Distortion Map Between Disk and Square"), which
keeps samples uniformly distributed over the disk without clustering at its
center the way a naive polar mapping does.

Example:
    >>> @ti.kernel
    ... def lens_point() -> vec2:
    ...     u = sample_uniform(0, 0, 0, 42)
    ...     v = sample_uniform(0, 0, 1, 42)
    ...     return concentric_disk_sample(u, v)
"""

import taichi as ti
import taichi.math as tm

from lensray.core.ray import REAL, vec2

# Number of uniform dimensions consumed per sample (lens u, lens v)
DIMENSIONS_PER_SAMPLE = 2

_UINT32_RANGE = 4294967296.0


@ti.func
def _wang_hash(value: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash."""
    h = ti.cast(value, ti.u32)
    h = (h ^ ti.cast(61, ti.u32)) ^ (h >> 16)
    h = h * ti.cast(9, ti.u32)
    h = h ^ (h >> 4)
    h = h * ti.cast(668265261, ti.u32)
    h = h ^ (h >> 15)
    return h


@ti.func
def sample_uniform(
    pixel_index: ti.i32,
    sample_index: ti.i32,
    dimension: ti.i32,
    seed: ti.i32,
) -> REAL:
    """Return a reproducible uniform number in [0, 1).

    Args:
        pixel_index: Linear pixel index (row * width + column).
        sample_index: Index of the sample within the pixel.
        dimension: Which coordinate of the sample (0 = lens u, 1 = lens v).
        seed: Global seed of the render.

    Returns:
        A uniform number in [0, 1) that depends only on the four arguments.
    """
    h = _wang_hash(ti.cast(pixel_index, ti.u32))
    h = _wang_hash(h ^ ti.cast(sample_index, ti.u32))
    h = _wang_hash(h ^ ti.cast(dimension + 1, ti.u32))
    h = _wang_hash(h ^ ti.cast(seed, ti.u32))
    return ti.cast(h, REAL) / _UINT32_RANGE


@ti.func
def concentric_disk_sample(u: REAL, v: REAL) -> vec2:
    """Map a point of the unit square onto the unit disk.

    The square [0, 1]^2 is remapped to [-1, 1]^2; each point is then assigned
    a radius equal to its dominant coordinate and an angle proportional to the
    ratio of the two coordinates, which maps concentric squares onto
    concentric circles and preserves relative areas.

    Args:
        u: First uniform number in [0, 1].
        v: Second uniform number in [0, 1].

    Returns:
        A point (x, y) with x^2 + y^2 <= 1. The square's center maps to the
        disk's center.
    """
    a = 2.0 * u - 1.0
    b = 2.0 * v - 1.0

    result = vec2(0.0, 0.0)
    if a != 0.0 or b != 0.0:
        r = 0.0
        theta = 0.0
        if a * a > b * b:
            r = a
            theta = (tm.pi / 4.0) * (b / a)
        else:
            r = b
            theta = (tm.pi / 2.0) - (tm.pi / 4.0) * (a / b)
        result = vec2(r * ti.cos(theta), r * ti.sin(theta))

    return result
