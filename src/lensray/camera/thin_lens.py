"""Thin lens camera for depth of field.

Rays start at a point sampled on a disk of radius `aperture` around the eye
(in the camera's u-v plane) and pass through the point where the pinhole ray
of the same pixel meets the focal plane, the plane at distance
`focal_distance` along -w. Points on the focal plane are therefore sharp, and
the blur of anything else grows with its distance from that plane.

With aperture <= 0 the camera degenerates to the pinhole model and returns
exactly the pinhole ray.
"""

import taichi as ti
import taichi.math as tm

from lensray.camera.pinhole import (
    get_camera_basis,
    get_camera_eye,
    get_camera_lens,
    pixel_direction,
)
from lensray.core.ray import EPSILON, REAL, Ray, make_ray
from lensray.core.sampling import concentric_disk_sample


@ti.func
def get_viewing_ray_dof(
    i: ti.i32,
    j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    lens_u: REAL,
    lens_v: REAL,
) -> Ray:
    """Generate a thin lens viewing ray through pixel (i, j).

    Args:
        i: Pixel row (0 = top).
        j: Pixel column (0 = left).
        width: Image width in pixels.
        height: Image height in pixels.
        lens_u: First uniform number in [0, 1] selecting the lens point.
        lens_v: Second uniform number in [0, 1] selecting the lens point.

    Returns:
        A Ray with unit direction from the sampled lens point toward the
        focal point. The pinhole ray when the aperture is not positive or the
        pinhole direction runs parallel to the focal plane.
    """
    eye = get_camera_eye()
    direction = pixel_direction(i, j, width, height)
    aperture, focal_distance = get_camera_lens()

    origin = eye
    if aperture > 0.0:
        u, v, w = get_camera_basis()
        # Distance along the pinhole ray to the focal plane
        denom = tm.dot(direction, -w)
        if ti.abs(denom) >= EPSILON:
            t_focal = focal_distance / denom
            focal_point = eye + t_focal * direction

            disk = concentric_disk_sample(lens_u, lens_v)
            origin = eye + aperture * disk.x * u + aperture * disk.y * v
            direction = tm.normalize(focal_point - origin)

    return make_ray(origin, direction)
