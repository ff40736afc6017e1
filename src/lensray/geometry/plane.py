"""Infinite plane primitive.

A plane is stored as a point on the plane and its unit normal. The ray-plane
intersection solves

    t = n . (point - o) / n . d

and treats |n . d| < EPSILON as a ray parallel to the plane (no hit), which
avoids dividing by a vanishing denominator.

The normal is reported as stored, whatever side the ray arrives from.
"""

import taichi as ti
import taichi.math as tm

from lensray.core.ray import EPSILON, REAL, vec3
from lensray.geometry.sphere import HitRecord


@ti.dataclass
class Plane:
    """An infinite plane.

    Attributes:
        point: Any point on the plane (vec3).
        normal: The plane normal (vec3), normalized at scene construction.
    """

    point: vec3
    normal: vec3


@ti.func
def hit_plane(
    ray_origin: vec3,
    ray_direction: vec3,
    plane: Plane,
    min_t: REAL,
) -> HitRecord:
    """Test for ray-plane intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        plane: The plane to test intersection against.
        min_t: Hits closer than min_t + EPSILON are ignored.

    Returns:
        A HitRecord. Rays parallel to the plane never hit it.
    """
    denom = tm.dot(plane.normal, ray_direction)

    did_hit = 0
    hit_t = 0.0
    hit_normal = vec3(0.0, 0.0, 0.0)

    if ti.abs(denom) >= EPSILON:
        t = tm.dot(plane.normal, plane.point - ray_origin) / denom
        if t >= min_t + EPSILON:
            did_hit = 1
            hit_t = t
            hit_normal = tm.normalize(plane.normal)

    return HitRecord(hit=did_hit, t=hit_t, normal=hit_normal)
