"""Sphere primitive with ray-sphere intersection.

The ray-sphere intersection is found by solving

    |o + t d - c|^2 = r^2

which expands to the quadratic

    (d . d) t^2 + 2 (o - c) . d t + (|o - c|^2 - r^2) = 0

The nearer root is reported when it lies beyond min_t (plus the shared
epsilon), otherwise the farther one, so a ray leaving the surface of a sphere
from inside still finds the far side.

Example:
    >>> from lensray.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from lensray.core.ray import EPSILON, REAL, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive).
    """

    center: vec3
    radius: REAL


@ti.dataclass
class HitRecord:
    """Result of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 otherwise.
        t: The ray parameter of the intersection. Only valid if hit == 1.
        normal: Unit surface normal at the intersection. The normal is the
            primitive's geometric normal and is never flipped toward the ray;
            shading handles back-facing hits. Only valid if hit == 1.
    """

    hit: ti.i32
    t: REAL
    normal: vec3


@ti.func
def make_miss() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(hit=0, t=0.0, normal=vec3(0.0, 0.0, 0.0))


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    min_t: REAL,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        min_t: Hits closer than min_t + EPSILON are ignored.

    Returns:
        A HitRecord. The normal points from the center to the hit point.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    b = 2.0 * tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = b * b - 4.0 * a * c

    did_hit = 0
    hit_t = 0.0
    hit_normal = vec3(0.0, 0.0, 0.0)

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0 = (-b - sqrt_d) / (2.0 * a)
        t1 = (-b + sqrt_d) / (2.0 * a)

        if t0 >= min_t + EPSILON:
            did_hit = 1
            hit_t = t0
        elif t1 >= min_t + EPSILON:
            did_hit = 1
            hit_t = t1

        if did_hit == 1:
            hit_point = ray_origin + hit_t * ray_direction
            hit_normal = tm.normalize(hit_point - sphere.center)

    return HitRecord(hit=did_hit, t=hit_t, normal=hit_normal)
