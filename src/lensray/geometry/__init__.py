"""Geometry module for primitive intersection.

Components:
    sphere: Sphere primitive and the shared HitRecord
    plane: Infinite plane primitive
    triangle: Triangle primitive, triangle storage and soup intersection

Ray-primitive intersection follows the pattern:
    rec = hit_shape(ray_origin, ray_direction, shape, min_t)
"""

from .plane import Plane, hit_plane
from .sphere import HitRecord, Sphere, hit_sphere, make_miss
from .triangle import (
    MAX_TRIANGLES,
    Triangle,
    clear_triangles,
    get_triangle_count,
    hit_triangle,
    hit_triangle_soup,
    store_triangle,
    triangle_normal,
)

__all__ = [
    "HitRecord",
    "make_miss",
    "Sphere",
    "hit_sphere",
    "Plane",
    "hit_plane",
    "Triangle",
    "hit_triangle",
    "hit_triangle_soup",
    "triangle_normal",
    "store_triangle",
    "clear_triangles",
    "get_triangle_count",
    "MAX_TRIANGLES",
]
