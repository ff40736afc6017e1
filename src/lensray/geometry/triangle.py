"""Triangle and triangle soup primitives.

Single triangles use the Moller-Trumbore test, which solves

    o + t d = v0 + u e1 + v e2,    e1 = v1 - v0,  e2 = v2 - v0

for (t, u, v) with Cramer's rule. The hit is inside the triangle when the
barycentric coordinates satisfy u in [0, 1], v >= 0 and u + v <= 1.

The normal is the face normal normalize(e1 x e2). It follows the vertex
winding (counter-clockwise vertices seen from the front give a normal
pointing toward the viewer) and is not interpolated.

A triangle soup is a contiguous run of triangles in the triangle storage
that acts as one scene object; its hit is the nearest hit among its members.

Example:
    >>> from lensray.geometry.triangle import Triangle, hit_triangle
    >>> tri = Triangle(v0=vec3(0, 0, 0), v1=vec3(1, 0, 0), v2=vec3(0, 1, 0))
    >>> # Use hit_triangle within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from lensray.core.ray import EPSILON, REAL, vec3
from lensray.geometry.sphere import HitRecord

# Maximum number of triangles (shared by single triangles and soups)
MAX_TRIANGLES = 65536


@ti.dataclass
class Triangle:
    """A triangle defined by its three corners.

    Attributes:
        v0: First corner (vec3).
        v1: Second corner (vec3).
        v2: Third corner (vec3).
    """

    v0: vec3
    v1: vec3
    v2: vec3


@ti.func
def triangle_normal(tri: Triangle) -> vec3:
    """Compute the unit face normal of a triangle from its winding."""
    return tm.normalize(tm.cross(tri.v1 - tri.v0, tri.v2 - tri.v0))


@ti.func
def hit_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    tri: Triangle,
    min_t: REAL,
) -> HitRecord:
    """Test for ray-triangle intersection (Moller-Trumbore).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        tri: The triangle to test intersection against.
        min_t: Hits closer than min_t + EPSILON are ignored.

    Returns:
        A HitRecord with the winding-dependent face normal. Rays parallel to
        the triangle's plane (|det| < EPSILON) and degenerate triangles miss.
    """
    e1 = tri.v1 - tri.v0
    e2 = tri.v2 - tri.v0

    pvec = tm.cross(ray_direction, e2)
    det = tm.dot(e1, pvec)

    did_hit = 0
    hit_t = 0.0
    hit_normal = vec3(0.0, 0.0, 0.0)

    if ti.abs(det) >= EPSILON:
        inv_det = 1.0 / det
        tvec = ray_origin - tri.v0
        u = tm.dot(tvec, pvec) * inv_det
        qvec = tm.cross(tvec, e1)
        v = tm.dot(ray_direction, qvec) * inv_det
        t = tm.dot(e2, qvec) * inv_det

        # Barycentric bounds
        if u >= 0.0 and u <= 1.0 and v >= 0.0 and u + v <= 1.0:
            if t >= min_t + EPSILON:
                did_hit = 1
                hit_t = t
                hit_normal = triangle_normal(tri)

    return HitRecord(hit=did_hit, t=hit_t, normal=hit_normal)


# =============================================================================
# Triangle Storage (shared by Triangle objects and TriangleSoup objects)
# =============================================================================

triangle_v0 = ti.Vector.field(3, dtype=REAL, shape=MAX_TRIANGLES)
triangle_v1 = ti.Vector.field(3, dtype=REAL, shape=MAX_TRIANGLES)
triangle_v2 = ti.Vector.field(3, dtype=REAL, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())


def clear_triangles() -> None:
    """Clear the triangle storage."""
    num_triangles[None] = 0


def store_triangle(
    v0: tuple[float, float, float],
    v1: tuple[float, float, float],
    v2: tuple[float, float, float],
) -> int:
    """Append a triangle to the triangle storage.

    Args:
        v0: First corner.
        v1: Second corner.
        v2: Third corner.

    Returns:
        The index of the stored triangle.

    Raises:
        RuntimeError: If the maximum number of triangles is exceeded.
    """
    idx = num_triangles[None]
    if idx >= MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")
    triangle_v0[idx] = [v0[0], v0[1], v0[2]]
    triangle_v1[idx] = [v1[0], v1[1], v1[2]]
    triangle_v2[idx] = [v2[0], v2[1], v2[2]]
    num_triangles[None] = idx + 1
    return idx


def get_triangle_count() -> int:
    """Get the number of stored triangles."""
    return int(num_triangles[None])


@ti.func
def get_triangle(index: ti.i32) -> Triangle:
    """Load the stored triangle at index."""
    return Triangle(v0=triangle_v0[index], v1=triangle_v1[index], v2=triangle_v2[index])


@ti.func
def hit_triangle_soup(
    ray_origin: vec3,
    ray_direction: vec3,
    start: ti.i32,
    count: ti.i32,
    min_t: REAL,
) -> HitRecord:
    """Test a ray against a run of stored triangles and keep the nearest hit.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        start: Index of the first member triangle in the triangle storage.
        count: Number of member triangles.
        min_t: Hits closer than min_t + EPSILON are ignored.

    Returns:
        The HitRecord of the nearest member hit. Among members hit at the same
        t, the first one in storage order wins.
    """
    best = HitRecord(hit=0, t=tm.inf, normal=vec3(0.0, 0.0, 0.0))

    for k in range(count):
        rec = hit_triangle(ray_origin, ray_direction, get_triangle(start + k), min_t)
        if rec.hit == 1 and rec.t < best.t:
            best = rec

    if best.hit == 0:
        best.t = 0.0

    return best
