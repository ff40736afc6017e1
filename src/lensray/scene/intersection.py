"""Scene-level primitive intersection testing.

Every scene object (sphere, plane, triangle or triangle soup) gets an entry in
a single object table indexed by object id. The id is assigned in insertion
order, which is also the order the resolver scans objects in: a later object
only replaces the current best hit when its t is strictly smaller, so the
earliest object wins ties and the result does not depend on which primitive
kinds the scene mixes.

The primitive data itself lives in per-kind Structure-of-Arrays storage.
Single triangles and triangle soups share the triangle storage; an object
refers to a contiguous run of it through (prim_start, prim_count).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from lensray.scene.intersection import add_sphere, add_plane, clear_scene
    >>> clear_scene()
    >>> add_sphere((0, 0, -5), 1.0, material_id=0)
    0
    >>> add_plane((0, -1, 0), (0, 1, 0), material_id=1)
    1
    >>> # Use first_hit within a Taichi kernel
"""

from enum import IntEnum

import numpy as np
import taichi as ti
import taichi.math as tm

from lensray.core.ray import EPSILON, REAL, vec3
from lensray.geometry.plane import Plane, hit_plane
from lensray.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss
from lensray.geometry.triangle import (
    MAX_TRIANGLES,
    clear_triangles,
    get_triangle,
    get_triangle_count,
    hit_triangle,
    hit_triangle_soup,
    store_triangle,
)


class ObjectType(IntEnum):
    """Kinds of scene objects stored in the object table."""

    SPHERE = 0
    PLANE = 1
    TRIANGLE = 2
    TRIANGLE_SOUP = 3


# Plain ints for use inside Taichi functions
_SPHERE = int(ObjectType.SPHERE)
_PLANE = int(ObjectType.PLANE)
_TRIANGLE = int(ObjectType.TRIANGLE)
_TRIANGLE_SOUP = int(ObjectType.TRIANGLE_SOUP)


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Attributes:
        hit: 1 if the ray intersected any object, 0 otherwise.
        object_id: Id of the nearest object hit. -1 on a miss.
        t: The ray parameter of the nearest hit. Only valid if hit == 1.
        normal: Unit geometric normal at the hit. Only valid if hit == 1.
        material_id: Material of the object hit. -1 on a miss.
    """

    hit: ti.i32
    object_id: ti.i32
    t: REAL
    normal: vec3
    material_id: ti.i32


# Maximum number of objects and per-kind primitives
MAX_OBJECTS = 4096
MAX_SPHERES = 1024
MAX_PLANES = 256

# Object table
object_types = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_prim_start = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_prim_count = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())

# Sphere storage
sphere_centers = ti.Vector.field(3, dtype=REAL, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=REAL, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Plane storage, normals are unit length
plane_points = ti.Vector.field(3, dtype=REAL, shape=MAX_PLANES)
plane_normals = ti.Vector.field(3, dtype=REAL, shape=MAX_PLANES)
num_planes = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all objects from the scene.

    Resets the object and primitive counts to zero. The field data is not
    cleared but will be overwritten when new objects are added.
    """
    num_objects[None] = 0
    num_spheres[None] = 0
    num_planes[None] = 0
    clear_triangles()


def _as_vector(value, name: str) -> np.ndarray:
    vec = np.asarray(value, dtype=np.float64)
    if vec.shape != (3,):
        raise ValueError(f"{name} must have 3 components, got {value!r}")
    if not np.all(np.isfinite(vec)):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return vec


def _check_triangle(v0: np.ndarray, v1: np.ndarray, v2: np.ndarray) -> None:
    area2 = np.linalg.norm(np.cross(v1 - v0, v2 - v0))
    if area2 < EPSILON:
        raise ValueError(f"Degenerate triangle: {v0.tolist()}, {v1.tolist()}, {v2.tolist()}")


def _append_object(object_type: ObjectType, start: int, count: int, material_id: int) -> int:
    idx = num_objects[None]
    if idx >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    object_types[idx] = int(object_type)
    object_prim_start[idx] = start
    object_prim_count[idx] = count
    object_material_ids[idx] = material_id
    num_objects[None] = idx + 1
    return idx


def add_sphere(center, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere as (x, y, z).
        radius: The radius of the sphere. Must be positive.
        material_id: The material ID to associate with this sphere.

    Returns:
        The object id of the added sphere.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If the maximum number of spheres or objects is exceeded.
    """
    c = _as_vector(center, "center")
    if not radius > 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    if num_objects[None] >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    sphere_centers[idx] = c.tolist()
    sphere_radii[idx] = float(radius)
    num_spheres[None] = idx + 1
    return _append_object(ObjectType.SPHERE, idx, 1, material_id)


def add_plane(point, normal, material_id: int = 0) -> int:
    """Add an infinite plane to the scene.

    Args:
        point: Any point on the plane as (x, y, z).
        normal: The plane normal as (x, y, z). Normalized before storage.
        material_id: The material ID to associate with this plane.

    Returns:
        The object id of the added plane.

    Raises:
        ValueError: If the normal has zero length.
        RuntimeError: If the maximum number of planes or objects is exceeded.
    """
    p = _as_vector(point, "point")
    n = _as_vector(normal, "normal")
    norm = np.linalg.norm(n)
    if norm < EPSILON:
        raise ValueError(f"Plane normal must be non-zero, got {normal!r}")
    idx = num_planes[None]
    if idx >= MAX_PLANES:
        raise RuntimeError(f"Maximum number of planes ({MAX_PLANES}) exceeded")
    if num_objects[None] >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    plane_points[idx] = p.tolist()
    plane_normals[idx] = (n / norm).tolist()
    num_planes[None] = idx + 1
    return _append_object(ObjectType.PLANE, idx, 1, material_id)


def add_triangle(v0, v1, v2, material_id: int = 0) -> int:
    """Add a single triangle to the scene.

    The corner order sets the normal: counter-clockwise corners, seen from
    the side the normal should face.

    Args:
        v0: First corner as (x, y, z).
        v1: Second corner as (x, y, z).
        v2: Third corner as (x, y, z).
        material_id: The material ID to associate with this triangle.

    Returns:
        The object id of the added triangle.

    Raises:
        ValueError: If the triangle has zero area.
        RuntimeError: If the maximum number of triangles or objects is exceeded.
    """
    a, b, c = _as_vector(v0, "v0"), _as_vector(v1, "v1"), _as_vector(v2, "v2")
    _check_triangle(a, b, c)
    if num_objects[None] >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    idx = store_triangle(a.tolist(), b.tolist(), c.tolist())
    return _append_object(ObjectType.TRIANGLE, idx, 1, material_id)


def add_triangle_soup(triangles, material_id: int = 0) -> int:
    """Add a triangle soup (one object made of many triangles) to the scene.

    Args:
        triangles: Sequence of (v0, v1, v2) corner triples, or an array of
            shape (N, 3, 3).
        material_id: The material ID shared by every member triangle.

    Returns:
        The object id of the added soup.

    Raises:
        ValueError: If the soup is empty or contains a zero-area triangle.
        RuntimeError: If the soup does not fit in the triangle storage or the
            maximum number of objects is exceeded.
    """
    corners = np.asarray(triangles, dtype=np.float64)
    if corners.size == 0:
        raise ValueError("Triangle soup must contain at least one triangle")
    if corners.ndim != 3 or corners.shape[1:] != (3, 3):
        raise ValueError(f"Triangle soup must have shape (N, 3, 3), got {corners.shape}")
    if not np.all(np.isfinite(corners)):
        raise ValueError("Triangle soup corners must be finite")
    for a, b, c in corners:
        _check_triangle(a, b, c)

    start = get_triangle_count()
    count = corners.shape[0]
    if start + count > MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")
    if num_objects[None] >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    for a, b, c in corners:
        store_triangle(a.tolist(), b.tolist(), c.tolist())
    return _append_object(ObjectType.TRIANGLE_SOUP, start, count, material_id)


def get_object_count() -> int:
    """Get the number of objects in the scene."""
    return int(num_objects[None])


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_plane_count() -> int:
    """Get the number of planes in the scene."""
    return int(num_planes[None])


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        object_id=-1,
        t=0.0,
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def intersect_object(
    object_id: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    min_t: REAL,
) -> HitRecord:
    """Intersect a ray with one scene object, dispatching on its type.

    Args:
        object_id: Index into the object table.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        min_t: Hits closer than min_t + EPSILON are ignored.

    Returns:
        The object's HitRecord.
    """
    rec = make_miss()
    kind = object_types[object_id]
    start = object_prim_start[object_id]

    if kind == _SPHERE:
        sphere = Sphere(center=sphere_centers[start], radius=sphere_radii[start])
        rec = hit_sphere(ray_origin, ray_direction, sphere, min_t)
    elif kind == _PLANE:
        plane = Plane(point=plane_points[start], normal=plane_normals[start])
        rec = hit_plane(ray_origin, ray_direction, plane, min_t)
    elif kind == _TRIANGLE:
        rec = hit_triangle(ray_origin, ray_direction, get_triangle(start), min_t)
    elif kind == _TRIANGLE_SOUP:
        rec = hit_triangle_soup(
            ray_origin, ray_direction, start, object_prim_count[object_id], min_t
        )

    return rec


@ti.func
def first_hit(
    ray_origin: vec3,
    ray_direction: vec3,
    min_t: REAL,
) -> SceneHitRecord:
    """Find the nearest object hit by a ray.

    Scans the object table in id order. An object replaces the current best
    hit only when its t is strictly smaller, so among objects hit at the same
    t the one with the lowest id wins.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        min_t: Hits closer than min_t + EPSILON are ignored.

    Returns:
        A SceneHitRecord for the nearest hit, or a miss record.
    """
    closest_t = tm.inf
    result = _make_miss_record()

    for i in range(num_objects[None]):
        rec = intersect_object(i, ray_origin, ray_direction, min_t)
        if rec.hit == 1 and rec.t < closest_t:
            closest_t = rec.t
            result = SceneHitRecord(
                hit=1,
                object_id=i,
                t=rec.t,
                normal=rec.normal,
                material_id=object_material_ids[i],
            )

    return result
