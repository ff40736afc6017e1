"""Ray data structure and vector utilities for Whitted-style ray tracing.

This module provides the fundamental Ray dataclass and the vector helpers
shared by the geometry, camera and shading code. All functions are Taichi
functions and must be called from inside a kernel.

Every Taichi value in lensray is double precision (``REAL``): the intersection
code biases acceptance by ``1e-9``, which is below single precision resolution
at ordinary scene scales.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> origin = vec3(0.0, 0.0, 0.0)
    >>> direction = vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Scalar type used for every field and vector in the renderer
REAL = ti.f64

# Vector types built on REAL
vec3 = ti.types.vector(3, REAL)
vec2 = ti.types.vector(2, REAL)

# Bias shared by all primitives: a hit must satisfy t >= min_t + EPSILON
EPSILON = 1e-9


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). The primitives do
            not require unit length (the magnitude scales the parametric t),
            but every ray produced by the cameras is normalized so that t is
            a Euclidean distance.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: REAL) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> REAL:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector. Must not be zero length.

    Returns:
        A unit vector in the same direction as v.
    """
    return tm.normalize(v)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes ``d - 2 (d . n) n`` with ``n`` normalized first, so callers may
    pass normals of any positive length. The reflected vector has the same
    length as the incident one.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal.

    Returns:
        The mirror-reflected direction vector.
    """
    n = tm.normalize(normal)
    return incident - 2.0 * tm.dot(incident, n) * n


@ti.func
def max_component(v: vec3) -> REAL:
    """Return the largest of the three components of v."""
    return ti.max(v.x, ti.max(v.y, v.z))
