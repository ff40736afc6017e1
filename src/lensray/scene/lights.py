"""Light sources: directional and point lights.

Each light has an RGB intensity I and answers one query: for a shading point
q, the unit direction toward the light and the ray parameter max_t up to which
an occluder blocks it.

    directional: direction = -normalize(d),        max_t = inf
    point:       direction = normalize(p - q),     max_t = |p - q|

Lights are stored in a light table (type, vector, intensity) where the vector
is the propagation direction of a directional light or the position of a
point light.
"""

from enum import IntEnum

import numpy as np
import taichi as ti
import taichi.math as tm

from lensray.core.ray import EPSILON, REAL, vec3


class LightType(IntEnum):
    """Kinds of light sources stored in the light table."""

    DIRECTIONAL = 0
    POINT = 1


_DIRECTIONAL = int(LightType.DIRECTIONAL)

# Maximum number of lights in the scene
MAX_LIGHTS = 64

light_types = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
light_vectors = ti.Vector.field(3, dtype=REAL, shape=MAX_LIGHTS)
light_intensities = ti.Vector.field(3, dtype=REAL, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights from the scene."""
    num_lights[None] = 0


def _add_light(light_type: LightType, vector, color) -> int:
    intensity = np.asarray(color, dtype=np.float64)
    if intensity.shape != (3,) or not np.all(np.isfinite(intensity)):
        raise ValueError(f"Light color must be 3 finite components, got {color!r}")
    if np.any(intensity < 0.0):
        raise ValueError(f"Light color must be non-negative, got {color!r}")

    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_types[idx] = int(light_type)
    light_vectors[idx] = [float(x) for x in vector]
    light_intensities[idx] = intensity.tolist()
    num_lights[None] = idx + 1
    return idx


def add_directional_light(direction, color) -> int:
    """Add a directional light.

    Args:
        direction: The direction the light travels in (from the light toward
            the scene). Any positive length.
        color: RGB intensity, non-negative.

    Returns:
        The index of the added light.

    Raises:
        ValueError: If the direction has zero length or the color is invalid.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    d = np.asarray(direction, dtype=np.float64)
    if d.shape != (3,) or not np.all(np.isfinite(d)):
        raise ValueError(f"Light direction must be 3 finite components, got {direction!r}")
    if np.linalg.norm(d) < EPSILON:
        raise ValueError(f"Light direction must be non-zero, got {direction!r}")
    return _add_light(LightType.DIRECTIONAL, d, color)


def add_point_light(position, color) -> int:
    """Add a point light.

    Args:
        position: The light position as (x, y, z).
        color: RGB intensity, non-negative.

    Returns:
        The index of the added light.

    Raises:
        ValueError: If the position or color is invalid.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    p = np.asarray(position, dtype=np.float64)
    if p.shape != (3,) or not np.all(np.isfinite(p)):
        raise ValueError(f"Light position must be 3 finite components, got {position!r}")
    return _add_light(LightType.POINT, p, color)


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


@ti.func
def get_light_intensity(light_id: ti.i32) -> vec3:
    """Get the RGB intensity of a light."""
    return light_intensities[light_id]


@ti.func
def light_direction(light_id: ti.i32, q: vec3):
    """Compute the direction from a point toward a light.

    Args:
        light_id: Index into the light table.
        q: The point being lit.

    Returns:
        A tuple (direction, max_t): the unit direction from q toward the light
        and the distance up to which an occluder blocks the light (infinite
        for directional lights). A point light located exactly at q yields a
        zero direction, which never passes the n . l > 0 test.
    """
    direction = vec3(0.0, 0.0, 0.0)
    max_t = tm.inf

    if light_types[light_id] == _DIRECTIONAL:
        direction = -tm.normalize(light_vectors[light_id])
    else:
        to_light = light_vectors[light_id] - q
        max_t = tm.length(to_light)
        if max_t > 0.0:
            direction = to_light / max_t

    return direction, max_t
