"""Whitted-style ray tracing integrator with mirror reflection.

The color seen along a ray is defined recursively:

    raycolor(ray, depth) = black                                  on a miss
                         = L_local + km * raycolor(mirror, depth + 1)
                                        if depth < max_depth and max(km) > 0
                         = L_local                                otherwise

where L_local is the Blinn-Phong color of the first hit and the mirror ray
starts just above the hit point along the reflected direction. Each level has
exactly one continuation, so the recursion is evaluated as a loop that
carries the product of the km factors seen so far.

The pixel driver renders one sample per pixel per pass and folds it into a
running average. Samples draw their lens coordinates from a stateless hash of
(pixel, sample index, seed), and the sample index keeps counting across
passes, so rendering 4 + 4 samples gives the same image as rendering 8.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from lensray.core.integrator import render_image, setup_render_target
    >>> from lensray.scene.loader import load_scene
    >>> from lensray.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = load_scene("data/sphere-and-plane.json")
    >>> setup_camera(camera)
    >>> setup_render_target(640, 360)
    >>> render_image(num_samples=8)
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from lensray.camera.thin_lens import get_viewing_ray_dof
from lensray.core.params import MAX_DEPTH, MAX_DEPTH_LIMIT
from lensray.core.ray import REAL, max_component, reflect, vec3
from lensray.core.sampling import sample_uniform
from lensray.materials.blinn_phong import blinn_phong_shading, get_material_km
from lensray.scene.intersection import first_hit

# =============================================================================
# Rendering Constants
# =============================================================================

# Offset of mirror ray origins along the normal, also their min_t
REFLECTION_EPSILON = 1e-6

DEFAULT_SEED = 42

# Runtime settings
_max_depth = ti.field(dtype=ti.i32, shape=())
_primary_min_t = ti.field(dtype=REAL, shape=())
_seed = ti.field(dtype=ti.i32, shape=())


def set_max_depth(depth: int) -> None:
    """Set the maximum number of mirror bounces.

    Args:
        depth: Number of bounces, in [0, MAX_DEPTH_LIMIT]. 0 disables
            reflection.

    Raises:
        ValueError: If depth is outside [0, MAX_DEPTH_LIMIT].
    """
    if not 0 <= depth <= MAX_DEPTH_LIMIT:
        raise ValueError(f"max_depth must be in [0, {MAX_DEPTH_LIMIT}], got {depth}")
    _max_depth[None] = depth


def get_max_depth() -> int:
    """Get the maximum number of mirror bounces."""
    return int(_max_depth[None])


def set_primary_min_t(min_t: float) -> None:
    """Set the near clipping distance of camera rays."""
    if min_t < 0.0:
        raise ValueError(f"min_t must be non-negative, got {min_t}")
    _primary_min_t[None] = min_t


def set_seed(seed: int) -> None:
    """Set the seed of the lens sample sequence."""
    _seed[None] = seed


def reset_render_settings() -> None:
    """Restore the default depth, near clip distance and seed."""
    _max_depth[None] = MAX_DEPTH
    _primary_min_t[None] = 0.0
    _seed[None] = DEFAULT_SEED


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running average of the samples, indexed [row, column] with row 0 at the top
_color_buffer = ti.Vector.field(3, dtype=REAL, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Samples per pixel accumulated so far, also the index of the next sample
_total_samples = ti.field(dtype=ti.i32, shape=())

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the accumulated image and restart the sample sequence."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)
    _total_samples[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_total_samples[None])


# =============================================================================
# Ray Tracing Core
# =============================================================================


@ti.func
def raycolor(ray_origin: vec3, ray_direction: vec3, min_t: REAL):
    """Compute the color seen along a ray, including mirror reflections.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        min_t: Hits closer than min_t are ignored for the first segment.

    Returns:
        A tuple (hit, color): hit is 1 if the ray itself hit an object, and
        color is the unclamped RGB color (black on a miss).
    """
    hit_any = 0
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    origin = ray_origin
    direction = ray_direction
    segment_min_t = min_t

    # Active flag instead of break, the loop bound is the static depth limit
    active = 1
    for depth in range(MAX_DEPTH_LIMIT + 1):
        if active == 1:
            rec = first_hit(origin, direction, segment_min_t)
            if rec.hit == 0:
                active = 0
            else:
                if depth == 0:
                    hit_any = 1
                color += throughput * blinn_phong_shading(origin, direction, rec)

                km = get_material_km(rec.material_id)
                if depth < _max_depth[None] and max_component(km) > 0.0:
                    hit_point = origin + rec.t * direction
                    reflected = reflect(direction, rec.normal)
                    # Offset toward the side the mirror ray leaves on, which is
                    # -n for hits on the back of a plane or triangle
                    side = 1.0
                    if tm.dot(reflected, rec.normal) < 0.0:
                        side = -1.0
                    throughput *= km
                    origin = hit_point + REFLECTION_EPSILON * side * rec.normal
                    direction = reflected
                    segment_min_t = REFLECTION_EPSILON
                else:
                    active = 0

    return hit_any, color


@ti.func
def _trace_pixel_sample(
    i: ti.i32,
    j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    seed: ti.i32,
) -> vec3:
    """Trace one camera sample through pixel (i, j)."""
    pixel_index = i * width + j
    lens_u = sample_uniform(pixel_index, sample_index, 0, seed)
    lens_v = sample_uniform(pixel_index, sample_index, 1, seed)
    ray = get_viewing_ray_dof(i, j, width, height, lens_u, lens_v)
    _, color = raycolor(ray.origin, ray.direction, _primary_min_t[None])
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_pass(width: ti.i32, height: ti.i32, sample_index: ti.i32, seed: ti.i32):
    """Render one sample per pixel and fold it into the running average."""
    for i, j in ti.ndrange(height, width):
        color = _trace_pixel_sample(i, j, width, height, sample_index, seed)

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _sample_count[i, j] += 1
        n = _sample_count[i, j]
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, REAL)


@ti.kernel
def _render_single_pixel(
    i: ti.i32,
    j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    seed: ti.i32,
) -> vec3:
    return _trace_pixel_sample(i, j, width, height, sample_index, seed)


# Result slots of trace_ray
_trace_hit = ti.field(dtype=ti.i32, shape=())
_trace_color = ti.Vector.field(3, dtype=REAL, shape=())


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, min_t: REAL):
    hit, color = raycolor(origin, direction, min_t)
    _trace_hit[None] = hit
    _trace_color[None] = color


# =============================================================================
# Public Rendering API
# =============================================================================


def render_image(num_samples: int = 1) -> None:
    """Render num_samples more samples per pixel.

    Can be called repeatedly: each call continues the sample sequence and
    keeps averaging into the same buffer.

    Args:
        num_samples: Number of samples to render per pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    seed = int(_seed[None])
    for _ in range(num_samples):
        sample_index = int(_total_samples[None])
        _render_pass(width, height, sample_index, seed)
        _total_samples[None] = sample_index + 1


def render_sample(i: int, j: int, sample_index: int = 0) -> tuple[float, float, float]:
    """Render a single sample of pixel (i, j) without accumulating it.

    Args:
        i: Pixel row (0 = top).
        j: Pixel column (0 = left).
        sample_index: Which sample of the pixel's sequence to trace.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    color = _render_single_pixel(i, j, width, height, sample_index, int(_seed[None]))
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    min_t: float = 0.0,
) -> tuple[bool, tuple[float, float, float]]:
    """Trace one ray through the current scene.

    Args:
        origin: Ray origin.
        direction: Ray direction.
        min_t: Hits closer than min_t are ignored.

    Returns:
        A tuple (hit, (R, G, B)).
    """
    _trace_single_ray(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        min_t,
    )
    color = _trace_color[None]
    return bool(_trace_hit[None]), (float(color[0]), float(color[1]), float(color[2]))


def get_raw_image_numpy() -> np.ndarray:
    """Get the averaged, unclamped image as a (height, width, 3) float64 array.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return _color_buffer.to_numpy()[:height, :width, :].astype(np.float64)


def get_normalized_image_numpy() -> np.ndarray:
    """Get the rendered image clamped to [0, 1].

    Returns:
        NumPy array of shape (height, width, 3), row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    return np.clip(get_raw_image_numpy(), 0.0, 1.0)


reset_render_settings()
