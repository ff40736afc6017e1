"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    sampling: Hash-based reproducible sampling and disk mapping
    params: Immutable per-frame render parameters
    integrator: Recursive color integrator and render kernels
    progressive: Multi-pass accumulation driver

All compute-intensive operations use Taichi kernels.
"""

from .params import MAX_DEPTH, MAX_DEPTH_LIMIT, MAX_SAMPLES_PER_PIXEL, RenderParams
from .ray import (
    EPSILON,
    REAL,
    Ray,
    length,
    make_ray,
    max_component,
    normalize,
    ray_at,
    reflect,
    vec2,
    vec3,
)
from .sampling import concentric_disk_sample, sample_uniform

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import them directly, e.g. from lensray.core.progressive import ProgressiveRenderer

__all__ = [
    "REAL",
    "EPSILON",
    "Ray",
    "ray_at",
    "make_ray",
    "vec2",
    "vec3",
    "length",
    "normalize",
    "reflect",
    "max_component",
    "sample_uniform",
    "concentric_disk_sample",
    "RenderParams",
    "MAX_DEPTH",
    "MAX_DEPTH_LIMIT",
    "MAX_SAMPLES_PER_PIXEL",
]
