"""Camera module for primary ray generation.

Components:
    pinhole: Camera description, camera fields and pinhole viewing rays
    thin_lens: Depth-of-field viewing rays through a thin lens

Pixel (i, j) has row i counted from the top and column j from the left.
"""

from .pinhole import (
    Camera,
    get_camera_basis,
    get_camera_eye,
    get_camera_info,
    get_camera_lens,
    get_viewing_ray,
    pixel_direction,
    setup_camera,
)
from .thin_lens import get_viewing_ray_dof

__all__ = [
    "Camera",
    "setup_camera",
    "pixel_direction",
    "get_viewing_ray",
    "get_viewing_ray_dof",
    "get_camera_eye",
    "get_camera_basis",
    "get_camera_lens",
    "get_camera_info",
]
