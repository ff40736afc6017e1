"""Pinhole camera model for perspective projection ray generation.

The camera is an eye point e with a right-handed orthonormal frame (u, v, w)
in which -w is the viewing direction. The image plane sits at distance d
(focal_length) in front of the eye and spans width x height scene units.

Pixel (i, j), with row i counted from the top and column j from the left,
maps to the image plane point

    sx = ((j + 0.5) / nx - 0.5) * width
    sy = -((i + 0.5) / ny - 0.5) * height
    s  = e - d w + sx u + sy v

and the viewing ray goes from e through s. Ray directions are normalized so
the ray parameter t measures distance from the eye.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from lensray.camera.pinhole import Camera, setup_camera, get_viewing_ray
    >>>
    >>> camera = Camera.look_at(
    ...     eye=(0.0, 0.0, 3.0),
    ...     look=(0.0, 0.0, -1.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     focal_length=1.0,
    ...     width=1.6,
    ...     height=0.9,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_viewing_ray(0, 0, 640, 360)  # Ray through top-left pixel
"""

from dataclasses import dataclass, replace

import numpy as np
import taichi as ti
import taichi.math as tm

from lensray.core.ray import REAL, Ray, make_ray, vec3

Vector3 = tuple[float, float, float]

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """A perspective camera with an optional thin lens.

    Attributes:
        eye: Camera position in world space.
        u: Right direction of the camera frame (unit length).
        v: Up direction of the camera frame (unit length).
        w: Backward direction of the camera frame (unit length). The camera
            looks along -w.
        focal_length: Distance d from the eye to the image plane.
        width: Width of the image plane in scene units.
        height: Height of the image plane in scene units.
        aperture: Lens radius. 0 (or less) is a pinhole camera.
        focal_distance: Distance along -w of the plane in perfect focus.
    """

    eye: Vector3
    u: Vector3
    v: Vector3
    w: Vector3
    focal_length: float
    width: float
    height: float
    aperture: float = 0.0
    focal_distance: float = 1.0

    @classmethod
    def look_at(
        cls,
        eye: Vector3,
        look: Vector3,
        up: Vector3,
        focal_length: float,
        width: float,
        height: float,
        aperture: float = 0.0,
        focal_distance: float = 1.0,
    ) -> "Camera":
        """Build a camera from a viewing direction and an up vector.

        Args:
            eye: Camera position.
            look: Viewing direction (need not be normalized).
            up: Approximate up direction, must not be parallel to look.
            focal_length: Distance to the image plane, positive.
            width: Image plane width, positive.
            height: Image plane height, positive.
            aperture: Lens radius (0 for a pinhole camera).
            focal_distance: Distance of the plane in focus.

        Returns:
            The camera.

        Raises:
            ValueError: If look is zero, up is parallel to look, or an image
                plane dimension is not positive.
        """
        look_vec = np.asarray(look, dtype=np.float64)
        up_vec = np.asarray(up, dtype=np.float64)

        look_norm = np.linalg.norm(look_vec)
        if look_norm == 0.0:
            raise ValueError("Camera look direction must be non-zero")
        w = -look_vec / look_norm

        u = np.cross(up_vec, w)
        u_norm = np.linalg.norm(u)
        if u_norm < 1e-12:
            raise ValueError("Camera up vector must not be parallel to the look direction")
        u = u / u_norm
        v = np.cross(w, u)

        camera = cls(
            eye=tuple(float(x) for x in eye),
            u=tuple(u.tolist()),
            v=tuple(v.tolist()),
            w=tuple(w.tolist()),
            focal_length=float(focal_length),
            width=float(width),
            height=float(height),
            aperture=float(aperture),
            focal_distance=float(focal_distance),
        )
        camera.validate()
        return camera

    def validate(self) -> None:
        """Check the image plane parameters.

        Raises:
            ValueError: If focal_length, width or height is not positive.
        """
        for name in ("focal_length", "width", "height"):
            value = getattr(self, name)
            if not value > 0.0:
                raise ValueError(f"Camera {name} must be positive, got {value}")

    def with_lens(self, aperture: float, focal_distance: float) -> "Camera":
        """Return a copy of the camera with new lens settings."""
        return replace(self, aperture=float(aperture), focal_distance=float(focal_distance))

    def to_dict(self) -> dict:
        return {
            "eye": list(self.eye),
            "look": [-x for x in self.w],
            "up": list(self.v),
            "focal_length": self.focal_length,
            "width": self.width,
            "height": self.height,
            "aperture": self.aperture,
            "focal_distance": self.focal_distance,
        }


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_eye = ti.Vector.field(3, dtype=REAL, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=REAL, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=REAL, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=REAL, shape=())  # Backward (opposite view)

# Image plane
_camera_focal_length = ti.field(dtype=REAL, shape=())
_camera_width = ti.field(dtype=REAL, shape=())
_camera_height = ti.field(dtype=REAL, shape=())

# Thin lens
_camera_aperture = ti.field(dtype=REAL, shape=())
_camera_focal_distance = ti.field(dtype=REAL, shape=())


# =============================================================================
# Camera Setup (Python-side, called between render passes)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Upload camera state to the Taichi fields.

    Must be called before rendering and may only be called between passes.

    Args:
        camera: Camera configuration.
    """
    camera.validate()
    _camera_eye[None] = list(camera.eye)
    _camera_u[None] = list(camera.u)
    _camera_v[None] = list(camera.v)
    _camera_w[None] = list(camera.w)
    _camera_focal_length[None] = camera.focal_length
    _camera_width[None] = camera.width
    _camera_height[None] = camera.height
    _camera_aperture[None] = camera.aperture
    _camera_focal_distance[None] = camera.focal_distance


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def pixel_direction(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    """Compute the unit direction from the eye through the center of pixel (i, j).

    Args:
        i: Pixel row (0 = top).
        j: Pixel column (0 = left).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The normalized pinhole viewing direction.
    """
    sx = ((ti.cast(j, REAL) + 0.5) / ti.cast(width, REAL) - 0.5) * _camera_width[None]
    sy = -((ti.cast(i, REAL) + 0.5) / ti.cast(height, REAL) - 0.5) * _camera_height[None]

    offset = (
        -_camera_focal_length[None] * _camera_w[None]
        + sx * _camera_u[None]
        + sy * _camera_v[None]
    )
    return tm.normalize(offset)


@ti.func
def get_viewing_ray(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the pinhole viewing ray through the center of pixel (i, j).

    Args:
        i: Pixel row (0 = top).
        j: Pixel column (0 = left).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray from the eye with unit direction.
    """
    return make_ray(_camera_eye[None], pixel_direction(i, j, width, height))


@ti.func
def get_camera_eye() -> vec3:
    """Get the camera position in world space."""
    return _camera_eye[None]


@ti.func
def get_camera_basis():
    """Get the camera's orthonormal basis vectors.

    Returns:
        A tuple (u, v, w) of right, up and backward directions.
    """
    return _camera_u[None], _camera_v[None], _camera_w[None]


@ti.func
def get_camera_lens():
    """Get the thin lens parameters as a tuple (aperture, focal_distance)."""
    return _camera_aperture[None], _camera_focal_distance[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with eye, u, v, w, focal_length, width, height, aperture
        and focal_distance as stored in the Taichi fields.
    """

    def _vec(field) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "eye": _vec(_camera_eye),
        "u": _vec(_camera_u),
        "v": _vec(_camera_v),
        "w": _vec(_camera_w),
        "focal_length": float(_camera_focal_length[None]),
        "width": float(_camera_width[None]),
        "height": float(_camera_height[None]),
        "aperture": float(_camera_aperture[None]),
        "focal_distance": float(_camera_focal_distance[None]),
    }
