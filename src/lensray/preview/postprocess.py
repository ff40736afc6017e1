"""Film-style post-processing filters.

Three filters emulate a vintage photograph. They operate on whole images of
shape (H, W, 3), vectorized with NumPy:

    warm grading    per-channel tint (1 + 0.15 s, 1 + 0.05 s, 1 - 0.1 s) and a
                    contrast boost of 1 + 0.1 s around 0.5, then clamped
    vignetting      darkens by smoothstep(0.4, 1.4, r) * strength, where r is
                    the aspect-corrected distance from the image center
    film grain      adds (hash(i, j, channel) - 0.5) * 2 * intensity, then
                    clamped; the hash is deterministic per pixel

apply_post_processing() runs the enabled filters of a RenderParams in the
fixed order grading, vignette, grain.
"""

import numpy as np
import numpy.typing as npt

from lensray.core.params import RenderParams

FloatImage = npt.NDArray[np.float64]


def smoothstep(edge0: float, edge1: float, x: npt.ArrayLike) -> FloatImage:
    """Hermite interpolation between 0 at edge0 and 1 at edge1."""
    t = np.clip((np.asarray(x, dtype=np.float64) - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def pixel_hash(i: npt.ArrayLike, j: npt.ArrayLike, seed: int = 0) -> FloatImage:
    """Deterministic pseudo-random value in [0, 1] for pixel (i, j).

    Integer arithmetic wraps at 32 bits, so the values depend only on the
    pixel coordinates and the seed.

    Args:
        i: Pixel row(s).
        j: Pixel column(s).
        seed: Channel or stream selector.

    Returns:
        Array of values in [0, 1], broadcast over i and j.
    """
    i32 = np.asarray(i, dtype=np.int32)
    j32 = np.asarray(j, dtype=np.int32)
    with np.errstate(over="ignore"):
        n = i32 * np.int32(374761393) + j32 * np.int32(668265263) + np.int32(seed)
        n = (n ^ (n >> 13)) * np.int32(1274126177)
        n = n ^ (n >> 16)
    return (n & np.int32(0x7FFFFFFF)).astype(np.float64) / float(0x7FFFFFFF)


def apply_warm_grading(image: npt.ArrayLike, strength: float) -> FloatImage:
    """Apply a warm color grade with a slight contrast boost.

    Args:
        image: Image of shape (H, W, 3).
        strength: Grade strength, 0 leaves colors unchanged (apart from
            clamping to [0, 1]).

    Returns:
        The graded image, clamped to [0, 1].
    """
    img = np.asarray(image, dtype=np.float64)
    tint = np.array([1.0 + strength * 0.15, 1.0 + strength * 0.05, 1.0 - strength * 0.1])
    contrast = 1.0 + strength * 0.1
    graded = (img * tint - 0.5) * contrast + 0.5
    return np.clip(graded, 0.0, 1.0)


def vignette_mask(width: int, height: int, strength: float) -> FloatImage:
    """Compute the per-pixel vignette factor.

    Returns:
        Array of shape (height, width) with factors in [1 - strength, 1].
    """
    rows = np.arange(height, dtype=np.float64)[:, None]
    cols = np.arange(width, dtype=np.float64)[None, :]
    x = (cols / width - 0.5) * 2.0
    y = (rows / height - 0.5) * 2.0
    aspect = width / height
    dist = np.sqrt(x * x * aspect * aspect + y * y)
    return 1.0 - smoothstep(0.4, 1.4, dist) * strength


def apply_vignetting(image: npt.ArrayLike, strength: float) -> FloatImage:
    """Darken the image toward its corners.

    Args:
        image: Image of shape (H, W, 3).
        strength: Darkening at the far corners, in [0, 1].

    Returns:
        The vignetted image (not clamped).
    """
    img = np.asarray(image, dtype=np.float64)
    height, width = img.shape[:2]
    return img * vignette_mask(width, height, strength)[:, :, None]


def apply_film_grain(image: npt.ArrayLike, intensity: float) -> FloatImage:
    """Add deterministic per-pixel, per-channel grain.

    Args:
        image: Image of shape (H, W, 3).
        intensity: Maximum absolute grain offset.

    Returns:
        The grainy image, clamped to [0, 1].
    """
    img = np.asarray(image, dtype=np.float64)
    height, width = img.shape[:2]
    rows = np.arange(height)[:, None]
    cols = np.arange(width)[None, :]
    grain = np.stack(
        [(pixel_hash(rows, cols, channel) - 0.5) * 2.0 * intensity for channel in range(3)],
        axis=-1,
    )
    return np.clip(img + grain, 0.0, 1.0)


def apply_post_processing(image: npt.ArrayLike, params: RenderParams) -> FloatImage:
    """Apply the filters enabled in params (grading, then vignette, then grain)."""
    result = np.asarray(image, dtype=np.float64)
    if params.enable_grading:
        result = apply_warm_grading(result, params.grading_strength)
    if params.enable_vignette:
        result = apply_vignetting(result, params.vignette_strength)
    if params.enable_grain:
        result = apply_film_grain(result, params.grain_intensity)
    return result
