"""Image export utilities for rendered images.

Rendered colors are quantized with round(255 * clamp(c, 0, 1)) and written
with Pillow.

Supported formats:
    - PNG (8-bit RGB)
    - PPM (binary, 8-bit RGB or single-channel grayscale)

Example:
    >>> from lensray.preview.export import save_png_from_array
    >>> save_png_from_array(renderer.get_image_numpy(), "piece.png")
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

_SUFFIX_FORMATS = {".png": "PNG", ".ppm": "PPM", ".pgm": "PPM"}


def image_to_uint8(image: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Quantize a float image in [0, 1] to 8 bits.

    Args:
        image: Float image of any shape; values outside [0, 1] are clamped.

    Returns:
        Array of the same shape with dtype uint8.
    """
    clamped = np.clip(np.asarray(image, dtype=np.float64), 0.0, 1.0)
    return np.rint(255.0 * clamped).astype(np.uint8)


def _to_pil(data: npt.ArrayLike) -> PILImage.Image:
    """Wrap an 8-bit (H, W, 3) or (H, W) / (H, W, 1) array in a Pillow image."""
    array = np.asarray(data)
    if array.dtype != np.uint8:
        raise ValueError(f"Expected uint8 image data, got {array.dtype}")
    if array.ndim == 3 and array.shape[2] == 1:
        array = array[:, :, 0]
    if array.ndim == 2 or (array.ndim == 3 and array.shape[2] == 3):
        return PILImage.fromarray(np.ascontiguousarray(array))
    raise ValueError(f"Image must have 1 or 3 channels, got shape {array.shape}")


def save_png(filepath: str | Path, data: npt.ArrayLike) -> None:
    """Save 8-bit RGB data of shape (H, W, 3) as a PNG file.

    Raises:
        ValueError: If the data is not 8-bit or has the wrong shape.
    """
    pil_image = _to_pil(data)
    if pil_image.mode != "RGB":
        raise ValueError("PNG output expects RGB data of shape (H, W, 3)")
    pil_image.save(filepath, format="PNG")
    logger.info("Wrote %s (%dx%d)", filepath, pil_image.width, pil_image.height)


def save_ppm(filepath: str | Path, data: npt.ArrayLike) -> None:
    """Save 8-bit data as a binary PPM (RGB) or PGM (single-channel) file.

    Args:
        filepath: Output path.
        data: uint8 array of shape (H, W, 3), (H, W, 1) or (H, W).

    Raises:
        ValueError: If the data is not 8-bit or has an unsupported shape.
    """
    pil_image = _to_pil(data)
    pil_image.save(filepath, format="PPM")
    logger.info("Wrote %s (%dx%d, %s)", filepath, pil_image.width, pil_image.height, pil_image.mode)


def save_png_from_array(image: npt.ArrayLike, filepath: str | Path) -> None:
    """Quantize a float RGB image in [0, 1] and save it as a PNG file."""
    save_png(filepath, image_to_uint8(image))


def save_image(filepath: str | Path, data: npt.ArrayLike) -> None:
    """Save 8-bit image data, choosing the format from the file extension.

    Raises:
        ValueError: If the extension is not .png, .ppm or .pgm.
    """
    suffix = Path(filepath).suffix.lower()
    fmt = _SUFFIX_FORMATS.get(suffix)
    if fmt is None:
        raise ValueError(f"Unsupported image format: {suffix!r} (use .png or .ppm)")
    if fmt == "PNG":
        save_png(filepath, data)
    else:
        save_ppm(filepath, data)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
