"""Progressive renderer for iterative sample accumulation.

This module wraps the integrator's global buffers in a small object that:
- Accumulates samples over several calls (progressive refinement)
- Applies per-frame RenderParams between passes
- Reports progress through callbacks or a generator
- Produces post-processed, 8-bit or saved images

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from lensray.core.progressive import ProgressiveRenderer
    >>> from lensray.scene.loader import load_scene
    >>>
    >>> scene, camera = load_scene("data/sphere-and-plane.json")
    >>> renderer = ProgressiveRenderer(640, 360, camera)
    >>> renderer.render(8)
    >>> image = renderer.get_image_numpy()
"""

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from lensray.camera.pinhole import Camera, setup_camera
from lensray.core.integrator import (
    clear_render_target,
    get_raw_image_numpy,
    get_total_samples,
    render_image,
    set_max_depth,
    set_primary_min_t,
    set_seed,
    setup_render_target,
)
from lensray.core.params import RenderParams
from lensray.preview.export import image_to_uint8, save_image
from lensray.preview.postprocess import apply_post_processing

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps the current camera and RenderParams and delegates the
    actual work to the integrator's global buffers (Taichi fields), so only
    one renderer should be active at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        params: The RenderParams of the current frame.
    """

    def __init__(
        self,
        width: int,
        height: int,
        camera: Camera | None = None,
        params: RenderParams | None = None,
    ) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            camera: Camera to render from. When given, its aperture and focal
                distance are the lens defaults unless params overrides them.
                When omitted the camera already uploaded with setup_camera()
                is used and lens params are not applied.
            params: Initial frame parameters.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        self._width = width
        self._height = height
        self._camera = camera
        if params is None:
            params = RenderParams()
            if camera is not None:
                params = params.with_changes(
                    aperture=max(camera.aperture, 0.0),
                    focal_distance=camera.focal_distance,
                )
        self._params = params
        setup_render_target(width, height)
        self._upload(params)
        logger.debug("Created %r", self)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def params(self) -> RenderParams:
        """Get the parameters of the current frame."""
        return self._params

    @property
    def camera(self) -> Camera | None:
        """Get the camera the renderer uploads, if any."""
        return self._camera

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def _upload(self, params: RenderParams) -> None:
        if self._camera is not None:
            setup_camera(self._camera.with_lens(params.aperture, params.focal_distance))
        set_max_depth(params.max_depth)
        set_primary_min_t(params.min_t)
        set_seed(params.seed)

    def apply_params(self, params: RenderParams) -> bool:
        """Switch to new frame parameters.

        Must be called between passes. Changes to the lens, depth or seed
        restart accumulation; sample count and filter changes keep the
        accumulated image.

        Args:
            params: The new parameters.

        Returns:
            True if the accumulated image was discarded.
        """
        restart = self._params.lens_changed(params)
        self._params = params
        if restart:
            self._upload(params)
            self.reset()
            logger.info(
                "Render parameters changed: aperture=%.3f focal_distance=%.3f max_depth=%d",
                params.aperture,
                params.focal_distance,
                params.max_depth,
            )
        return restart

    def set_camera(self, camera: Camera) -> None:
        """Replace the camera and restart accumulation."""
        self._camera = camera
        self._upload(self._params)
        self.reset()

    def reset(self) -> None:
        """Reset the accumulator for a new render.

        Clears the color buffer and sample count, allowing a fresh render
        without changing the image dimensions.
        """
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Args:
            width: New image width in pixels.
            height: New image height in pixels.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        self._width = width
        self._height = height
        setup_render_target(width, height)

    def render(
        self,
        num_samples: int | None = None,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Number of samples to add. Defaults to
                params.samples_per_pixel.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int | None = None,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Number of samples to add. Defaults to
                params.samples_per_pixel.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_samples is None:
            num_samples = self._params.samples_per_pixel
        if num_samples <= 0:
            return

        start_samples = self.sample_count
        target_samples = start_samples + num_samples
        logger.debug("Rendering %d samples (%d -> %d)", num_samples, start_samples, target_samples)

        remaining = num_samples
        while remaining > 0:
            batch = min(max(batch_size, 1), remaining)
            render_image(batch)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def render_frame(self) -> npt.NDArray[np.float64]:
        """Render a fresh frame of params.samples_per_pixel samples.

        Returns:
            The post-processed image, see get_image_numpy().
        """
        self.reset()
        self.render()
        return self.get_image_numpy()

    def get_raw_image_numpy(self) -> npt.NDArray[np.float64]:
        """Get the averaged, unclamped image of shape (height, width, 3)."""
        return get_raw_image_numpy()

    def get_image_numpy(self, post_process: bool = True) -> npt.NDArray[np.float64]:
        """Get the rendered image as a NumPy array.

        Args:
            post_process: Apply the film filters enabled in params.

        Returns:
            NumPy array of shape (height, width, 3) with values in [0, 1].
        """
        image = get_raw_image_numpy()
        if post_process:
            image = apply_post_processing(image, self._params)
        return np.clip(image, 0.0, 1.0)

    def get_image_uint8(self, post_process: bool = True) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit NumPy array of shape (height, width, 3)."""
        return image_to_uint8(self.get_image_numpy(post_process=post_process))

    def save_image(self, filepath: str | Path, post_process: bool = True) -> None:
        """Save the rendered image to a PNG or PPM file.

        Args:
            filepath: Output path; the extension selects the format.
            post_process: Apply the film filters enabled in params.
        """
        save_image(filepath, self.get_image_uint8(post_process=post_process))

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
