"""Interactive preview window using Taichi GGUI.

The window shows a progressively refined render and lets the user change the
lens and film settings while it runs:

    Up / Down      aperture +/- 0.02
    Right / Left   focal distance +/- 0.2 (minimum 0.1)
    W / Q          double / halve the samples per pixel (1 to 128)
    C, V, G        toggle color grading, vignette, film grain
    R              re-render
    Escape         quit

The same settings are exposed as sliders and checkboxes in a GUI panel. Every
change produces a new RenderParams; the renderer picks it up between passes.

Example:
    >>> from lensray.preview.interactive import InteractivePreview
    >>> from lensray.scene.loader import load_scene
    >>>
    >>> scene, camera = load_scene("data/bokeh-spheres.json")
    >>> preview = InteractivePreview(640, 360, camera)
    >>> preview.run()  # Renders until the window is closed
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from lensray.core.params import MAX_SAMPLES_PER_PIXEL, MIN_FOCAL_DISTANCE, RenderParams

if TYPE_CHECKING:
    import numpy.typing as npt

    from lensray.camera.pinhole import Camera
    from lensray.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)

APERTURE_STEP = 0.02
FOCAL_DISTANCE_STEP = 0.2
MAX_APERTURE = 1.0
MAX_FOCAL_DISTANCE = 20.0


def slider_value(current: float, value: float) -> float:
    """Keep current unless the user moved the slider.

    GGUI sliders hand back float32 values, so a value set from the keyboard
    comes back rounded even when the slider was not touched.
    """
    if np.float32(value) == np.float32(current):
        return current
    return value


def params_for_key(params: RenderParams, key: str) -> RenderParams | None:
    """Map a key press to updated render parameters.

    Args:
        params: The current parameters.
        key: A GGUI key name (e.g. ti.ui.UP or "g").

    Returns:
        The new parameters, or None if the key is not bound.
    """
    key = key.lower()
    if key == ti.ui.UP.lower():
        return params.with_changes(aperture=params.aperture + APERTURE_STEP)
    if key == ti.ui.DOWN.lower():
        return params.with_changes(aperture=max(0.0, params.aperture - APERTURE_STEP))
    if key == ti.ui.RIGHT.lower():
        return params.with_changes(focal_distance=params.focal_distance + FOCAL_DISTANCE_STEP)
    if key == ti.ui.LEFT.lower():
        return params.with_changes(
            focal_distance=max(MIN_FOCAL_DISTANCE, params.focal_distance - FOCAL_DISTANCE_STEP)
        )
    if key == "g":
        return params.with_changes(enable_grain=not params.enable_grain)
    if key == "v":
        return params.with_changes(enable_vignette=not params.enable_vignette)
    if key == "c":
        return params.with_changes(enable_grading=not params.enable_grading)
    if key == "q":
        return params.with_changes(samples_per_pixel=max(1, params.samples_per_pixel // 2))
    if key == "w":
        return params.with_changes(
            samples_per_pixel=min(MAX_SAMPLES_PER_PIXEL, params.samples_per_pixel * 2)
        )
    return None


class InteractivePreview:
    """Interactive preview window using Taichi GGUI.

    The window and its canvas are created lazily on first use, so the object
    can be constructed in headless environments.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        display_image: Taichi field storing the display image (RGB float).
    """

    def __init__(
        self,
        width: int,
        height: int,
        camera: Camera,
        params: RenderParams | None = None,
        *,
        title: str = "lensray - Interactive Preview",
    ) -> None:
        """Initialize the interactive preview.

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            camera: The camera to render from.
            params: Initial parameters (interactive defaults if omitted).
            title: Window title.
        """
        self.width = width
        self.height = height
        self._title = title
        self._camera = camera
        self._pending_params = params if params is not None else RenderParams.interactive_defaults()
        self._renderer: ProgressiveRenderer | None = None

        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None

        # Shape is (width, height): GGUI canvases index (x, y) from bottom-left
        self.display_image: ti.MatrixField = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))

    def _initialize_window(self) -> None:
        if self._window is not None:
            return
        self._window = ti.ui.Window(name=self._title, res=(self.width, self.height), vsync=True)
        self._canvas = self._window.get_canvas()

    @property
    def window(self) -> ti.ui.Window:
        """Get the Taichi GGUI window, initializing if needed."""
        self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        """Get the canvas for rendering."""
        self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    @property
    def params(self) -> RenderParams:
        """Get the parameters that the next frame will use."""
        return self._pending_params

    def set_params(self, params: RenderParams) -> None:
        """Queue new parameters; they are applied before the next pass."""
        self._pending_params = params

    def get_renderer(self) -> ProgressiveRenderer:
        """Get the progressive renderer, creating it on first use."""
        if self._renderer is None:
            from lensray.core.progressive import ProgressiveRenderer

            self._renderer = ProgressiveRenderer(
                self.width, self.height, self._camera, self._pending_params
            )
        return self._renderer

    def update_image(self, image: npt.NDArray[np.floating]) -> None:
        """Update the display image from a numpy array.

        Args:
            image: Array of shape (height, width, 3) with values in [0, 1],
                row 0 at the top.

        Raises:
            ValueError: If image shape doesn't match (height, width, 3).
        """
        expected_shape = (self.height, self.width, 3)
        if image.shape != expected_shape:
            raise ValueError(f"Image shape {image.shape} doesn't match expected {expected_shape}")

        # (row, column) from the top to (x, y) from the bottom
        image_xy = np.ascontiguousarray(np.transpose(np.flipud(image), (1, 0, 2)))
        self.display_image.from_numpy(image_xy.astype(np.float32))

    def step(self) -> bool:
        """Apply pending parameters and render one more sample if needed.

        Returns:
            True if the displayed image needs refreshing.
        """
        renderer = self.get_renderer()
        changed = False
        if self._pending_params != renderer.params:
            renderer.apply_params(self._pending_params)
            changed = True
        if renderer.sample_count < renderer.params.samples_per_pixel:
            renderer.render(num_samples=1)
            changed = True
        return changed

    def is_running(self) -> bool:
        """Check if the window is still open."""
        return self.window.running

    def show_frame(self) -> None:
        """Present the current display image."""
        self.canvas.set_image(self.display_image)
        self.window.show()

    def run(self) -> None:
        """Run the interactive loop until the window is closed."""
        self._initialize_window()
        renderer = self.get_renderer()

        while self.is_running():
            self._handle_events()
            if self.step():
                self.update_image(renderer.get_image_numpy())
            self._draw_gui_panel()
            self.show_frame()

    def _handle_events(self) -> None:
        for event in self.window.get_events(ti.ui.PRESS):
            if event.key == ti.ui.ESCAPE:
                self.close()
            elif event.key.lower() == "r":
                self.get_renderer().reset()
            else:
                updated = params_for_key(self._pending_params, event.key)
                if updated is not None:
                    self._pending_params = updated
                    logger.info("%s", updated)

    def _draw_gui_panel(self) -> None:
        params = self._pending_params
        renderer = self.get_renderer()

        with self.window.GUI.sub_window("Lens", 0.02, 0.02, 0.3, 0.2) as gui:
            gui.text(f"{renderer.sample_count}/{params.samples_per_pixel} SPP")
            aperture = gui.slider_float("Aperture", params.aperture, minimum=0.0, maximum=MAX_APERTURE)
            focal = gui.slider_float(
                "Focal distance",
                params.focal_distance,
                minimum=MIN_FOCAL_DISTANCE,
                maximum=MAX_FOCAL_DISTANCE,
            )
            samples = gui.slider_int(
                "Samples", params.samples_per_pixel, minimum=1, maximum=MAX_SAMPLES_PER_PIXEL
            )

        with self.window.GUI.sub_window("Film", 0.02, 0.24, 0.3, 0.16) as gui:
            grading = gui.checkbox("Color grading", params.enable_grading)
            vignette = gui.checkbox("Vignette", params.enable_vignette)
            grain = gui.checkbox("Film grain", params.enable_grain)
            if gui.button("Export PNG"):
                self._export_png()

        updated = params.with_changes(
            aperture=max(0.0, slider_value(params.aperture, aperture)),
            focal_distance=max(MIN_FOCAL_DISTANCE, slider_value(params.focal_distance, focal)),
            samples_per_pixel=max(1, samples),
            enable_grading=grading,
            enable_vignette=vignette,
            enable_grain=grain,
        )
        if updated != params:
            self._pending_params = updated

    def _export_png(self) -> None:
        """Export the current image to a timestamped PNG file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"lensray_{timestamp}.png"
        renderer = self.get_renderer()
        renderer.save_image(filename)
        print(f"Exported: {filename} ({renderer.sample_count} SPP)")

    def close(self) -> None:
        """Close the preview window."""
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Check if a display is available for GUI rendering."""
        if os.name == "nt":
            return True
        if os.uname().sysname == "Darwin":
            return not (os.environ.get("SSH_CONNECTION") and not os.environ.get("DISPLAY"))
        return bool(os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY"))
