"""Preview module for post-processing, output and visualization.

Components:
    postprocess: Film filters (warm grading, vignetting, film grain)
    export: PNG/PPM image export via Pillow
    display: Matplotlib-based preview display
    interactive: Taichi GGUI-based interactive preview window

Example:
    >>> from lensray.preview import show_preview, save_png_from_array
    >>> from lensray.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(640, 360, camera)
    >>> renderer.render(8)
    >>> show_preview(renderer)
    >>> save_png_from_array(renderer.get_image_numpy(), "output.png")
"""

from lensray.preview.display import apply_gamma, show_comparison, show_preview
from lensray.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_image,
    save_png,
    save_png_from_array,
    save_ppm,
)
from lensray.preview.interactive import InteractivePreview, params_for_key
from lensray.preview.postprocess import (
    apply_film_grain,
    apply_post_processing,
    apply_vignetting,
    apply_warm_grading,
)

__all__ = [
    # Interactive preview
    "InteractivePreview",
    "params_for_key",
    # Display functions
    "show_preview",
    "show_comparison",
    "apply_gamma",
    # Film filters
    "apply_warm_grading",
    "apply_vignetting",
    "apply_film_grain",
    "apply_post_processing",
    # Export functions
    "save_image",
    "save_png",
    "save_ppm",
    "save_png_from_array",
    "image_to_uint8",
    "compute_rmse",
]
