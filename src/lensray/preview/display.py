"""Matplotlib-based preview display for rendered images.

Features:
    - Preview window with sample count and lens settings in the title
    - Optional gamma encoding for display
    - Side-by-side comparison with an amplified difference view

Example:
    >>> from lensray.preview.display import show_preview
    >>> from lensray.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(640, 360, camera)
    >>> renderer.render(8)
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from lensray.preview.export import compute_rmse

if TYPE_CHECKING:
    from lensray.core.progressive import ProgressiveRenderer


def apply_gamma(
    image: npt.NDArray[np.floating],
    gamma: float = 1.0,
) -> npt.NDArray[np.float64]:
    """Apply gamma encoding for display.

    Args:
        image: Image array of shape (H, W, 3); clamped to [0, 1] first.
        gamma: Gamma value. 1.0 (the default) leaves values unchanged, since
            the renderer's colors are already display values.

    Returns:
        The encoded image in [0, 1].
    """
    result = np.clip(np.asarray(image, dtype=np.float64), 0.0, 1.0)
    if gamma != 1.0:
        result = np.power(result, 1.0 / gamma)
    return result


def show_preview(
    renderer: ProgressiveRenderer,
    *,
    gamma: float = 1.0,
    post_process: bool = True,
    title: str | None = None,
    figsize: tuple[float, float] = (10, 6),
    block: bool = True,
) -> None:
    """Display the current render as a Matplotlib figure.

    Args:
        renderer: The ProgressiveRenderer instance to display.
        gamma: Gamma encoding applied for display.
        post_process: Apply the film filters enabled in the renderer's params.
        title: Custom title (default shows sample count and lens settings).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = apply_gamma(renderer.get_image_numpy(post_process=post_process), gamma)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        params = renderer.params
        title = f"Render Preview - {renderer.sample_count} SPP"
        if params.aperture > 0.0:
            title += f" (aperture {params.aperture:.2f}, focus {params.focal_distance:.2f})"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)


def show_comparison(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
    *,
    labels: tuple[str, str] = ("A", "B"),
    diff_scale: float = 10.0,
    figsize: tuple[float, float] = (16, 6),
    block: bool = True,
) -> float:
    """Display two images side by side with their amplified difference.

    Args:
        image_a: First image array (H, W, 3).
        image_b: Second image array (H, W, 3).
        labels: Labels for the two images.
        diff_scale: Scale factor for difference amplification.
        figsize: Figure size in inches.
        block: Whether to block execution until figure is closed.

    Returns:
        RMSE between the two (clamped) images.
    """
    import matplotlib.pyplot as plt

    display_a = apply_gamma(image_a)
    display_b = apply_gamma(image_b)
    rmse = compute_rmse(display_a, display_b)

    diff_amplified = np.clip(np.abs(display_a - display_b) * diff_scale, 0.0, 1.0)

    fig, axes = plt.subplots(1, 3, figsize=figsize)

    axes[0].imshow(display_a)
    axes[0].set_title(labels[0])
    axes[0].axis("off")

    axes[1].imshow(display_b)
    axes[1].set_title(labels[1])
    axes[1].axis("off")

    axes[2].imshow(diff_amplified)
    axes[2].set_title(f"Difference ({diff_scale}x) - RMSE: {rmse:.6f}")
    axes[2].axis("off")

    plt.tight_layout()
    plt.show(block=block)

    return rmse
