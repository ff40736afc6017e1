#!/usr/bin/env python3
"""Interactive depth-of-field preview of a JSON scene.

This script opens a preview window that re-renders the scene progressively
while the lens and film settings are adjusted.

Usage:
    python -m examples.interactive_scene [scene]

Controls:
    - Up / Down: aperture +/- 0.02
    - Right / Left: focal distance +/- 0.2
    - W / Q: double / halve the samples per pixel
    - C, V, G: toggle color grading, vignette, film grain
    - R: re-render
    - Escape: quit
    - Export PNG button: save the current render with a timestamp

Lens changes restart accumulation; filter toggles are applied to the
accumulated image immediately.
"""

from __future__ import annotations

import argparse
import logging
import platform
import sys

import taichi as ti


def initialize_taichi() -> str:
    """Initialize Taichi in double precision with the best available backend.

    Metal has no 64-bit floats, so macOS renders on the CPU.

    Returns:
        Name of the backend being used.
    """
    if platform.system() == "Darwin":
        ti.init(arch=ti.cpu, default_fp=ti.f64)
        return "CPU"

    try:
        ti.init(arch=ti.gpu, default_fp=ti.f64)
        return "GPU"
    except Exception:
        pass

    ti.init(arch=ti.cpu, default_fp=ti.f64)
    return "CPU"


def main() -> int:
    """Main entry point for the interactive preview.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parser = argparse.ArgumentParser(description="Interactive depth-of-field preview.")
    parser.add_argument(
        "scene",
        nargs="?",
        default="data/bokeh-spheres.json",
        help="Scene file (default: data/bokeh-spheres.json)",
    )
    parser.add_argument("--width", type=int, default=640, help="Window width (default: 640)")
    parser.add_argument("--height", type=int, default=360, help="Window height (default: 360)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Initialize Taichi first (before importing modules that allocate fields)
    backend = initialize_taichi()
    print(f"Taichi backend: {backend}")

    # Import after Taichi initialization
    from lensray.core.params import RenderParams
    from lensray.preview.interactive import InteractivePreview
    from lensray.scene.loader import load_scene

    if not InteractivePreview.is_display_available():
        print("Error: No display available. Cannot run interactive preview.")
        print("This script requires a graphical display environment.")
        return 1

    try:
        _scene, camera = load_scene(args.scene)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    params = RenderParams.interactive_defaults()
    if camera.aperture > 0.0:
        params = params.with_changes(
            aperture=camera.aperture, focal_distance=camera.focal_distance
        )

    print(f"Creating interactive preview window ({args.width}x{args.height})...")
    preview = InteractivePreview(args.width, args.height, camera, params)

    print("Starting interactive rendering...")
    print("  - Arrow keys adjust aperture and focal distance")
    print("  - Click 'Export PNG' to save current render")
    print("  - Close window or press Escape to exit")
    print()

    try:
        preview.run()
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        preview.close()
        print("Preview window closed.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
