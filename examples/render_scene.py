#!/usr/bin/env python3
"""Render a JSON scene to image files.

This script loads a scene description, renders it with progressive
refinement through a thin-lens camera and writes the result as PNG and/or
PPM files.

Usage:
    python -m examples.render_scene [scene] [options]

Options:
    --width WIDTH             Image width in pixels (default: 640)
    --height HEIGHT           Image height in pixels (default: 360)
    --samples SAMPLES         Samples per pixel (default: 32)
    --aperture APERTURE       Lens radius, overrides the scene camera
    --focal-distance DIST     Distance of the plane in focus, overrides the scene camera
    --max-depth DEPTH         Maximum number of mirror bounces (default: 9)
    --min-t DIST              Near clipping distance of camera rays (default: 0)
    --no-grading, --no-vignette, --no-grain
                              Disable a film filter (all are on by default)
    --output OUTPUT           Output file(s), .png or .ppm (default: piece.ppm piece.png)
    --batch-size SIZE         Samples per progress update (default: 4)
    --quiet                   Suppress progress output

Example:
    python -m examples.render_scene data/bokeh-spheres.json --samples 64 --no-grain
"""

from __future__ import annotations

import argparse
import logging
import platform
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_scene")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a JSON scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "scene",
        nargs="?",
        default="data/sphere-and-plane.json",
        help="Scene file (default: data/sphere-and-plane.json)",
    )
    parser.add_argument("--width", type=int, default=640, help="Image width in pixels (default: 640)")
    parser.add_argument("--height", type=int, default=360, help="Image height in pixels (default: 360)")
    parser.add_argument("--samples", type=int, default=32, help="Samples per pixel (default: 32)")
    parser.add_argument("--aperture", type=float, default=None, help="Lens radius (default: from scene)")
    parser.add_argument(
        "--focal-distance",
        type=float,
        default=None,
        help="Distance of the plane in focus (default: from scene)",
    )
    parser.add_argument("--max-depth", type=int, default=9, help="Maximum mirror bounces (default: 9)")
    parser.add_argument("--seed", type=int, default=42, help="Lens sampling seed (default: 42)")
    parser.add_argument(
        "--min-t",
        type=float,
        default=0.0,
        help="Near clipping distance of camera rays (default: 0)",
    )
    parser.add_argument(
        "--grading",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Apply warm color grading (default: on)",
    )
    parser.add_argument(
        "--vignette",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Apply vignetting (default: on)",
    )
    parser.add_argument(
        "--grain",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Apply film grain (default: on)",
    )
    parser.add_argument(
        "--output",
        nargs="+",
        default=["piece.ppm", "piece.png"],
        help="Output file(s), .png or .ppm (default: piece.ppm piece.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=4,
        help="Samples per progress update (default: 4)",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def initialize_taichi() -> None:
    """Initialize Taichi in double precision.

    Metal has no 64-bit floats, so macOS renders on the CPU.
    """
    arch = ti.cpu if platform.system() == "Darwin" else ti.gpu
    ti.init(arch=arch, default_fp=ti.f64)


def render_scene(args: argparse.Namespace) -> list[Path]:
    """Render the scene described by args and save the outputs.

    Returns:
        Paths of the written image files.
    """
    # Lazy imports to allow Taichi initialization first
    from lensray.core.params import RenderParams
    from lensray.core.progressive import ProgressiveRenderer
    from lensray.scene.loader import load_scene

    scene, camera = load_scene(args.scene)
    params = RenderParams(
        aperture=camera.aperture if args.aperture is None else args.aperture,
        focal_distance=(
            camera.focal_distance if args.focal_distance is None else args.focal_distance
        ),
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        min_t=args.min_t,
        enable_grading=args.grading,
        enable_vignette=args.vignette,
        enable_grain=args.grain,
        seed=args.seed,
    )
    logger.info(
        "%d objects, %d lights, %dx%d, aperture %.3f, focal distance %.3f",
        scene.get_object_count(),
        scene.get_light_count(),
        args.width,
        args.height,
        params.aperture,
        params.focal_distance,
    )

    renderer = ProgressiveRenderer(args.width, args.height, camera, params)

    if not args.quiet:
        print(f"Rendering {args.samples} samples per pixel...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not args.quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(batch_size=args.batch_size, callback=progress_callback)

    if not args.quiet:
        print()  # Newline after progress

    outputs = []
    for output in args.output:
        output_file = Path(output)
        renderer.save_image(output_file)
        outputs.append(output_file)

    total_time = time.time() - start_time
    if not args.quiet:
        for output_file in outputs:
            print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return outputs


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    initialize_taichi()

    try:
        render_scene(args)
        return 0
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
