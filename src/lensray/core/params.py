"""Per-frame render parameters.

A RenderParams value describes everything a frame needs besides the scene:
lens settings, sample count, reflection depth and which film filters to run.
It is immutable; interactive front ends build a new instance for every change
and hand it to the renderer, which applies it between passes.

Example:
    >>> params = RenderParams(aperture=0.12, focal_distance=3.3)
    >>> params = params.with_changes(samples_per_pixel=16)
"""

from dataclasses import asdict, dataclass, replace
from typing import Any

# Upper bound for mirror recursion (static unroll bound of the integrator)
MAX_DEPTH_LIMIT = 64

# Default mirror recursion depth
MAX_DEPTH = 9

# Bounds used by interactive front ends
MAX_SAMPLES_PER_PIXEL = 128
MIN_FOCAL_DISTANCE = 0.1


@dataclass(frozen=True)
class RenderParams:
    """Parameters of one rendered frame.

    Attributes:
        aperture: Lens radius. 0 renders with a pinhole camera.
        focal_distance: Distance of the plane in focus along the view axis.
        samples_per_pixel: Lens samples averaged per pixel.
        max_depth: Maximum number of mirror bounces (0 disables reflection).
        min_t: Near clipping distance of camera rays; hits closer to the
            lens are ignored.
        enable_grading: Apply warm color grading.
        enable_vignette: Apply lens vignetting.
        enable_grain: Apply film grain.
        grading_strength: Strength of the warm grading, in [0, 1].
        vignette_strength: Strength of the vignette, in [0, 1].
        grain_intensity: Amplitude of the film grain.
        seed: Seed of the per-sample lens random numbers.
    """

    aperture: float = 0.0
    focal_distance: float = 1.0
    samples_per_pixel: int = 1
    max_depth: int = MAX_DEPTH
    min_t: float = 0.0
    enable_grading: bool = False
    enable_vignette: bool = False
    enable_grain: bool = False
    grading_strength: float = 0.3
    vignette_strength: float = 0.6
    grain_intensity: float = 0.025
    seed: int = 42

    def __post_init__(self) -> None:
        if self.aperture < 0.0:
            raise ValueError(f"aperture must be non-negative, got {self.aperture}")
        if not self.focal_distance > 0.0:
            raise ValueError(f"focal_distance must be positive, got {self.focal_distance}")
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}")
        if not 0 <= self.max_depth <= MAX_DEPTH_LIMIT:
            raise ValueError(f"max_depth must be in [0, {MAX_DEPTH_LIMIT}], got {self.max_depth}")
        if self.min_t < 0.0:
            raise ValueError(f"min_t must be non-negative, got {self.min_t}")
        for name in ("grading_strength", "vignette_strength", "grain_intensity"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

    def with_changes(self, **changes: Any) -> "RenderParams":
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **changes)

    def lens_changed(self, other: "RenderParams") -> bool:
        """Whether switching to other invalidates the accumulated image."""
        return (
            self.aperture != other.aperture
            or self.focal_distance != other.focal_distance
            or self.max_depth != other.max_depth
            or self.min_t != other.min_t
            or self.seed != other.seed
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def interactive_defaults(cls) -> "RenderParams":
        """Settings tuned for the interactive preview."""
        return cls(
            aperture=0.12,
            focal_distance=3.3,
            samples_per_pixel=8,
            enable_grading=True,
            enable_vignette=True,
            enable_grain=True,
            grading_strength=0.25,
            vignette_strength=0.8,
            grain_intensity=0.05,
        )
