"""Tests for RenderParams."""

import dataclasses

import pytest


class TestRenderParams:
    """Tests for the immutable per-frame parameters."""

    def test_defaults(self):
        """Test the default parameters describe a pinhole frame."""
        from lensray.core.params import MAX_DEPTH, RenderParams

        params = RenderParams()

        assert params.aperture == 0.0
        assert params.samples_per_pixel == 1
        assert params.max_depth == MAX_DEPTH
        assert not (params.enable_grading or params.enable_vignette or params.enable_grain)

    def test_frozen(self):
        """Test that parameters cannot be mutated."""
        from lensray.core.params import RenderParams

        params = RenderParams()
        with pytest.raises(dataclasses.FrozenInstanceError):
            params.aperture = 0.5

    def test_with_changes_returns_new_instance(self):
        """Test that with_changes leaves the original untouched."""
        from lensray.core.params import RenderParams

        params = RenderParams()
        changed = params.with_changes(aperture=0.2, enable_grain=True)

        assert changed.aperture == 0.2
        assert changed.enable_grain
        assert params.aperture == 0.0
        assert not params.enable_grain

    @pytest.mark.parametrize(
        "changes",
        [
            {"aperture": -0.1},
            {"focal_distance": 0.0},
            {"samples_per_pixel": 0},
            {"max_depth": 1000},
            {"max_depth": -1},
            {"grain_intensity": -0.5},
            {"min_t": -1.0},
        ],
    )
    def test_validation(self, changes):
        """Test that invalid values are rejected."""
        from lensray.core.params import RenderParams

        with pytest.raises(ValueError):
            RenderParams().with_changes(**changes)

    def test_depth_limit_accepted(self):
        """Test that the static depth limit itself is a valid depth."""
        from lensray.core.params import MAX_DEPTH_LIMIT, RenderParams

        assert RenderParams(max_depth=MAX_DEPTH_LIMIT).max_depth == MAX_DEPTH_LIMIT

    def test_lens_changed(self):
        """Test which changes invalidate the accumulated image."""
        from lensray.core.params import RenderParams

        params = RenderParams()

        assert params.lens_changed(params.with_changes(aperture=0.1))
        assert params.lens_changed(params.with_changes(focal_distance=2.0))
        assert params.lens_changed(params.with_changes(max_depth=2))
        assert params.lens_changed(params.with_changes(seed=7))
        assert params.lens_changed(params.with_changes(min_t=0.5))
        assert not params.lens_changed(params.with_changes(samples_per_pixel=16))
        assert not params.lens_changed(params.with_changes(enable_vignette=True))
        assert not params.lens_changed(params.with_changes(grain_intensity=0.1))

    def test_interactive_defaults(self):
        """Test the preview's starting parameters."""
        from lensray.core.params import RenderParams

        params = RenderParams.interactive_defaults()

        assert params.aperture == pytest.approx(0.12)
        assert params.focal_distance == pytest.approx(3.3)
        assert params.samples_per_pixel == 8
        assert params.enable_grading and params.enable_vignette and params.enable_grain
        # The preview uses stronger vignette and grain than still renders
        assert params.grading_strength == pytest.approx(0.25)
        assert params.vignette_strength == pytest.approx(0.8)
        assert params.grain_intensity == pytest.approx(0.05)

    def test_to_dict(self):
        """Test conversion to a plain dictionary."""
        from lensray.core.params import RenderParams

        data = RenderParams(aperture=0.2).to_dict()

        assert data["aperture"] == 0.2
        assert RenderParams(**data) == RenderParams(aperture=0.2)
