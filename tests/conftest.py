"""Pytest configuration for lensray tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. All geometry is
    double precision, so the default float type is f64.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before the fields are allocated
    from lensray.core.integrator import reset_render_settings
    from lensray.materials.blinn_phong import clear_materials
    from lensray.scene.intersection import clear_scene
    from lensray.scene.lights import clear_lights

    def _clear_all():
        clear_scene()
        clear_lights()
        clear_materials()
        reset_render_settings()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def basic_camera():
    """A pinhole camera at z=3 looking down -z with a 1x1 image plane."""
    from lensray.camera.pinhole import Camera

    return Camera.look_at(
        eye=(0.0, 0.0, 3.0),
        look=(0.0, 0.0, -1.0),
        up=(0.0, 1.0, 0.0),
        focal_length=1.0,
        width=1.0,
        height=1.0,
    )
