"""Taichi-based Whitted-style raytracer with a thin-lens camera.

This package renders scenes of spheres, planes, triangles and triangle soups
with Blinn-Phong shading, hard shadows and mirror reflection. A thin-lens
camera adds depth of field, and a progressive renderer averages samples
across passes.

Subpackages:
    core: Ray utilities, sampling, render parameters, integrator and
        progressive rendering loop
    geometry: Primitive intersection routines
    materials: Blinn-Phong material registry and shading
    scene: Object and light registries, scene manager and JSON loader
    camera: Pinhole and thin-lens ray generation
    preview: Film filters, image export and preview windows

Taichi must be initialized with default_fp=ti.f64 before importing the
subpackages, since they allocate their fields at import time.
"""

__version__ = "0.1.0"
