"""Scene module for object, light and material bookkeeping.

Components:
    intersection: Object table and the first-hit scan
    lights: Directional and point light registry
    manager: SceneManager coordinating objects, materials and lights
    loader: JSON scene files

Scene data is stored as Structure-of-Arrays Taichi fields; objects are
scanned in id order and the first strictly nearest hit wins.
"""

from .intersection import (
    MAX_OBJECTS,
    MAX_PLANES,
    MAX_SPHERES,
    ObjectType,
    SceneHitRecord,
    add_plane,
    add_sphere,
    add_triangle,
    add_triangle_soup,
    clear_scene,
    first_hit,
    get_object_count,
    get_plane_count,
    get_sphere_count,
    intersect_object,
)
from .lights import (
    MAX_LIGHTS,
    LightType,
    add_directional_light,
    add_point_light,
    clear_lights,
    get_light_count,
)

# Note: manager and loader are NOT imported here; they depend on lensray.materials,
# which itself imports this package. Import them directly, e.g.
#   from lensray.scene.manager import SceneManager
#   from lensray.scene.loader import load_scene

__all__ = [
    # Intersection module
    "ObjectType",
    "SceneHitRecord",
    "add_sphere",
    "add_plane",
    "add_triangle",
    "add_triangle_soup",
    "clear_scene",
    "first_hit",
    "intersect_object",
    "get_object_count",
    "get_sphere_count",
    "get_plane_count",
    "MAX_OBJECTS",
    "MAX_SPHERES",
    "MAX_PLANES",
    # Lights module
    "LightType",
    "add_directional_light",
    "add_point_light",
    "clear_lights",
    "get_light_count",
    "MAX_LIGHTS",
]
