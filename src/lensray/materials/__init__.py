"""Materials module: Blinn-Phong coefficients and shading."""

from .blinn_phong import (
    AMBIENT_INTENSITY,
    MAX_MATERIALS,
    SHADOW_EPSILON,
    Material,
    add_material,
    blinn_phong_shading,
    clear_materials,
    get_material_count,
    get_material_km,
)

__all__ = [
    "Material",
    "add_material",
    "clear_materials",
    "get_material_count",
    "get_material_km",
    "blinn_phong_shading",
    "AMBIENT_INTENSITY",
    "SHADOW_EPSILON",
    "MAX_MATERIALS",
]
