"""Blinn-Phong material and direct lighting with hard shadows.

A material has four RGB coefficients and a specular exponent:

    ka  ambient reflectance
    kd  diffuse reflectance
    ks  specular reflectance
    km  mirror reflectance (used by the integrator for reflection rays)
    p   Phong exponent

The local color at a hit point p with normal n, seen along direction d, is

    L = ka * Ia + sum over unshadowed lights with n . l > 0 of
        kd * I * (n . l) + ks * I * max(0, n . h)^p

where Ia = AMBIENT_INTENSITY, v = normalize(-d) and h = normalize(l + v).
A light is shadowed when a ray from p toward it hits an object before
reaching it. The result is not clamped.

Example:
    >>> from lensray.materials.blinn_phong import Material, add_material
    >>> red = add_material(Material(ka=(0.1, 0, 0), kd=(0.8, 0, 0)))
    >>> # Use blinn_phong_shading within a Taichi kernel
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from lensray.core.ray import REAL, vec3
from lensray.scene.intersection import SceneHitRecord, first_hit
from lensray.scene.lights import get_light_intensity, light_direction, num_lights

# Global ambient light intensity
AMBIENT_INTENSITY = 0.1

# Offset of shadow ray origins along the normal, also their min_t
SHADOW_EPSILON = 1e-8

Color = tuple[float, float, float]


@dataclass(frozen=True)
class Material:
    """Blinn-Phong material coefficients.

    Attributes:
        ka: Ambient reflectance (RGB, each component in [0, 1]).
        kd: Diffuse reflectance (RGB, each component in [0, 1]).
        ks: Specular reflectance (RGB, each component in [0, 1]).
        km: Mirror reflectance (RGB, each component in [0, 1]).
        phong_exponent: Specular exponent, non-negative.
    """

    ka: Color = (0.0, 0.0, 0.0)
    kd: Color = (0.0, 0.0, 0.0)
    ks: Color = (0.0, 0.0, 0.0)
    km: Color = (0.0, 0.0, 0.0)
    phong_exponent: float = 0.0

    def validate(self) -> None:
        """Check coefficient ranges.

        Raises:
            ValueError: If a coefficient lies outside [0, 1] or the exponent
                is negative.
        """
        for name in ("ka", "kd", "ks", "km"):
            value = getattr(self, name)
            if len(value) != 3:
                raise ValueError(f"{name} must have 3 components, got {value!r}")
            for i, component in enumerate(value):
                if not 0.0 <= component <= 1.0:
                    raise ValueError(f"{name} component {i} = {component} is outside [0, 1]")
        if not self.phong_exponent >= 0.0:
            raise ValueError(f"phong_exponent must be non-negative, got {self.phong_exponent}")

    def to_dict(self) -> dict:
        return {
            "ka": list(self.ka),
            "kd": list(self.kd),
            "ks": list(self.ks),
            "km": list(self.km),
            "phong_exponent": self.phong_exponent,
        }


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_MATERIALS = 1024

material_ka = ti.Vector.field(3, dtype=REAL, shape=MAX_MATERIALS)
material_kd = ti.Vector.field(3, dtype=REAL, shape=MAX_MATERIALS)
material_ks = ti.Vector.field(3, dtype=REAL, shape=MAX_MATERIALS)
material_km = ti.Vector.field(3, dtype=REAL, shape=MAX_MATERIALS)
material_phong_exponents = ti.field(dtype=REAL, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_material(material: Material) -> int:
    """Add a material to the material registry.

    Args:
        material: The material to register.

    Returns:
        The id of the added material.

    Raises:
        ValueError: If the material fails validation.
        RuntimeError: If the maximum number of materials is exceeded.
    """
    material.validate()

    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_ka[idx] = list(material.ka)
    material_kd[idx] = list(material.kd)
    material_ks[idx] = list(material.ks)
    material_km[idx] = list(material.km)
    material_phong_exponents[idx] = float(material.phong_exponent)
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


@ti.func
def get_material_km(material_id: ti.i32) -> vec3:
    """Get the mirror reflectance of a material."""
    return material_km[material_id]


@ti.func
def blinn_phong_shading(
    ray_origin: vec3,
    ray_direction: vec3,
    hit: SceneHitRecord,
) -> vec3:
    """Compute the local Blinn-Phong color at a hit, with shadow rays.

    Args:
        ray_origin: Origin of the ray that produced the hit.
        ray_direction: Direction of the ray that produced the hit.
        hit: The scene hit to shade (hit == 1).

    Returns:
        The unclamped RGB color.
    """
    mat = hit.material_id
    ka = material_ka[mat]
    kd = material_kd[mat]
    ks = material_ks[mat]
    exponent = material_phong_exponents[mat]

    n = hit.normal
    p = ray_origin + hit.t * ray_direction
    v = tm.normalize(-ray_direction)

    color = ka * AMBIENT_INTENSITY

    for light_id in range(num_lights[None]):
        l, max_t = light_direction(light_id, p)

        shadow_origin = p + SHADOW_EPSILON * n
        blocker = first_hit(shadow_origin, l, SHADOW_EPSILON)

        occluded = 0
        if blocker.hit == 1 and blocker.t < max_t:
            occluded = 1

        n_dot_l = tm.dot(n, l)
        if occluded == 0 and n_dot_l > 0.0:
            intensity = get_light_intensity(light_id)
            h = tm.normalize(l + v)
            n_dot_h = ti.max(0.0, tm.dot(n, h))
            color += kd * intensity * n_dot_l
            color += ks * intensity * ti.pow(n_dot_h, exponent)

    return color
