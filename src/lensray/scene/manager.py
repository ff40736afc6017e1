"""Unified scene manager for coordinating objects, materials and lights.

The SceneManager is the Python-side owner of a scene. It validates input,
writes it to the Taichi registries (material, object and light tables) and
keeps a plain description of everything added so the scene can be exported
and rebuilt.

Materials can be given names; objects in dictionaries refer to their material
by name, which is how scene files are written.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from lensray.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_material(ka=(0.1, 0, 0), kd=(0.8, 0, 0), name="red")
    >>> scene.add_sphere(center=(0, 0, -5), radius=1.0, material_id=red)
    0
    >>> scene.add_point_light(position=(0, 5, 0), color=(1, 1, 1))
    0
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from lensray.materials.blinn_phong import (
    MAX_MATERIALS,
    Material,
    add_material,
    clear_materials,
    get_material_count,
)
from lensray.scene.intersection import (
    MAX_OBJECTS,
    ObjectType,
    add_plane,
    add_sphere,
    add_triangle,
    add_triangle_soup,
    clear_scene,
    get_object_count,
)
from lensray.scene.lights import (
    MAX_LIGHTS,
    LightType,
    add_directional_light,
    add_point_light,
    clear_lights,
    get_light_count,
)

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]

_OBJECT_NAMES = {
    ObjectType.SPHERE: "sphere",
    ObjectType.PLANE: "plane",
    ObjectType.TRIANGLE: "triangle",
    ObjectType.TRIANGLE_SOUP: "soup",
}

_LIGHT_NAMES = {
    LightType.DIRECTIONAL: "directional",
    LightType.POINT: "point",
}


def _vec3(value: Any, name: str) -> Vector3:
    try:
        x, y, z = value
        return (float(x), float(y), float(z))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a sequence of 3 numbers, got {value!r}") from exc


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The material ID.
        name: The material name.
        material: The coefficients.
    """

    material_id: int
    name: str
    material: Material


@dataclass
class ObjectInfo:
    """Information about an object in the scene.

    Attributes:
        object_id: The object ID (also its position in the first-hit scan).
        object_type: The kind of object.
        material_id: The material ID assigned to the object.
        params: The geometry as provided when the object was added.
    """

    object_id: int
    object_type: ObjectType
    material_id: int
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class LightInfo:
    """Information about a light in the scene.

    Attributes:
        light_id: The light ID.
        light_type: The kind of light.
        params: Direction or position, and color.
    """

    light_id: int
    light_type: LightType
    params: dict[str, Any] = field(default_factory=dict)


class SceneManager:
    """Scene manager coordinating objects, materials and lights.

    The Taichi registries are module-level, so creating a SceneManager (or
    calling clear()) resets the global scene.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        objects: List of ObjectInfo for all objects, in id order.
        lights: List of LightInfo for all lights.
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.objects: list[ObjectInfo] = []
        self.lights: list[LightInfo] = []
        self._material_names: dict[str, int] = {}
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_materials()
        clear_lights()
        self.materials.clear()
        self.objects.clear()
        self.lights.clear()
        self._material_names.clear()

    def clear(self) -> None:
        """Clear the entire scene (objects, materials and lights)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(
        self,
        ka: Vector3 = (0.0, 0.0, 0.0),
        kd: Vector3 = (0.0, 0.0, 0.0),
        ks: Vector3 = (0.0, 0.0, 0.0),
        km: Vector3 = (0.0, 0.0, 0.0),
        phong_exponent: float = 0.0,
        name: str | None = None,
    ) -> int:
        """Add a Blinn-Phong material to the scene.

        Args:
            ka: Ambient reflectance (RGB in [0, 1]).
            kd: Diffuse reflectance (RGB in [0, 1]).
            ks: Specular reflectance (RGB in [0, 1]).
            km: Mirror reflectance (RGB in [0, 1]).
            phong_exponent: Specular exponent, non-negative.
            name: Optional unique name. Defaults to "material_<id>".

        Returns:
            The material ID.

        Raises:
            ValueError: If a coefficient is out of range or the name is taken.
            RuntimeError: If the maximum number of materials is exceeded.
        """
        material = Material(
            ka=_vec3(ka, "ka"),
            kd=_vec3(kd, "kd"),
            ks=_vec3(ks, "ks"),
            km=_vec3(km, "km"),
            phong_exponent=float(phong_exponent),
        )
        if name is not None and name in self._material_names:
            raise ValueError(f"Duplicate material name: {name!r}")

        material_id = add_material(material)
        if name is None:
            name = f"material_{material_id}"
        self._material_names[name] = material_id
        self.materials.append(MaterialInfo(material_id=material_id, name=name, material=material))
        logger.debug("Added material %d (%s)", material_id, name)
        return material_id

    def get_material_id(self, name: str) -> int:
        """Look up a material ID by name.

        Raises:
            ValueError: If no material has that name.
        """
        try:
            return self._material_names[name]
        except KeyError:
            raise ValueError(f"Unknown material: {name!r}") from None

    def get_material_count(self) -> int:
        """Get the number of materials in the scene."""
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")

    # =========================================================================
    # Object Management
    # =========================================================================

    def _track(self, object_id: int, object_type: ObjectType, material_id: int, **params) -> int:
        self.objects.append(
            ObjectInfo(
                object_id=object_id,
                object_type=object_type,
                material_id=material_id,
                params=params,
            )
        )
        return object_id

    def add_sphere(self, center: Vector3, radius: float, material_id: int) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (positive).
            material_id: The material ID to assign to the sphere.

        Returns:
            The object ID of the sphere.

        Raises:
            ValueError: If the radius or material_id is invalid.
            RuntimeError: If a capacity is exceeded.
        """
        self._check_material_id(material_id)
        center = _vec3(center, "center")
        object_id = add_sphere(center, float(radius), material_id)
        return self._track(
            object_id, ObjectType.SPHERE, material_id, center=center, radius=float(radius)
        )

    def add_plane(self, point: Vector3, normal: Vector3, material_id: int) -> int:
        """Add an infinite plane to the scene.

        Args:
            point: Any point on the plane as (x, y, z).
            normal: The plane normal as (x, y, z), any positive length.
            material_id: The material ID to assign to the plane.

        Returns:
            The object ID of the plane.

        Raises:
            ValueError: If the normal or material_id is invalid.
            RuntimeError: If a capacity is exceeded.
        """
        self._check_material_id(material_id)
        point = _vec3(point, "point")
        normal = _vec3(normal, "normal")
        object_id = add_plane(point, normal, material_id)
        return self._track(object_id, ObjectType.PLANE, material_id, point=point, normal=normal)

    def add_triangle(self, v0: Vector3, v1: Vector3, v2: Vector3, material_id: int) -> int:
        """Add a triangle to the scene.

        Args:
            v0: First corner.
            v1: Second corner.
            v2: Third corner.
            material_id: The material ID to assign to the triangle.

        Returns:
            The object ID of the triangle.

        Raises:
            ValueError: If the triangle is degenerate or material_id is invalid.
            RuntimeError: If a capacity is exceeded.
        """
        self._check_material_id(material_id)
        corners = [_vec3(v0, "v0"), _vec3(v1, "v1"), _vec3(v2, "v2")]
        object_id = add_triangle(*corners, material_id)
        return self._track(object_id, ObjectType.TRIANGLE, material_id, corners=corners)

    def add_triangle_soup(self, triangles: list, material_id: int) -> int:
        """Add a triangle soup (one object made of many triangles).

        Args:
            triangles: List of (v0, v1, v2) corner triples.
            material_id: The material ID shared by all triangles.

        Returns:
            The object ID of the soup.

        Raises:
            ValueError: If the soup is empty, contains a degenerate triangle,
                or material_id is invalid.
            RuntimeError: If a capacity is exceeded.
        """
        self._check_material_id(material_id)
        corners = [
            [_vec3(v, "triangle corner") for v in tri] for tri in triangles
        ]
        object_id = add_triangle_soup(corners, material_id)
        return self._track(object_id, ObjectType.TRIANGLE_SOUP, material_id, triangles=corners)

    # =========================================================================
    # Light Management
    # =========================================================================

    def add_directional_light(self, direction: Vector3, color: Vector3) -> int:
        """Add a directional light shining along direction.

        Raises:
            ValueError: If the direction is zero or the color is invalid.
            RuntimeError: If the maximum number of lights is exceeded.
        """
        direction = _vec3(direction, "direction")
        color = _vec3(color, "color")
        light_id = add_directional_light(direction, color)
        self.lights.append(
            LightInfo(light_id, LightType.DIRECTIONAL, {"direction": direction, "color": color})
        )
        return light_id

    def add_point_light(self, position: Vector3, color: Vector3) -> int:
        """Add a point light at position.

        Raises:
            ValueError: If the position or color is invalid.
            RuntimeError: If the maximum number of lights is exceeded.
        """
        position = _vec3(position, "position")
        color = _vec3(color, "color")
        light_id = add_point_light(position, color)
        self.lights.append(
            LightInfo(light_id, LightType.POINT, {"position": position, "color": color})
        )
        return light_id

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_object_count(self) -> int:
        """Get the number of objects in the scene."""
        return get_object_count()

    def get_light_count(self) -> int:
        """Get the number of lights in the scene."""
        return get_light_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            A dictionary with 'materials', 'objects' and 'lights' lists in
            the scene file format. Objects refer to materials by name.
        """
        names = {info.material_id: info.name for info in self.materials}

        materials = [{"name": info.name, **info.material.to_dict()} for info in self.materials]

        objects = []
        for obj in self.objects:
            entry: dict[str, Any] = {"type": _OBJECT_NAMES[obj.object_type]}
            if obj.object_type == ObjectType.SPHERE:
                entry["center"] = list(obj.params["center"])
                entry["radius"] = obj.params["radius"]
            elif obj.object_type == ObjectType.PLANE:
                entry["point"] = list(obj.params["point"])
                entry["normal"] = list(obj.params["normal"])
            elif obj.object_type == ObjectType.TRIANGLE:
                entry["corners"] = [list(v) for v in obj.params["corners"]]
            else:
                entry["triangles"] = [[list(v) for v in tri] for tri in obj.params["triangles"]]
            entry["material"] = names[obj.material_id]
            objects.append(entry)

        lights = []
        for light in self.lights:
            entry = {"type": _LIGHT_NAMES[light.light_type]}
            entry.update({key: list(value) for key, value in light.params.items()})
            lights.append(entry)

        return {"materials": materials, "objects": objects, "lights": lights}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Clears the current scene first. Materials are loaded before objects,
        and objects keep their order (their order decides ties in the
        first-hit scan).

        Args:
            data: Dictionary with 'materials', 'objects' and 'lights' lists.

        Raises:
            ValueError: If the data contains an unknown type, an unknown
                material name, a missing key or invalid values.
        """
        self.clear()

        try:
            for mat in data.get("materials", []):
                self.add_material(
                    ka=mat.get("ka", (0.0, 0.0, 0.0)),
                    kd=mat.get("kd", (0.0, 0.0, 0.0)),
                    ks=mat.get("ks", (0.0, 0.0, 0.0)),
                    km=mat.get("km", (0.0, 0.0, 0.0)),
                    phong_exponent=mat.get("phong_exponent", 0.0),
                    name=mat.get("name"),
                )

            for obj in data.get("objects", []):
                obj_type = str(obj.get("type", "")).lower()
                material_id = self.get_material_id(obj["material"])
                if obj_type == "sphere":
                    self.add_sphere(obj["center"], obj["radius"], material_id)
                elif obj_type == "plane":
                    self.add_plane(obj["point"], obj["normal"], material_id)
                elif obj_type == "triangle":
                    corners = obj["corners"]
                    if len(corners) != 3:
                        raise ValueError(f"Triangle needs 3 corners, got {len(corners)}")
                    self.add_triangle(corners[0], corners[1], corners[2], material_id)
                elif obj_type == "soup":
                    self.add_triangle_soup(obj["triangles"], material_id)
                else:
                    raise ValueError(f"Unknown object type: {obj_type!r}")

            for light in data.get("lights", []):
                light_type = str(light.get("type", "")).lower()
                if light_type == "directional":
                    self.add_directional_light(light["direction"], light["color"])
                elif light_type == "point":
                    self.add_point_light(light["position"], light["color"])
                else:
                    raise ValueError(f"Unknown light type: {light_type!r}")
        except KeyError as exc:
            raise ValueError(f"Missing scene key: {exc.args[0]!r}") from exc

        logger.info(
            "Loaded scene: %d materials, %d objects, %d lights",
            len(self.materials),
            len(self.objects),
            len(self.lights),
        )

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_objects() -> int:
        """Get the maximum number of objects supported."""
        return MAX_OBJECTS

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS

    @staticmethod
    def get_max_lights() -> int:
        """Get the maximum number of lights supported."""
        return MAX_LIGHTS
