"""Load and save JSON scene descriptions.

A scene file holds a camera, named materials, objects and lights:

    {
        "camera": {"eye": [0, 0, 3], "look": [0, 0, -1], "up": [0, 1, 0],
                   "focal_length": 1.0, "width": 1.6, "height": 0.9,
                   "aperture": 0.0, "focal_distance": 3.0},
        "materials": [{"name": "red", "ka": [0.1, 0, 0], "kd": [0.8, 0, 0],
                       "ks": [0.3, 0.3, 0.3], "km": [0, 0, 0],
                       "phong_exponent": 50}],
        "objects": [{"type": "sphere", "center": [0, 0, -1], "radius": 0.5,
                     "material": "red"}],
        "lights": [{"type": "point", "position": [0, 5, 0], "color": [1, 1, 1]}]
    }

Object types are sphere, plane, triangle (with "corners") and soup (with
"triangles"); light types are directional and point.
"""

import json
import logging
from pathlib import Path
from typing import Any

from lensray.camera.pinhole import Camera
from lensray.scene.manager import SceneManager

logger = logging.getLogger(__name__)


def camera_from_dict(data: dict[str, Any]) -> Camera:
    """Build a Camera from the "camera" section of a scene.

    Raises:
        ValueError: If a required key is missing or the values are invalid.
    """
    try:
        return Camera.look_at(
            eye=data["eye"],
            look=data["look"],
            up=data["up"],
            focal_length=data["focal_length"],
            width=data["width"],
            height=data["height"],
            aperture=data.get("aperture", 0.0),
            focal_distance=data.get("focal_distance", 1.0),
        )
    except KeyError as exc:
        raise ValueError(f"Missing camera key: {exc.args[0]!r}") from exc


def load_scene_dict(data: dict[str, Any]) -> tuple[SceneManager, Camera]:
    """Build a scene and camera from a parsed scene document.

    The global scene registries are replaced by the new scene.

    Raises:
        ValueError: If the document is malformed.
    """
    if "camera" not in data:
        raise ValueError("Scene has no camera")
    camera = camera_from_dict(data["camera"])

    scene = SceneManager()
    scene.from_dict(data)
    return scene, camera


def load_scene(path: str | Path) -> tuple[SceneManager, Camera]:
    """Load a scene file.

    Args:
        path: Path to a JSON scene file.

    Returns:
        The populated SceneManager and the scene's Camera.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or not a valid scene.
    """
    path = Path(path)
    logger.info("Loading scene %s", path)
    with path.open() as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path}: invalid JSON: {exc}") from exc
    return load_scene_dict(data)


def save_scene(path: str | Path, scene: SceneManager, camera: Camera) -> None:
    """Write a scene and camera to a JSON scene file."""
    data = {"camera": camera.to_dict(), **scene.to_dict()}
    with Path(path).open("w") as f:
        json.dump(data, f, indent=2)
    logger.info("Saved scene %s", path)
