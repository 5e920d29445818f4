"""
SceneMCP scene models

Plain data types for the scene: geometry kinds, scene objects and the
scene itself, plus the helpers that normalize wire values into them.
"""

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..common.errors import ParameterError

DEFAULT_COLOR = 0xff0000
DEFAULT_SCENE_ID = "main-scene"

Vector = List[float]


class GeometryKind(str, Enum):
    """Primitive shape of a scene object"""
    BOX = "BoxGeometry"
    SPHERE = "SphereGeometry"
    CYLINDER = "CylinderGeometry"
    CONE = "ConeGeometry"
    PLANE = "PlaneGeometry"
    TORUS = "TorusGeometry"
    RING = "RingGeometry"

    @classmethod
    def from_value(cls, value: Any) -> 'GeometryKind':
        """Map "SphereGeometry", "Sphere" or "sphere" to a kind, falling back to BOX"""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for kind in cls:
            name = kind.value.lower()
            if text == name or text == name[:-len("geometry")]:
                return kind
        return cls.BOX


def to_vector(value: Any, name: str) -> Vector:
    """Normalize ``[x, y, z]`` or ``{"x":..,"y":..,"z":..}`` into a list of floats"""
    if isinstance(value, dict):
        try:
            value = [value["x"], value["y"], value["z"]]
        except KeyError:
            raise ParameterError(f"{name} must have x, y and z", {"field": name})
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ParameterError(f"{name} must be a 3-component vector", {"field": name})
    try:
        vector = [float(v) for v in value]
    except (TypeError, ValueError):
        raise ParameterError(f"{name} must contain numbers", {"field": name})
    if not all(math.isfinite(v) for v in vector):
        raise ParameterError(f"{name} must contain finite numbers", {"field": name})
    return vector


def to_color(value: Any) -> int:
    """Normalize a packed RGB integer or a "#rrggbb" string"""
    if isinstance(value, str):
        text = value.strip().lstrip('#')
        try:
            value = int(text, 16)
        except ValueError:
            raise ParameterError(f"Invalid color: {value}", {"field": "color"})
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xffffff:
        raise ParameterError(f"Invalid color: {value}", {"field": "color"})
    return value


def new_object_id() -> str:
    return f"obj_{uuid.uuid4().hex}"


@dataclass
class SceneObject:
    """One primitive shape"""
    id: str
    type: GeometryKind = GeometryKind.BOX
    position: Vector = field(default_factory=lambda: [0.0, 0.0, 0.0])
    rotation: Vector = field(default_factory=lambda: [0.0, 0.0, 0.0])
    scale: Vector = field(default_factory=lambda: [1.0, 1.0, 1.0])
    color: int = DEFAULT_COLOR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "position": list(self.position),
            "rotation": list(self.rotation),
            "scale": list(self.scale),
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SceneObject':
        """Rebuild an object from its wire form (as echoed by the relay)"""
        obj = cls(id=str(data["id"]), type=GeometryKind.from_value(data.get("type")))
        for name in ("position", "rotation", "scale"):
            if data.get(name) is not None:
                setattr(obj, name, to_vector(data[name], name))
        if data.get("color") is not None:
            obj.color = to_color(data["color"])
        return obj


@dataclass
class Scene:
    """The authoritative collection of objects and an optional label"""
    objects: List[SceneObject] = field(default_factory=list)
    scene_id: Optional[str] = None

    def find(self, object_id: str) -> Optional[SceneObject]:
        for obj in self.objects:
            if obj.id == object_id:
                return obj
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sceneId": self.scene_id,
            "objects": [obj.to_dict() for obj in self.objects],
        }


@dataclass
class SceneEvent:
    """Change notification published to presentation observers"""
    kind: str
    object_id: Optional[str] = None
    object: Optional[Dict[str, Any]] = None
    scene_id: Optional[str] = None


# Event kinds
SCENE_CREATED = "scene.created"
SCENE_CLEARED = "scene.cleared"
OBJECT_ADDED = "object.added"
OBJECT_UPDATED = "object.updated"
OBJECT_REMOVED = "object.removed"
