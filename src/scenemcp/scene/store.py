"""
SceneMCP Scene Store

This module holds the authoritative, in-memory scene owned by the relay
server. Every operation validates its input completely before touching the
scene, so a failing call never leaves a partial mutation behind.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..common.errors import ObjectNotFoundError, ParameterError
from .models import (
    DEFAULT_SCENE_ID, GeometryKind, Scene, SceneEvent, SceneObject,
    new_object_id, to_color, to_vector,
    SCENE_CREATED, SCENE_CLEARED, OBJECT_ADDED, OBJECT_UPDATED, OBJECT_REMOVED,
)

logger = logging.getLogger(__name__)

VECTOR_FIELDS = ("position", "rotation", "scale")
UPDATABLE_FIELDS = frozenset(VECTOR_FIELDS + ("type", "color", "materialOptions"))

SceneObserver = Callable[[SceneEvent], None]


def _normalize_fields(values: Dict[str, Any]) -> Dict[str, Any]:
    """Validate geometric fields and convert them to their stored form"""
    changes: Dict[str, Any] = {}
    for name in VECTOR_FIELDS:
        if values.get(name) is not None:
            changes[name] = to_vector(values[name], name)
    if values.get("type") is not None:
        changes["type"] = GeometryKind.from_value(values["type"])

    material = values.get("materialOptions")
    if material is not None and not isinstance(material, dict):
        raise ParameterError("materialOptions must be an object", {"field": "materialOptions"})
    if values.get("color") is not None:
        changes["color"] = to_color(values["color"])
    elif material and material.get("color") is not None:
        changes["color"] = to_color(material["color"])
    return changes


class SceneStore:
    """In-memory authoritative scene"""

    def __init__(self):
        self._scene = Scene()
        self._observers: List[SceneObserver] = []

    @property
    def scene_id(self) -> Optional[str]:
        return self._scene.scene_id

    @property
    def objects(self) -> List[SceneObject]:
        """Read-only view of the objects, in display order"""
        return list(self._scene.objects)

    def __len__(self) -> int:
        return len(self._scene.objects)

    # 观察者
    def add_observer(self, observer: SceneObserver) -> None:
        """添加观察者"""
        self._observers.append(observer)

    def remove_observer(self, observer: SceneObserver) -> None:
        """移除观察者"""
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify_observers(self, event: SceneEvent) -> None:
        """通知所有观察者场景已更改"""
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                logger.exception(f"Scene observer failed on {event.kind}")

    # 场景操作
    def create_scene(self, scene_id: Optional[str] = None) -> Dict[str, Any]:
        """Replace the whole scene with an empty one tagged ``scene_id``"""
        self._scene = Scene(scene_id=scene_id or DEFAULT_SCENE_ID)
        logger.info(f"Created scene: {self._scene.scene_id}")
        self._notify_observers(SceneEvent(SCENE_CREATED, scene_id=self._scene.scene_id))
        return self.render()

    def clear_scene(self) -> None:
        """Remove every object, keeping the scene label"""
        self._scene.objects = []
        logger.info("Cleared scene")
        self._notify_observers(SceneEvent(SCENE_CLEARED, scene_id=self._scene.scene_id))

    # 对象操作
    def create_object(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        """Add an object and return its normalized form

        The descriptor needs a ``type``. Geometry may be given either at the
        top level or under ``properties`` (the parser's layout, where the
        colour lives in ``properties.materialOptions.color``). Every missing
        field gets its default.

        Raises:
            ParameterError: if ``type`` is missing, a field is invalid or
                the id is already taken
        """
        if not isinstance(obj, dict):
            raise ParameterError("Object descriptor must be an object")
        if not obj.get("type"):
            raise ParameterError("Object type is required", {"field": "type"})

        properties = obj.get("properties") or {}
        if not isinstance(properties, dict):
            raise ParameterError("properties must be an object", {"field": "properties"})
        fields = {key: value for key, value in obj.items() if key != "properties"}
        fields.update({key: value for key, value in properties.items() if value is not None})
        changes = _normalize_fields(fields)

        object_id = str(obj["id"]) if obj.get("id") is not None else new_object_id()
        if self._scene.find(object_id) is not None:
            raise ParameterError(f"Object already exists: {object_id}", {"id": object_id})

        new_object = SceneObject(id=object_id)
        for name, value in changes.items():
            setattr(new_object, name, value)
        self._scene.objects.append(new_object)

        result = new_object.to_dict()
        logger.info(f"Added object: {result}")
        self._notify_observers(SceneEvent(OBJECT_ADDED, object_id=object_id, object=result))
        return result

    def update_object(self, object_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """Shallow-merge ``properties`` into an existing object

        Supplied fields replace the stored ones entirely; unspecified fields
        are untouched.

        Raises:
            ObjectNotFoundError: if no object has ``object_id``
            ParameterError: for unknown or invalid fields
        """
        target = self._scene.find(object_id)
        if target is None:
            raise ObjectNotFoundError(object_id)

        properties = properties or {}
        if not isinstance(properties, dict):
            raise ParameterError("properties must be an object", {"field": "properties"})
        unknown = sorted(set(properties) - UPDATABLE_FIELDS)
        if unknown:
            raise ParameterError(f"Cannot update fields: {', '.join(unknown)}",
                                 {"fields": unknown})
        changes = _normalize_fields(properties)

        for name, value in changes.items():
            setattr(target, name, value)

        result = target.to_dict()
        logger.debug(f"Updated object {object_id}: {sorted(changes)}")
        self._notify_observers(SceneEvent(OBJECT_UPDATED, object_id=object_id, object=result))
        return result

    def delete_object(self, object_id: str) -> bool:
        """Remove an object; an unknown id is a no-op

        Returns:
            True if an object was removed
        """
        remaining = [obj for obj in self._scene.objects if obj.id != object_id]
        if len(remaining) == len(self._scene.objects):
            logger.debug(f"Delete ignored, no object {object_id}")
            return False
        self._scene.objects = remaining
        logger.info(f"Deleted object: {object_id}")
        self._notify_observers(SceneEvent(OBJECT_REMOVED, object_id=object_id))
        return True

    def get_object(self, object_id: str) -> Optional[Dict[str, Any]]:
        obj = self._scene.find(object_id)
        return obj.to_dict() if obj else None

    def render(self) -> Dict[str, Any]:
        """Return a snapshot of the scene without changing it"""
        return self._scene.to_dict()
