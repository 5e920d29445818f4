"""
SceneMCP scene command handlers

Each handler takes a command payload, applies it to the scene store and
returns the extra fields to echo in the reply.
"""

import logging
from typing import Any, Dict

from ...common.errors import ParameterError
from ...scene.store import SceneStore

logger = logging.getLogger(__name__)


def _require_id(payload: Dict[str, Any]) -> str:
    object_id = payload.get("id")
    if object_id is None or object_id == "":
        raise ParameterError("Object id is required", {"field": "id"})
    return str(object_id)


class SceneCommandHandler:
    """Maps protocol commands onto scene store operations"""

    def __init__(self, store: SceneStore):
        self.store = store

    async def scene_create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {"scene": self.store.create_scene(payload.get("id"))}

    async def scene_clear(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.store.clear_scene()
        return {}

    async def object_create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {"object": self.store.create_object(payload)}

    async def object_update(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        object_id = _require_id(payload)
        return {"object": self.store.update_object(object_id, payload.get("properties") or {})}

    async def object_delete(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        object_id = _require_id(payload)
        self.store.delete_object(object_id)
        return {"objectId": object_id}

    async def render(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {"scene": self.store.render()}
