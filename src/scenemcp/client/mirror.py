"""SceneMCP场景镜像模块

客户端侧的只读场景副本，由服务器的响应和广播消息重建，
并向展示层发布对象添加/更新/移除/清空事件。
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from ..common import protocol
from ..common.errors import ConnectionError, ParameterError
from ..scene.models import (
    Scene, SceneEvent, SceneObject,
    SCENE_CREATED, SCENE_CLEARED, OBJECT_ADDED, OBJECT_UPDATED, OBJECT_REMOVED,
)
from .connection import ConnectionState, TransportClient

logger = logging.getLogger(__name__)


class SceneMirror:
    """场景镜像"""

    def __init__(self, transport: Optional[TransportClient] = None):
        """初始化场景镜像

        Args:
            transport: 要订阅的传输客户端，为None时需手动调用apply()
        """
        self._scene = Scene()
        self._observers: List[Callable[[SceneEvent], None]] = []
        self._transport = transport
        self._refresh_task: Optional[asyncio.Task] = None
        self._unsubscribers: List[Callable[[], None]] = []
        if transport:
            self._unsubscribers = [
                transport.on_message(self.apply),
                transport.on_state_change(self._on_state_change),
            ]

    def close(self) -> None:
        """停止订阅传输客户端"""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def _on_state_change(self, state: ConnectionState) -> None:
        # 断线期间的广播已丢失，(重新)连接后请求完整快照
        if state is ConnectionState.CONNECTED:
            self._refresh_task = asyncio.ensure_future(self.refresh())

    async def refresh(self) -> None:
        """请求场景快照，响应由apply()处理"""
        if self._transport is None:
            return
        try:
            await self._transport.send(protocol.RENDER)
        except ConnectionError as e:
            logger.warning(f"无法刷新场景镜像: {e}")

    @property
    def scene_id(self) -> Optional[str]:
        return self._scene.scene_id

    def snapshot(self) -> Dict[str, Any]:
        """获取当前场景快照"""
        return self._scene.to_dict()

    def get_object(self, object_id: str) -> Optional[Dict[str, Any]]:
        obj = self._scene.find(object_id)
        return obj.to_dict() if obj else None

    def add_observer(self, observer: Callable[[SceneEvent], None]) -> None:
        """添加观察者"""
        self._observers.append(observer)

    def remove_observer(self, observer: Callable[[SceneEvent], None]) -> None:
        """移除观察者"""
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify_observers(self, event: SceneEvent) -> None:
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                logger.exception(f"场景观察者出错: {event.kind}")

    def apply(self, message: Dict[str, Any]) -> None:
        """根据服务器消息更新镜像

        只处理成功的消息，失败响应和无法识别的消息会被忽略。
        """
        if not isinstance(message, dict) or not message.get("success"):
            return
        action = message.get("action")
        try:
            if action in (protocol.SCENE_CREATE, protocol.RENDER):
                self._replace(message.get("scene"), action == protocol.SCENE_CREATE)
            elif action == protocol.SCENE_CLEAR:
                self._scene.objects = []
                self._notify_observers(SceneEvent(SCENE_CLEARED, scene_id=self._scene.scene_id))
            elif action in (protocol.OBJECT_CREATE, protocol.OBJECT_UPDATE) and message.get("object"):
                self._upsert(message["object"])
            elif action == protocol.OBJECT_DELETE and message.get("objectId"):
                self._remove(message["objectId"])
        except (KeyError, TypeError, ParameterError) as e:
            logger.error(f"无法应用服务器消息 {action}: {e}")

    def _replace(self, scene: Optional[Dict[str, Any]], created: bool) -> None:
        if not scene:
            return
        objects = [SceneObject.from_dict(item) for item in scene.get("objects", [])]
        self._scene = Scene(objects=objects, scene_id=scene.get("sceneId"))
        if created:
            self._notify_observers(SceneEvent(SCENE_CREATED, scene_id=self._scene.scene_id))
            return
        # 快照：当作清空后逐个添加
        self._notify_observers(SceneEvent(SCENE_CLEARED, scene_id=self._scene.scene_id))
        for obj in objects:
            self._notify_observers(SceneEvent(OBJECT_ADDED, object_id=obj.id, object=obj.to_dict()))

    def _upsert(self, data: Dict[str, Any]) -> None:
        obj = SceneObject.from_dict(data)
        for index, existing in enumerate(self._scene.objects):
            if existing.id == obj.id:
                self._scene.objects[index] = obj
                self._notify_observers(SceneEvent(OBJECT_UPDATED, object_id=obj.id, object=obj.to_dict()))
                return
        self._scene.objects.append(obj)
        self._notify_observers(SceneEvent(OBJECT_ADDED, object_id=obj.id, object=obj.to_dict()))

    def _remove(self, object_id: str) -> None:
        remaining = [obj for obj in self._scene.objects if obj.id != object_id]
        if len(remaining) != len(self._scene.objects):
            self._scene.objects = remaining
            self._notify_observers(SceneEvent(OBJECT_REMOVED, object_id=object_id))
