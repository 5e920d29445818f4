"""
SceneMCP Client

This module implements the high level client for the SceneMCP relay server:
one coroutine per protocol command on top of the transport client.
"""

import logging
from typing import Any, Dict, Optional

from ..common import protocol
from ..common.config import ConfigManager
from .connection import TransportClient
from .mirror import SceneMirror

logger = logging.getLogger(__name__)


class SceneClient:
    """SceneMCP client implementation"""

    def __init__(self, transport: Optional[TransportClient] = None, mirror: bool = True):
        """Initialize the client

        Args:
            transport: transport to use, a default one is created if omitted
            mirror: keep a local read-only copy of the scene in ``self.mirror``
        """
        self.transport = transport or TransportClient()
        self.mirror: Optional[SceneMirror] = SceneMirror(self.transport) if mirror else None

    @classmethod
    def from_config(cls, config: ConfigManager, url: Optional[str] = None) -> 'SceneClient':
        """Build a client from the ``client`` section of a configuration"""
        transport = TransportClient(
            url=url or config.get("client.url"),
            connect_timeout=config.get("client.connect_timeout", 5.0),
            reconnect_delay=config.get("client.reconnect_delay", 1.0),
            max_reconnect_attempts=config.get("client.max_reconnect_attempts", 5),
            command_timeout=config.get("client.command_timeout", 30.0),
        )
        return cls(transport)

    async def connect(self) -> bool:
        return await self.transport.connect()

    async def disconnect(self) -> None:
        await self.transport.disconnect()

    def is_connected(self) -> bool:
        return self.transport.is_connected()

    # 场景操作
    async def create_scene(self, scene_id: str) -> Dict[str, Any]:
        return await self.transport.send(protocol.SCENE_CREATE, {"id": scene_id})

    async def clear_scene(self) -> Dict[str, Any]:
        return await self.transport.send(protocol.SCENE_CLEAR)

    # 对象操作
    async def create_object(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        """Send ``object.create``

        Args:
            obj: descriptor with ``id``, ``type`` and optional ``properties``
                (as built by ``scenemcp.nlp.command_to_object``)
        """
        logger.debug(f"Creating object: {obj.get('id')}")
        return await self.transport.send(protocol.OBJECT_CREATE, obj)

    async def update_object(self, object_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        return await self.transport.send(
            protocol.OBJECT_UPDATE, {"id": object_id, "properties": properties}
        )

    async def delete_object(self, object_id: str) -> Dict[str, Any]:
        return await self.transport.send(protocol.OBJECT_DELETE, {"id": object_id})

    async def render(self) -> Dict[str, Any]:
        return await self.transport.send(protocol.RENDER)

    async def fetch_scene(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Ask the relay for a snapshot and wait for it

        Returns:
            The scene dictionary (``sceneId`` and ``objects``)
        """
        reply = await self.transport.request(protocol.RENDER, timeout=timeout)
        return reply.get("scene") or {"sceneId": None, "objects": []}
