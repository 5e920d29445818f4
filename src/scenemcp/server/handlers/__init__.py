"""
SceneMCP Command Handlers

This module registers all command handlers with the server.
"""

from ...common import protocol
from .scene_handler import SceneCommandHandler


def register_handlers(server, handler: SceneCommandHandler) -> None:
    """Register all scene command handlers with the server"""

    # 场景操作命令
    server.command_registry.register(protocol.SCENE_CREATE, handler.scene_create)
    server.command_registry.register(protocol.SCENE_CLEAR, handler.scene_clear)

    # 对象操作命令
    server.command_registry.register(protocol.OBJECT_CREATE, handler.object_create)
    server.command_registry.register(protocol.OBJECT_UPDATE, handler.object_update)
    server.command_registry.register(protocol.OBJECT_DELETE, handler.object_delete)

    # 快照
    server.command_registry.register(protocol.RENDER, handler.render)


__all__ = ['SceneCommandHandler', 'register_handlers']
