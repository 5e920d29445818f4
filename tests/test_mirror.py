"""场景镜像测试模块"""

import pytest

from scenemcp.client import SceneMirror, TransportClient
from scenemcp.scene.models import (
    SCENE_CREATED, SCENE_CLEARED, OBJECT_ADDED, OBJECT_UPDATED, OBJECT_REMOVED,
)
from tests.helpers import wait_for

BOX = {"id": "a", "type": "BoxGeometry", "position": [0, 0, 0], "rotation": [0, 0, 0],
       "scale": [1, 1, 1], "color": 0xff0000}


@pytest.fixture
def mirror():
    return SceneMirror()


@pytest.fixture
def events(mirror):
    received = []
    mirror.add_observer(received.append)
    return received


def test_object_lifecycle(mirror, events):
    mirror.apply({"success": True, "action": "object.create", "object": BOX})
    assert mirror.get_object("a")["type"] == "BoxGeometry"

    moved = dict(BOX, position=[1, 2, 3])
    mirror.apply({"success": True, "action": "object.update", "object": moved})
    assert mirror.get_object("a")["position"] == [1.0, 2.0, 3.0]

    mirror.apply({"success": True, "action": "object.delete", "objectId": "a"})
    assert mirror.get_object("a") is None
    # 重复删除不产生事件
    mirror.apply({"success": True, "action": "object.delete", "objectId": "a"})

    assert [event.kind for event in events] == [OBJECT_ADDED, OBJECT_UPDATED, OBJECT_REMOVED]


def test_scene_create_and_clear(mirror, events):
    mirror.apply({"success": True, "action": "object.create", "object": BOX})
    mirror.apply({"success": True, "action": "scene.clear"})
    assert mirror.snapshot()["objects"] == []

    mirror.apply({"success": True, "action": "scene.create",
                  "scene": {"sceneId": "demo", "objects": []}})
    assert mirror.scene_id == "demo"
    assert [event.kind for event in events] == [OBJECT_ADDED, SCENE_CLEARED, SCENE_CREATED]


def test_render_replaces_snapshot(mirror, events):
    mirror.apply({"success": True, "action": "object.create", "object": dict(BOX, id="stale")})
    mirror.apply({"success": True, "action": "render",
                  "scene": {"sceneId": "s", "objects": [BOX, dict(BOX, id="b")]}})
    assert [obj["id"] for obj in mirror.snapshot()["objects"]] == ["a", "b"]
    assert [event.kind for event in events][1:] == [SCENE_CLEARED, OBJECT_ADDED, OBJECT_ADDED]


@pytest.mark.parametrize("message", [
    {"success": False, "action": "object.update", "error": "Object not found"},
    {"success": False, "error": "Invalid message format"},
    {"success": True, "action": "object.create"},
    {"success": True, "action": "object.create", "object": {"type": "BoxGeometry"}},
    {"success": True, "action": "object.create", "object": dict(BOX, position="up")},
    {"success": True, "action": "object.explode"},
    ["not", "a", "dict"],
])
def test_ignored_messages(mirror, events, message):
    mirror.apply(message)
    assert mirror.snapshot()["objects"] == []
    assert events == []


@pytest.mark.asyncio
async def test_follows_other_clients(relay, transport, server_connection):
    """测试镜像跟随其他客户端的修改"""
    mirror = SceneMirror(transport)
    await wait_for(lambda: len(relay.clients) == 2)

    await server_connection.send_json({
        "command": "object.create",
        "payload": {"id": "remote", "type": "SphereGeometry", "position": [0, 1, 0]},
    })
    await wait_for(lambda: mirror.get_object("remote") is not None)
    assert mirror.get_object("remote")["position"] == [0.0, 1.0, 0.0]

    await server_connection.send_json({"command": "scene.clear"})
    await wait_for(lambda: mirror.snapshot()["objects"] == [])

    mirror.close()
    await server_connection.send_json({"command": "object.create",
                                       "payload": {"id": "late", "type": "BoxGeometry"}})
    for _ in range(3):
        await server_connection.receive_json(timeout=2)
    # 渲染响应在广播之后到达
    await transport.request("render")
    assert mirror.get_object("late") is None


@pytest.mark.asyncio
async def test_resyncs_after_reconnect(relay, store):
    """测试重连后镜像补上断线期间的修改"""
    client = TransportClient(relay.url, connect_timeout=1.0, reconnect_delay=0.01,
                             max_reconnect_attempts=3, command_timeout=2.0)

    async def restart_server(delay):
        await relay.start()

    client._sleep = restart_server
    mirror = SceneMirror(client)
    await client.connect()
    try:
        await relay.stop()
        # 服务器离线时的修改不会广播给镜像
        store.create_object({"id": "offline", "type": "BoxGeometry"})
        await wait_for(lambda: mirror.get_object("offline") is not None, timeout=5.0)
        assert client.reconnect_attempts == 0
    finally:
        mirror.close()
        await client.disconnect()
