"""
SceneMCP 测试配置
"""

import aiohttp
import pytest
import pytest_asyncio

from scenemcp.client import SceneClient, TransportClient
from scenemcp.scene import SceneStore
from scenemcp.server import RelayServer
from tests.helpers import TEST_HOST


@pytest.fixture
def store():
    """创建空场景存储"""
    return SceneStore()


@pytest_asyncio.fixture
async def relay(store):
    """启动中继服务器"""
    server = RelayServer(host=TEST_HOST, port=0, store=store)
    await server.start()
    yield server
    await server.stop()


@pytest_asyncio.fixture
async def transport(relay):
    """创建已连接的传输客户端"""
    client = TransportClient(relay.url, connect_timeout=2.0, reconnect_delay=0.01,
                             max_reconnect_attempts=2, command_timeout=2.0)
    await client.connect()
    yield client
    await client.disconnect()


@pytest_asyncio.fixture
async def scene_client(transport):
    """创建已连接的场景客户端"""
    client = SceneClient(transport)
    yield client
    await client.disconnect()


@pytest_asyncio.fixture
async def server_session():
    """创建aiohttp会话"""
    async with aiohttp.ClientSession() as session:
        yield session


@pytest_asyncio.fixture
async def server_connection(server_session, relay):
    """创建到中继服务器的独立WebSocket连接"""
    async with server_session.ws_connect(relay.url) as ws:
        yield ws
