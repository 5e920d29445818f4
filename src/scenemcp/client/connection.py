"""SceneMCP传输客户端模块"""

import asyncio
import inspect
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from websockets.asyncio.client import connect, ClientConnection
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from ..common.config import DEFAULT_HOST, DEFAULT_PORT
from ..common.errors import ConnectionError, ConnectionTimeoutError, RequestTimeoutError
from ..common.protocol import Command

logger = logging.getLogger(__name__)

DEFAULT_URL = f"ws://{DEFAULT_HOST}:{DEFAULT_PORT}"

MessageCallback = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]
StateCallback = Callable[['ConnectionState'], None]


class ConnectionState(Enum):
    """连接状态"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"  # 重连次数用尽


class TransportClient:
    """WebSocket传输客户端

    维护到中继服务器的单个持久连接，负责序列化命令、分发收到的消息，
    并在连接意外关闭后按线性退避重新连接。
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        connect_timeout: float = 5.0,
        reconnect_delay: float = 1.0,
        max_reconnect_attempts: int = 5,
        command_timeout: float = 30.0
    ):
        """初始化传输客户端

        Args:
            url: 服务器地址
            connect_timeout: 建立连接的超时时间(秒)
            reconnect_delay: 重连基础延迟(秒)，第n次重连等待 n * reconnect_delay
            max_reconnect_attempts: 最大重连次数
            command_timeout: request() 等待响应的默认超时时间(秒)
        """
        self.url = url
        self.connect_timeout = connect_timeout
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_attempts = max_reconnect_attempts
        self.command_timeout = command_timeout

        self._ws: Optional[ClientConnection] = None
        self._state = ConnectionState.DISCONNECTED
        self._reconnect_attempts = 0
        self._closing = False
        self._receiver_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._listeners: Dict[int, MessageCallback] = {}
        self._state_listeners: Dict[int, StateCallback] = {}
        self._next_listener_id = 0
        self._response_futures: Dict[str, asyncio.Future] = {}
        self._sleep = asyncio.sleep

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED and self._ws is not None

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        logger.debug(f"连接状态: {self._state.value} -> {state.value}")
        self._state = state
        for callback in list(self._state_listeners.values()):
            try:
                callback(state)
            except Exception:
                logger.exception("状态监听器出错")

    async def connect(self) -> bool:
        """连接到服务器

        Returns:
            连接成功时返回True

        Raises:
            ConnectionTimeoutError: 在connect_timeout内没有建立连接
            ConnectionError: 连接在建立前出错
        """
        if self.is_connected():
            return True
        self._closing = False
        # 手动连接取代等待中的自动重连
        await self._cancel_reconnect()
        await self._open()
        return True

    async def _cancel_reconnect(self) -> None:
        task, self._reconnect_task = self._reconnect_task, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _dial(self) -> ClientConnection:
        return await connect(self.url, open_timeout=None)

    async def _open(self) -> None:
        """建立连接并启动消息接收任务"""
        self._set_state(ConnectionState.CONNECTING)
        try:
            ws = await asyncio.wait_for(self._dial(), timeout=self.connect_timeout)
        except asyncio.TimeoutError:
            self._set_state(ConnectionState.DISCONNECTED)
            logger.error(f"连接超时: {self.url}")
            raise ConnectionTimeoutError(
                f"Connection timeout: {self.url}",
                {"url": self.url, "timeout": self.connect_timeout}
            )
        except (OSError, InvalidHandshake, InvalidURI) as e:
            self._set_state(ConnectionState.DISCONNECTED)
            logger.error(f"连接服务器失败: {e}")
            raise ConnectionError(f"Connection failed: {e}", {"url": self.url})

        self._ws = ws
        self._reconnect_attempts = 0
        self._receiver_task = asyncio.create_task(self._receive_messages(ws))
        self._set_state(ConnectionState.CONNECTED)
        logger.info(f"已连接到服务器: {self.url}")

    async def _receive_messages(self, ws: ClientConnection) -> None:
        """接收消息直到连接关闭"""
        try:
            async for message in ws:
                await self._handle_message(message)
        except ConnectionClosed as e:
            logger.debug(f"连接关闭: {e}")
        finally:
            if self._ws is ws:
                self._handle_close()

    def _handle_close(self) -> None:
        """处理连接关闭"""
        self._ws = None
        self._fail_pending(ConnectionError("Connection closed"))
        self._set_state(ConnectionState.DISCONNECTED)
        if self._closing:
            return
        logger.warning(f"与服务器的连接已断开: {self.url}")
        self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        """按线性退避重连，次数用尽后进入FAILED状态"""
        while self._reconnect_attempts < self.max_reconnect_attempts:
            self._reconnect_attempts += 1
            delay = self.reconnect_delay * self._reconnect_attempts
            logger.info(f"尝试重连 ({self._reconnect_attempts}/{self.max_reconnect_attempts})，"
                        f"{delay:.1f}秒后")
            await self._sleep(delay)
            if self._closing or self.is_connected():
                return
            try:
                await self._open()
                return
            except ConnectionError as e:
                logger.error(f"重连失败: {e}")

        logger.error(f"重连{self.max_reconnect_attempts}次失败，放弃连接: {self.url}")
        self._set_state(ConnectionState.FAILED)

    async def _handle_message(self, message: Union[str, bytes]) -> None:
        """解析消息并通知所有订阅者"""
        try:
            data = json.loads(message)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.error(f"无效的JSON消息: {message!r}")
            return

        if isinstance(data, dict):
            message_id = data.get("id")
            future = self._response_futures.get(message_id) if message_id else None
            if future is not None and not future.done():
                future.set_result(data)

        for callback in list(self._listeners.values()):
            try:
                result = callback(data)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("消息监听器出错")

    def _fail_pending(self, error: Exception) -> None:
        for future in self._response_futures.values():
            if not future.done():
                future.set_exception(error)
        self._response_futures.clear()

    async def send(self, command: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """发送命令

        返回值只表示消息已发出，不代表服务器已成功执行命令。

        Args:
            command: 命令名称
            payload: 命令参数

        Returns:
            {"success": True, "data": payload, "id": 关联ID}

        Raises:
            ConnectionError: 未连接到服务器
        """
        message = Command.create(command, payload)
        await self._transmit(message)
        return {"success": True, "data": payload, "id": message.id}

    async def request(
        self,
        command: str,
        payload: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """发送命令并等待关联ID相同的响应

        Raises:
            ConnectionError: 未连接或等待期间连接断开
            RequestTimeoutError: 超时未收到响应
        """
        message = Command.create(command, payload)
        future = asyncio.get_running_loop().create_future()
        self._response_futures[message.id] = future
        try:
            await self._transmit(message)
            return await asyncio.wait_for(future, timeout=timeout or self.command_timeout)
        except asyncio.TimeoutError:
            logger.error(f"命令响应超时: {command}")
            raise RequestTimeoutError(f"No reply to {command}", {"id": message.id})
        finally:
            self._response_futures.pop(message.id, None)

    async def _transmit(self, message: Command) -> None:
        if not self.is_connected():
            raise ConnectionError("Client not connected")
        try:
            await self._ws.send(message.to_json())
        except ConnectionClosed as e:
            logger.error(f"发送命令失败: {e}")
            raise ConnectionError(f"Send failed: {e}")
        logger.debug(f"已发送命令: {message.command} ({message.id})")

    async def disconnect(self) -> None:
        """断开连接，可重复调用"""
        self._closing = True
        await self._cancel_reconnect()

        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                await ws.close()
            except Exception as e:
                logger.error(f"关闭连接失败: {e}")
            logger.info("已断开服务器连接")

        if self._receiver_task is not None:
            try:
                await self._receiver_task
            except asyncio.CancelledError:
                pass
            self._receiver_task = None

        self._fail_pending(ConnectionError("Client disconnected"))
        self._set_state(ConnectionState.DISCONNECTED)

    def _add_listener(self, registry: Dict[int, Any], callback: Any) -> Callable[[], None]:
        listener_id = self._next_listener_id
        self._next_listener_id += 1
        registry[listener_id] = callback

        def unsubscribe() -> None:
            registry.pop(listener_id, None)
        return unsubscribe

    def on_message(self, callback: MessageCallback) -> Callable[[], None]:
        """注册消息监听器

        Args:
            callback: 每收到一条消息调用一次，可以是普通函数或协程函数

        Returns:
            取消注册的函数
        """
        return self._add_listener(self._listeners, callback)

    def on_state_change(self, callback: StateCallback) -> Callable[[], None]:
        """注册连接状态监听器，返回取消注册的函数"""
        return self._add_listener(self._state_listeners, callback)
