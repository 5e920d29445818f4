"""
SceneMCP Relay Server Implementation

This module implements the WebSocket relay that owns the authoritative
scene. Every connected client is tracked in a registry; replies go back on
the sending connection and successful scene changes are broadcast to every
other client.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

import jsonschema
from websockets.asyncio.server import serve, broadcast, Server, ServerConnection
from websockets.exceptions import ConnectionClosed

from ..common import protocol
from ..common.config import DEFAULT_HOST, DEFAULT_PORT
from ..common.errors import MalformedMessageError, ObjectNotFoundError, SceneMCPError
from ..common.protocol import Command, create_reply, create_error_reply
from ..scene.store import SceneStore
from .handlers import SceneCommandHandler, register_handlers

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Optional[Dict[str, Any]]]]


def _reject_constant(name: str) -> Any:
    # NaN, Infinity and -Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


class CommandRegistry:
    """Registry for command handlers"""
    def __init__(self):
        self._handlers: Dict[str, Handler] = {}

    def register(self, command: str, handler: Handler):
        """Register a command handler"""
        self._handlers[command] = handler

    def get_handler(self, command: str) -> Optional[Handler]:
        """Get handler for a command"""
        return self._handlers.get(command)

    def commands(self) -> List[str]:
        return list(self._handlers)


@dataclass
class ClientSession:
    """State kept for one connected client"""
    session_id: str
    remote_address: Any
    connected_at: datetime = field(default_factory=datetime.now)
    last_message_at: Optional[datetime] = None
    messages_received: int = 0


class ClientRegistry:
    """Connection -> session registry"""

    def __init__(self):
        self._sessions: Dict[ServerConnection, ClientSession] = {}
        self._current: Optional[ServerConnection] = None

    def register(self, connection: ServerConnection) -> ClientSession:
        session = ClientSession(
            session_id=str(uuid.uuid4()),
            remote_address=getattr(connection, "remote_address", None),
        )
        self._sessions[connection] = session
        return session

    def unregister(self, connection: ServerConnection) -> None:
        self._sessions.pop(connection, None)
        if self._current is connection:
            self._current = None

    def touch(self, connection: ServerConnection) -> None:
        """Record a message from ``connection``; it becomes the current client"""
        session = self._sessions.get(connection)
        if session is not None:
            session.messages_received += 1
            session.last_message_at = datetime.now()
        self._current = connection

    @property
    def current(self) -> Optional[ServerConnection]:
        """The last connection that sent any message"""
        return self._current

    def get(self, connection: ServerConnection) -> Optional[ClientSession]:
        return self._sessions.get(connection)

    def connections(self) -> List[ServerConnection]:
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)


class RelayServer:
    """SceneMCP WebSocket relay server"""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                 store: Optional[SceneStore] = None):
        self.host = host
        self.port = port
        self.store = store or SceneStore()
        self.command_registry = CommandRegistry()
        self.clients = ClientRegistry()
        self._server: Optional[Server] = None
        register_handlers(self, SceneCommandHandler(self.store))

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    async def handle_client(self, websocket: ServerConnection):
        """Handle client connection"""
        session = self.clients.register(websocket)
        logger.info(f"Client connected: {session.remote_address} ({session.session_id})")
        try:
            async for message in websocket:
                await self.handle_message(websocket, message)
        except ConnectionClosed:
            pass
        except Exception:
            logger.exception("Unexpected error in client handler")
        finally:
            self.clients.unregister(websocket)
            logger.info(f"Client disconnected: {session.remote_address}")

    @staticmethod
    def decode(message: Any) -> Command:
        """Parse and validate a server-bound message

        Raises:
            MalformedMessageError: if the message is not JSON or not a command envelope
        """
        try:
            data = json.loads(message, parse_constant=_reject_constant)
            jsonschema.validate(instance=data, schema=protocol.COMMAND_SCHEMA)
        except (ValueError, TypeError) as e:
            raise MalformedMessageError("Invalid JSON format", {"reason": str(e)})
        except jsonschema.exceptions.ValidationError as e:
            raise MalformedMessageError("Invalid command envelope", {"reason": e.message})
        return Command.from_dict(data)

    async def handle_message(self, websocket: ServerConnection, message: Any) -> None:
        """Process one inbound message and reply on the same connection"""
        self.clients.touch(websocket)
        try:
            command = self.decode(message)
        except MalformedMessageError as e:
            logger.error(f"Invalid message: {message!r} ({e.details.get('reason')})")
            await self._send(websocket, create_error_reply(protocol.INVALID_MESSAGE_FORMAT))
            return

        logger.debug(f"Received command: {command.command} {command.payload}")
        handler = self.command_registry.get_handler(command.command)
        if not handler:
            logger.warning(f"Ignoring unknown command: {command.command}")
            return

        try:
            extra = await handler(command.payload) or {}
            reply = create_reply(command.command, command_id=command.id, **extra)
        except ObjectNotFoundError as e:
            logger.info(f"{command.command}: {e}")
            reply = create_error_reply(protocol.OBJECT_NOT_FOUND, command.command, command.id)
        except SceneMCPError as e:
            logger.info(f"{command.command} rejected: {e}")
            reply = create_error_reply(str(e), command.command, command.id)
        except Exception as e:
            logger.exception("Error executing command")
            reply = create_error_reply(f"Internal error: {e}", command.command, command.id)

        await self._send(websocket, reply)

        if reply["success"] and command.command in protocol.MUTATING_COMMANDS:
            self.broadcast({key: value for key, value in reply.items() if key != "id"},
                           exclude=websocket)

    async def _send(self, websocket: ServerConnection, reply: Dict[str, Any]) -> None:
        try:
            await websocket.send(json.dumps(reply, allow_nan=False))
        except ConnectionClosed:
            logger.debug("Reply dropped, client already gone")

    def broadcast(self, message: Dict[str, Any], exclude: Optional[ServerConnection] = None) -> int:
        """Send ``message`` to every registered client except ``exclude``

        Returns:
            The number of clients the message was queued for
        """
        targets = [conn for conn in self.clients.connections() if conn is not exclude]
        if targets:
            broadcast(targets, json.dumps(message, allow_nan=False))
        return len(targets)

    async def start(self):
        """Start the server"""
        if self._server is not None:
            logger.warning("Server already running")
            return
        self._server = await serve(self.handle_client, self.host, self.port)
        if self.port == 0:
            self.port = self._server.sockets[0].getsockname()[1]
        logger.info(f"Relay server started on {self.url}")

    async def serve_forever(self):
        """Start the server and wait until it is closed"""
        await self.start()
        await self._server.wait_closed()

    async def stop(self):
        """Stop the server"""
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()
        await server.wait_closed()
        logger.info("Relay server stopped")
