"""
SceneMCP Protocol Definitions

This module defines the wire protocol spoken between the SceneMCP client and
the relay server. It includes the command envelope, the reply format, and
helpers for building replies.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import uuid
import json

# 命令名称
SCENE_CREATE = "scene.create"
SCENE_CLEAR = "scene.clear"
OBJECT_CREATE = "object.create"
OBJECT_UPDATE = "object.update"
OBJECT_DELETE = "object.delete"
RENDER = "render"

COMMAND_NAMES = (
    SCENE_CREATE,
    SCENE_CLEAR,
    OBJECT_CREATE,
    OBJECT_UPDATE,
    OBJECT_DELETE,
    RENDER,
)

# Commands that change the scene and are broadcast to other clients
MUTATING_COMMANDS = frozenset(COMMAND_NAMES) - {RENDER}

INVALID_MESSAGE_FORMAT = "Invalid message format"
OBJECT_NOT_FOUND = "Object not found"

# Server-bound envelope, validated with jsonschema at the relay
COMMAND_SCHEMA = {
    "type": "object",
    "properties": {
        "command": {"type": "string", "minLength": 1},
        "payload": {"type": ["object", "null"]},
        "id": {"type": ["string", "null"]},
    },
    "required": ["command"],
}


def new_correlation_id() -> str:
    """Return a fresh correlation token"""
    return str(uuid.uuid4())


@dataclass
class Command:
    """Standard command format for SceneMCP"""
    command: str
    payload: Optional[Dict[str, Any]] = None
    id: str = field(default_factory=new_correlation_id)

    @classmethod
    def create(cls, command: str, payload: Optional[Dict[str, Any]] = None) -> 'Command':
        """Create a new command instance with a unique ID"""
        return cls(command=command, payload=payload, id=new_correlation_id())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Command':
        """Build a command from a decoded (and already validated) envelope"""
        return cls(
            command=data["command"],
            payload=data.get("payload") or {},
            id=data.get("id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert command to dictionary format"""
        result = {
            "command": self.command,
            "id": self.id,
        }
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_json(self) -> str:
        """Convert command to JSON string"""
        return json.dumps(self.to_dict())


def create_reply(
    action: Optional[str] = None,
    success: bool = True,
    error: Optional[str] = None,
    command_id: Optional[str] = None,
    **extra: Any
) -> Dict[str, Any]:
    """Create a client-bound reply

    Args:
        action: the command the reply answers
        success: whether the command was applied
        error: human readable error, only for failures
        command_id: correlation token copied from the request
        **extra: echoed data such as ``object`` or ``scene``

    Returns:
        The reply dictionary, ready for ``json.dumps``
    """
    reply: Dict[str, Any] = {"success": success}
    if action is not None:
        reply["action"] = action
    reply.update(extra)
    if error is not None:
        reply["error"] = error
    if command_id is not None:
        reply["id"] = command_id
    return reply


def create_error_reply(
    error: str,
    action: Optional[str] = None,
    command_id: Optional[str] = None
) -> Dict[str, Any]:
    """Create a failure reply"""
    return create_reply(action=action, success=False, error=error, command_id=command_id)


# Error codes
class ErrorCodes:
    """Standard error codes for SceneMCP"""
    MALFORMED_MESSAGE = "MALFORMED_MESSAGE"
    INVALID_PARAMS = "INVALID_PARAMS"
    OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
    TOOL_ERROR = "TOOL_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
