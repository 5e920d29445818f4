"""
SceneMCP Error Definitions

This module defines custom exceptions for SceneMCP.
"""

from typing import Optional, Dict, Any
from .protocol import ErrorCodes


class SceneMCPError(Exception):
    """Base exception for all SceneMCP errors"""
    def __init__(self, message: str, code: str = ErrorCodes.INTERNAL_ERROR,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self):
        return self.message


class MalformedMessageError(SceneMCPError):
    """Raised when an inbound message is not JSON or violates the envelope schema"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.MALFORMED_MESSAGE, details)


class ParameterError(SceneMCPError):
    """Raised when a command payload is missing or carries invalid fields"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.INVALID_PARAMS, details)


class ObjectNotFoundError(SceneMCPError):
    """Raised when a command references an object id that is not in the scene"""
    def __init__(self, object_id: str):
        super().__init__(f"Object not found: {object_id}", ErrorCodes.OBJECT_NOT_FOUND,
                         {"id": object_id})
        self.object_id = object_id


class ConnectionError(SceneMCPError):
    """Raised when there are connection issues"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 code: str = ErrorCodes.CONNECTION_ERROR):
        super().__init__(message, code, details)


class ConnectionTimeoutError(ConnectionError):
    """Raised when the channel does not open before the connect deadline"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, ErrorCodes.CONNECTION_TIMEOUT)


class RequestTimeoutError(SceneMCPError):
    """Raised when no reply with a matching correlation id arrives in time"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.REQUEST_TIMEOUT, details)


class ToolError(SceneMCPError):
    """工具调用相关的错误"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.TOOL_ERROR, details)


class ConfigError(SceneMCPError):
    """配置相关的错误"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.CONFIG_ERROR, details)
