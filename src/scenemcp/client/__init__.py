"""
SceneMCP Client Package
"""

from .connection import TransportClient, ConnectionState
from .client import SceneClient
from .mirror import SceneMirror

__all__ = ['TransportClient', 'ConnectionState', 'SceneClient', 'SceneMirror']
