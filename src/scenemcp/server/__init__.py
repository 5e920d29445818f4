"""
SceneMCP Server Package
"""

from .server import RelayServer, ClientRegistry, CommandRegistry
from .handlers import register_handlers

__all__ = ['RelayServer', 'ClientRegistry', 'CommandRegistry', 'register_handlers']
