"""
SceneMCP - text driven scene editing over a WebSocket relay

Free text is parsed into scene commands, sent to a relay server that owns
the authoritative scene, and reflected back to every connected client.
"""

import logging

from .nlp import parse, command_to_object
from .scene import SceneStore
from .client import SceneClient, TransportClient
from .server import RelayServer

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'parse',
    'command_to_object',
    'SceneStore',
    'SceneClient',
    'TransportClient',
    'RelayServer',
]

# 版本信息
__version__ = '0.1.0'
