"""
SceneMCP common definitions shared by the client and the relay server
"""

from .protocol import Command, ErrorCodes, COMMAND_NAMES
from .errors import SceneMCPError

__all__ = ['Command', 'ErrorCodes', 'COMMAND_NAMES', 'SceneMCPError']
