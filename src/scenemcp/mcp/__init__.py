"""
SceneMCP MCP模块

该模块实现了Model Context Protocol (MCP)工具接口，允许AI助手修改和读取场景。
"""

from .adapter import MCPAdapter
from .server import MCPStdioServer
from .tools import SceneToolHandler, TOOLS

__all__ = ['MCPAdapter', 'MCPStdioServer', 'SceneToolHandler', 'TOOLS']
