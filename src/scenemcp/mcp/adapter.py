"""
SceneMCP MCP协议适配器

该模块把JSON-RPC 2.0形式的MCP请求（initialize、tools/list、tools/call）
转换为场景工具调用。
"""

import json
import logging
from typing import Any, Dict, Optional

from ..common.errors import ToolError
from .tools import SceneToolHandler

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "scenemcp"
SERVER_VERSION = "0.1.0"

# JSON-RPC错误码
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

KNOWN_METHODS = frozenset(["initialize", "ping", "shutdown", "tools/list", "tools/call"])


class MCPAdapter:
    """MCP协议适配器"""

    def __init__(self, tool_handler: SceneToolHandler):
        """初始化MCP适配器

        Args:
            tool_handler: 场景工具处理器
        """
        self.tool_handler = tool_handler
        self.running = True

    async def handle_message(self, message: str) -> Optional[str]:
        """处理MCP消息

        Args:
            message: 输入的JSON消息

        Returns:
            响应JSON消息，通知类消息返回None
        """
        try:
            request = json.loads(message)
        except json.JSONDecodeError:
            return self._create_error_response(None, PARSE_ERROR, "Invalid JSON")

        if not isinstance(request, dict) or "method" not in request:
            return self._create_error_response(None, INVALID_REQUEST, "Invalid request: missing method")

        method = request["method"]
        params = request.get("params") or {}
        request_id = request.get("id")
        is_notification = "id" not in request

        if not self._is_known(method):
            logger.warning(f"未知的方法: {method}")
            if is_notification:
                return None
            return self._create_error_response(request_id, METHOD_NOT_FOUND, f"Unknown method: {method}")

        try:
            result = await self._dispatch(method, params)
        except ToolError as e:
            result, error = None, (INVALID_PARAMS, str(e))
        except Exception as e:
            logger.exception(f"处理MCP消息时出错: {e}")
            result, error = None, (INTERNAL_ERROR, f"Internal error: {e}")
        else:
            error = None

        if is_notification:
            return None
        if error:
            return self._create_error_response(request_id, *error)
        return self._create_success_response(request_id, result)

    async def _dispatch(self, method: str, params: Dict[str, Any]) -> Any:
        if method == "initialize":
            client_info = params.get("clientInfo", {})
            logger.info(f"客户端初始化: {client_info.get('name', '未知')} {client_info.get('version', '未知')}")
            return {
                "protocolVersion": params.get("protocolVersion", PROTOCOL_VERSION),
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
            }
        if method.startswith("notifications/"):
            return None
        if method == "ping":
            return {}
        if method == "shutdown":
            self.running = False
            return {}
        if method == "tools/list":
            return {"tools": self.tool_handler.list_tools()}
        if method == "tools/call":
            name = params.get("name")
            if not name:
                raise ToolError("Missing tool name")
            return await self.tool_handler.call_tool(name, params.get("arguments"))
        raise ToolError(f"Unknown method: {method}")

    @staticmethod
    def _is_known(method: str) -> bool:
        return method in KNOWN_METHODS or method.startswith("notifications/")

    def _create_success_response(self, request_id: Any, result: Any) -> str:
        return json.dumps({"jsonrpc": "2.0", "id": request_id, "result": result})

    def _create_error_response(self, request_id: Any, code: int, message: str) -> str:
        return json.dumps({
            "jsonrpc": "2.0",
            "id": request_id,
            "error": {"code": code, "message": message},
        })
