"""
SceneMCP工具模块

该模块定义了AI助手可调用的场景工具，以及把工具调用转换为中继命令的处理器。
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import jsonschema

from ..client.client import SceneClient
from ..common.errors import ConnectionError, ParameterError, ToolError
from ..nlp.parser import generate_object_id, parse_color, parse_geometry
from ..scene.models import GeometryKind, to_color

logger = logging.getLogger(__name__)

VECTOR_SCHEMA = {
    "type": "array",
    "items": {"type": "number"},
    "minItems": 3,
    "maxItems": 3,
}


@dataclass
class ToolDefinition:
    """MCP工具定义类"""
    name: str
    description: str
    input_schema: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """转换为MCP tools/list格式"""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

    def validate_params(self, params: Dict[str, Any]) -> None:
        """验证参数是否符合schema

        Raises:
            ToolError: 参数验证失败
        """
        try:
            jsonschema.validate(instance=params, schema=self.input_schema)
        except jsonschema.exceptions.ValidationError as e:
            logger.error(f"参数验证失败: tool={self.name}, error={e.message}")
            raise ToolError(f"Invalid arguments for {self.name}: {e.message}")


TOOLS: List[ToolDefinition] = [
    ToolDefinition(
        name="addObject",
        description="Add an object to the scene",
        input_schema={
            "type": "object",
            "properties": {
                "type": {"type": "string"},
                "position": VECTOR_SCHEMA,
                "color": {"type": "string"},
            },
            "required": ["type", "position", "color"],
        },
    ),
    ToolDefinition(
        name="moveObject",
        description="Move an object to a new position",
        input_schema={
            "type": "object",
            "properties": {
                "id": {"type": "string"},
                "position": VECTOR_SCHEMA,
            },
            "required": ["id", "position"],
        },
    ),
    ToolDefinition(
        name="removeObject",
        description="Remove an object",
        input_schema={
            "type": "object",
            "properties": {
                "id": {"type": "string"},
            },
            "required": ["id"],
        },
    ),
    ToolDefinition(
        name="getSceneState",
        description="Get the current scene state",
        input_schema={"type": "object", "properties": {}},
    ),
]


def text_result(text: str, is_error: bool = False) -> Dict[str, Any]:
    """创建文本结果"""
    return {
        "content": [{"type": "text", "text": text}],
        "isError": is_error,
    }


class SceneToolHandler:
    """场景工具处理器

    修改类工具通过SceneClient发送命令；getSceneState直接读取快照。
    """

    def __init__(self, client: SceneClient,
                 snapshot: Optional[Callable[[], Dict[str, Any]]] = None):
        """初始化处理器

        Args:
            client: 已连接（或稍后连接）的场景客户端
            snapshot: 返回场景快照的函数，默认使用客户端的场景镜像
        """
        self.client = client
        if snapshot is None:
            if client.mirror is None:
                raise ValueError("A snapshot source is required when the client has no mirror")
            snapshot = client.mirror.snapshot
        self.snapshot = snapshot
        self._definitions = {tool.name: tool for tool in TOOLS}
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
            "addObject": self.handle_add_object,
            "moveObject": self.handle_move_object,
            "removeObject": self.handle_remove_object,
            "getSceneState": self.handle_get_scene_state,
        }

    def list_tools(self) -> List[Dict[str, Any]]:
        """列出可用工具"""
        return [tool.to_dict() for tool in TOOLS]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """调用工具

        Raises:
            ToolError: 未知工具或参数无效
        """
        definition = self._definitions.get(name)
        if definition is None:
            raise ToolError(f"Unknown tool: {name}")
        arguments = arguments or {}
        definition.validate_params(arguments)

        logger.info(f"调用工具: {name} {arguments}")
        try:
            return await self._handlers[name](arguments)
        except ConnectionError as e:
            logger.error(f"工具调用失败: {e}")
            return text_result(f"Command not sent, no relay connection: {e}", is_error=True)

    async def handle_add_object(self, params: Dict[str, Any]) -> Dict[str, Any]:
        color = parse_color(params["color"])
        if color is None:
            try:
                color = to_color(params["color"])
            except ParameterError:
                raise ToolError(f"Unknown color: {params['color']}")
        geometry = parse_geometry(params["type"]) or GeometryKind.from_value(params["type"]).value
        x, y, z = params["position"]
        obj = {
            "id": generate_object_id(),
            "type": geometry,
            "properties": {
                "position": {"x": x, "y": y, "z": z},
                "materialOptions": {"color": color},
            },
        }
        await self.client.create_object(obj)
        return text_result(f"Object add command sent: {obj['id']}")

    async def handle_move_object(self, params: Dict[str, Any]) -> Dict[str, Any]:
        await self.client.update_object(params["id"], {"position": params["position"]})
        return text_result(f"Object move command sent: {params['id']}")

    async def handle_remove_object(self, params: Dict[str, Any]) -> Dict[str, Any]:
        await self.client.delete_object(params["id"])
        return text_result(f"Object remove command sent: {params['id']}")

    async def handle_get_scene_state(self, params: Dict[str, Any]) -> Dict[str, Any]:
        state = self.snapshot()
        return text_result(f"Current scene state:\n{json.dumps(state, indent=2)}")
