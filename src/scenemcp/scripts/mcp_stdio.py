#!/usr/bin/env python
"""MCP标准输入/输出模式启动脚本"""

import argparse
import asyncio
import logging

from ..client.client import SceneClient
from ..common.config import ConfigManager
from ..common.errors import ConnectionError, RequestTimeoutError
from ..common.log import setup_logging
from ..mcp import MCPAdapter, MCPStdioServer, SceneToolHandler

logger = logging.getLogger(__name__)


async def run(client: SceneClient) -> None:
    """连接中继服务器并在标准输入/输出上提供工具"""
    try:
        await client.connect()
        await client.fetch_scene()
    except (ConnectionError, RequestTimeoutError) as e:
        # 客户端未连接时工具调用会返回错误结果
        logger.error(f"无法连接到中继服务器: {e}")

    server = MCPStdioServer(MCPAdapter(SceneToolHandler(client)))
    try:
        await server.start_stdio()
    finally:
        await client.disconnect()


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="SceneMCP工具服务器（标准输入/输出）")
    parser.add_argument("--url", help="中继服务器地址")
    parser.add_argument("--config", help="配置文件路径")
    parser.add_argument("--log-level", default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="日志级别")
    args = parser.parse_args(argv)

    config = ConfigManager(args.config)

    # 标准输出用于协议消息，日志只写文件
    setup_logging(args.log_level or config.get("logging.level", "INFO"),
                  config.get("logging.file"), console=False)

    asyncio.run(run(SceneClient.from_config(config, url=args.url)))


if __name__ == "__main__":
    main()
