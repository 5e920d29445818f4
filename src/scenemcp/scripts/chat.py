#!/usr/bin/env python
"""
命令行聊天脚本

从标准输入读取文本命令，通过中继服务器修改场景并打印助手的回复。
"""

import argparse
import asyncio
import logging
import sys

from ..assistant import SceneAssistant
from ..client.client import SceneClient
from ..common.config import ConfigManager
from ..common.errors import ConnectionError, RequestTimeoutError
from ..common.log import setup_logging

logger = logging.getLogger(__name__)

PROMPT = "> "
EXIT_WORDS = ("quit", "exit")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SceneMCP聊天客户端")
    parser.add_argument("--url", help="中继服务器地址，如 ws://localhost:3000")
    parser.add_argument("--config", help="配置文件路径")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="日志级别"
    )
    return parser


async def chat_loop(assistant: SceneAssistant) -> None:
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, _read_line)
        if line is None or line.strip().lower() in EXIT_WORDS:
            break
        reply = await assistant.handle(line)
        if reply:
            print(reply, flush=True)


def _read_line():
    try:
        return input(PROMPT)
    except EOFError:
        return None


async def run(client: SceneClient) -> int:
    try:
        await client.connect()
    except ConnectionError as e:
        print(f"无法连接到中继服务器: {e}", file=sys.stderr)
        return 1

    try:
        try:
            await client.fetch_scene()
        except RequestTimeoutError:
            logger.warning("未收到场景快照，从空场景开始")
        await chat_loop(SceneAssistant(client))
    finally:
        await client.disconnect()
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = ConfigManager(args.config)

    # 日志只写文件，避免打断交互输出
    setup_logging(args.log_level or config.get("logging.level", "INFO"),
                  config.get("logging.file"), console=False)

    try:
        return asyncio.run(run(SceneClient.from_config(config, url=args.url)))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
