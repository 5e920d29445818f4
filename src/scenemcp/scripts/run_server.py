#!/usr/bin/env python
"""
中继服务器启动脚本

此脚本启动SceneMCP中继服务器，直到收到中断信号。
"""

import argparse
import asyncio
import logging
import signal

from ..common.config import ConfigManager
from ..common.log import setup_logging
from ..server import RelayServer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SceneMCP中继服务器")
    parser.add_argument("--host", help="WebSocket服务器主机名")
    parser.add_argument("--port", type=int, help="WebSocket服务器端口")
    parser.add_argument("--config", help="配置文件路径")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="日志级别"
    )
    return parser


async def run(server: RelayServer) -> None:
    await server.start()

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows不支持add_signal_handler
            pass

    try:
        await stop_event.wait()
    finally:
        logger.info("正在关闭服务器...")
        await server.stop()


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    config = ConfigManager(args.config)

    setup_logging(args.log_level or config.get("logging.level", "INFO"),
                  config.get("logging.file"))

    server = RelayServer(
        host=args.host or config.get("server.host"),
        port=args.port if args.port is not None else config.get("server.port"),
    )
    try:
        asyncio.run(run(server))
    except KeyboardInterrupt:
        logger.info("收到停止信号")


if __name__ == "__main__":
    main()
