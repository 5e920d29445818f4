"""
SceneMCP MCP服务器

该模块通过标准输入/输出提供MCP工具服务。支持两种消息分帧：
带 ``Content-Length`` 头的消息，以及每行一条JSON的消息；响应使用与请求相同的分帧。
"""

import asyncio
import logging
import sys
from typing import Optional

from .adapter import MCPAdapter

logger = logging.getLogger(__name__)

CONTENT_LENGTH = "content-length:"


class MCPStdioServer:
    """MCP标准输入/输出服务器"""

    def __init__(self, adapter: MCPAdapter):
        self.adapter = adapter
        self.running = False

    async def _read_message(self, reader: asyncio.StreamReader) -> Optional[tuple]:
        """读取一条消息

        Returns:
            (消息内容, 是否使用Content-Length分帧)，输入结束时返回None
        """
        while True:
            line = await reader.readline()
            if not line:
                return None
            text = line.decode('utf-8').strip()
            if not text:
                continue
            if not text.lower().startswith(CONTENT_LENGTH):
                return text, False

            content_length = int(text[len(CONTENT_LENGTH):].strip())
            # 读取头部剩余行直到空行
            while (await reader.readline()).strip():
                pass
            content = await reader.readexactly(content_length)
            return content.decode('utf-8'), True

    @staticmethod
    def _frame(response: str, framed: bool) -> bytes:
        body = response.encode('utf-8')
        if framed:
            return f"Content-Length: {len(body)}\r\n\r\n".encode('utf-8') + body
        return body + b"\n"

    async def serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """在给定的流上处理消息，直到输入结束或收到shutdown"""
        self.running = True
        try:
            while self.running and self.adapter.running:
                message = await self._read_message(reader)
                if message is None:
                    break
                content, framed = message

                response = await self.adapter.handle_message(content)
                if response is None:
                    continue
                writer.write(self._frame(response, framed))
                await writer.drain()
        except (asyncio.IncompleteReadError, ValueError) as e:
            logger.error(f"标准输入/输出消息格式错误: {e}")
        finally:
            self.running = False
            logger.info("MCP标准输入/输出服务器已停止")

    async def start_stdio(self) -> None:
        """通过标准输入/输出启动MCP服务器"""
        logger.info("通过标准输入/输出启动MCP服务器")
        loop = asyncio.get_running_loop()

        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)

        writer_transport, writer_protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, sys.stdout
        )
        writer = asyncio.StreamWriter(writer_transport, writer_protocol, None, loop)

        await self.serve(reader, writer)
