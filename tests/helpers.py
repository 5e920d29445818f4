"""
测试辅助函数
"""

import asyncio

# 测试服务器只监听IPv4回环地址，端口由系统分配
TEST_HOST = "127.0.0.1"


async def wait_for(predicate, timeout: float = 2.0, interval: float = 0.01):
    """等待条件成立"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(interval)
