"""
SceneMCP logging setup used by the command line entry points
"""

import os
import logging
import tempfile
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DIR = os.path.join(tempfile.gettempdir(), "scenemcp")


def setup_logging(level: str = "INFO", log_file: Optional[str] = "scenemcp.log",
                  console: bool = True) -> None:
    """配置日志

    Args:
        level: 日志级别名称
        log_file: 日志文件名，相对路径放在临时目录下，为None时不写文件
        console: 是否同时输出到stderr
    """
    handlers = []
    if log_file:
        if not os.path.isabs(log_file):
            os.makedirs(LOG_DIR, exist_ok=True)
            log_file = os.path.join(LOG_DIR, log_file)
        handlers.append(logging.FileHandler(log_file))
    if console:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers or None,
        force=True
    )
