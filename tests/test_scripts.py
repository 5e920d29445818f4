"""命令行入口测试模块"""

import logging
import os
from unittest.mock import Mock, patch

import pytest
import yaml

from scenemcp.client import SceneClient, TransportClient
from scenemcp.common import log
from scenemcp.scripts import chat, mcp_stdio, run_server
from tests.helpers import TEST_HOST


def test_server_arguments():
    args = run_server.build_parser().parse_args(["--port", "0", "--log-level", "DEBUG"])
    assert args.port == 0
    assert args.host is None
    assert args.log_level == "DEBUG"


def test_setup_logging(tmp_path):
    log_file = tmp_path / "scenemcp.log"
    with patch("logging.basicConfig") as basic_config:
        log.setup_logging("debug", str(log_file), console=True)

    kwargs = basic_config.call_args.kwargs
    assert kwargs["level"] == logging.DEBUG
    assert kwargs["format"] == log.LOG_FORMAT
    assert kwargs["force"] is True
    file_handler, console_handler = kwargs["handlers"]
    assert file_handler.baseFilename == str(log_file)
    assert isinstance(console_handler, logging.StreamHandler)
    file_handler.close()


def test_relative_log_file_goes_to_log_dir():
    with patch("logging.basicConfig") as basic_config:
        log.setup_logging("INFO", "scenemcp-test.log", console=False)

    (file_handler,) = basic_config.call_args.kwargs["handlers"]
    assert file_handler.baseFilename == os.path.join(log.LOG_DIR, "scenemcp-test.log")
    file_handler.close()


@pytest.mark.asyncio
async def test_chat_reports_unreachable_relay(capsys):
    client = SceneClient(TransportClient(f"ws://{TEST_HOST}:1", connect_timeout=1.0))
    assert await chat.run(client) == 1
    assert "无法连接到中继服务器" in capsys.readouterr().err


def test_mcp_stdio_uses_configured_log_file(tmp_path):
    config_path = tmp_path / "config.yaml"
    with open(config_path, "w") as f:
        yaml.dump({"logging": {"level": "WARNING", "file": "custom.log"}}, f)

    with patch.object(mcp_stdio, "setup_logging") as setup, \
            patch.object(mcp_stdio, "run", Mock()), \
            patch.object(mcp_stdio.asyncio, "run"):
        mcp_stdio.main(["--config", str(config_path)])

    setup.assert_called_once_with("WARNING", "custom.log", console=False)
