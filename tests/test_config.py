"""
测试配置管理模块
"""

import os
import tempfile

import pytest
import yaml

from scenemcp.client import SceneClient
from scenemcp.common.config import ConfigManager
from scenemcp.common.errors import ConfigError


class TestConfigManager:
    """测试配置管理器"""

    def setup_method(self):
        """测试前准备"""
        # 创建临时配置文件
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.temp_dir, "config.yaml")

    def teardown_method(self):
        """测试后清理"""
        # 删除临时文件
        if os.path.exists(self.config_path):
            os.remove(self.config_path)
        os.rmdir(self.temp_dir)

    def test_init_default(self):
        """测试默认初始化"""
        config = ConfigManager(self.config_path, use_env=False)

        # 验证默认配置
        assert config.get("server.host") == "localhost"
        assert config.get("server.port") == 3000
        assert config.get("client.url") == "ws://localhost:3000"
        assert config.get("client.connect_timeout") == 5.0
        assert config.get("client.reconnect_delay") == 1.0
        assert config.get("client.max_reconnect_attempts") == 5

        # 验证配置文件已创建
        assert os.path.exists(self.config_path)

    def test_no_file(self):
        """测试不使用配置文件"""
        config = ConfigManager(use_env=False)
        assert config.get("server.port") == 3000
        config.set("server.port", 4000)
        assert config.get("server.port") == 4000
        assert not os.path.exists(self.config_path)

    def test_load_config(self):
        """测试加载配置"""
        # 创建测试配置文件
        test_config = {
            "server": {
                "host": "127.0.0.1",
                "port": 8080
            }
        }

        with open(self.config_path, "w") as f:
            yaml.dump(test_config, f)

        # 加载配置
        config = ConfigManager(self.config_path, use_env=False)

        # 验证配置已加载
        assert config.get("server.host") == "127.0.0.1"
        assert config.get("server.port") == 8080

        # 验证默认配置仍然存在
        assert config.get("client.command_timeout") == 30.0

    def test_empty_file(self):
        """测试空配置文件"""
        open(self.config_path, "w").close()
        config = ConfigManager(self.config_path, use_env=False)
        assert config.get("server.port") == 3000

    def test_invalid_file(self):
        """测试格式错误的配置文件"""
        with open(self.config_path, "w") as f:
            f.write("server: [unclosed\n")
        with pytest.raises(ConfigError):
            ConfigManager(self.config_path, use_env=False)

        with open(self.config_path, "w") as f:
            f.write("- just\n- a list\n")
        with pytest.raises(ConfigError):
            ConfigManager(self.config_path, use_env=False)

    def test_env_overrides(self, monkeypatch):
        """测试环境变量覆盖配置"""
        monkeypatch.setenv("SCENEMCP_PORT", "4567")
        monkeypatch.setenv("SCENEMCP_URL", "ws://example.test:4567")
        config = ConfigManager(self.config_path)
        assert config.get("server.port") == 4567
        assert config.get("client.url") == "ws://example.test:4567"

        monkeypatch.setenv("SCENEMCP_PORT", "not-a-number")
        with pytest.raises(ConfigError):
            ConfigManager(self.config_path)

    def test_get_config(self):
        """测试获取配置"""
        config = ConfigManager(self.config_path, use_env=False)

        # 测试获取存在的配置
        assert config.get("server.host") == "localhost"

        # 测试获取不存在的配置
        assert config.get("nonexistent.key") is None
        assert config.get("nonexistent.key", "default") == "default"
        assert config.get("server.host.deeper", "default") == "default"

    def test_set_config(self):
        """测试设置配置"""
        config = ConfigManager(self.config_path, use_env=False)

        # 设置现有配置
        config.set("server.host", "192.168.1.1")
        assert config.get("server.host") == "192.168.1.1"

        # 设置嵌套配置
        config.set("custom.nested.key", "nested_value")
        assert config.get("custom.nested.key") == "nested_value"

        # 验证配置已保存到文件
        with open(self.config_path, "r") as f:
            saved_config = yaml.safe_load(f)
            assert saved_config["server"]["host"] == "192.168.1.1"
            assert saved_config["custom"]["nested"]["key"] == "nested_value"

    def test_get_all(self):
        """测试获取所有配置"""
        config = ConfigManager(self.config_path, use_env=False)
        all_config = config.get_all()

        # 验证返回的是副本
        assert all_config is not config.config
        all_config["server"]["port"] = 1
        assert config.get("server.port") == 3000

    def test_client_from_config(self):
        """测试根据配置创建客户端"""
        with open(self.config_path, "w") as f:
            yaml.dump({"client": {"url": "ws://relay.test:9000", "reconnect_delay": 0.5}}, f)
        config = ConfigManager(self.config_path, use_env=False)

        client = SceneClient.from_config(config)
        assert client.transport.url == "ws://relay.test:9000"
        assert client.transport.reconnect_delay == 0.5
        assert client.transport.max_reconnect_attempts == 5

        client = SceneClient.from_config(config, url="ws://other.test:1")
        assert client.transport.url == "ws://other.test:1"
