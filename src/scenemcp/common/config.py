"""
SceneMCP 配置管理模块
"""

import os
import copy
import yaml
import logging
from typing import Dict, Any, Optional

from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 3000

# 环境变量 -> 配置键
ENV_OVERRIDES = {
    "SCENEMCP_HOST": ("server.host", str),
    "SCENEMCP_PORT": ("server.port", int),
    "SCENEMCP_URL": ("client.url", str),
    "SCENEMCP_LOG_LEVEL": ("logging.level", str),
}


class ConfigManager:
    """配置管理器"""

    def __init__(self, config_path: Optional[str] = None, use_env: bool = True):
        """初始化配置管理器

        Args:
            config_path: 配置文件路径，为None时只使用默认配置
            use_env: 是否读取环境变量（包括.env文件）覆盖配置
        """
        self.config_path = config_path
        self.config = self._load_default_config()

        if self.config_path:
            # 如果配置文件存在，加载它；否则创建默认配置文件
            if os.path.exists(self.config_path):
                self._load_config()
            else:
                self._save_config()

        if use_env:
            self._apply_env_overrides()

    def _load_default_config(self) -> Dict[str, Any]:
        """加载默认配置

        Returns:
            默认配置
        """
        return {
            "server": {
                "host": DEFAULT_HOST,
                "port": DEFAULT_PORT,
            },
            "client": {
                "url": f"ws://{DEFAULT_HOST}:{DEFAULT_PORT}",
                "connect_timeout": 5.0,
                "reconnect_delay": 1.0,
                "max_reconnect_attempts": 5,
                "command_timeout": 30.0,
            },
            "logging": {
                "level": "INFO",
                "file": "scenemcp.log",
            },
        }

    def _load_config(self) -> None:
        """从文件加载配置"""
        try:
            with open(self.config_path, 'r') as f:
                loaded_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"加载配置失败: {e}")
            raise ConfigError(f"无法加载配置文件: {self.config_path}", {"reason": str(e)})

        if loaded_config is None:
            return
        if not isinstance(loaded_config, dict):
            raise ConfigError(f"配置文件格式无效: {self.config_path}")
        self._merge_config(self.config, loaded_config)
        logger.info(f"已加载配置: {self.config_path}")

    def _save_config(self) -> None:
        """保存配置到文件"""
        try:
            directory = os.path.dirname(self.config_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            with open(self.config_path, 'w') as f:
                yaml.dump(self.config, f, default_flow_style=False)
                logger.info(f"已保存配置: {self.config_path}")
        except OSError as e:
            logger.error(f"保存配置失败: {e}")

    def _apply_env_overrides(self) -> None:
        """使用环境变量覆盖配置"""
        load_dotenv()
        for env_name, (key, cast) in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value is None:
                continue
            try:
                self._set_value(key, cast(value))
            except ValueError:
                raise ConfigError(f"环境变量值无效: {env_name}={value}")
            logger.debug(f"环境变量覆盖配置: {key}")

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> None:
        """合并配置

        Args:
            base: 基础配置
            override: 覆盖配置
        """
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """获取配置值

        Args:
            key: 配置键，使用点号分隔，如 "server.host"
            default: 默认值

        Returns:
            配置值
        """
        parts = key.split('.')
        current = self.config

        try:
            for part in parts:
                current = current[part]
            return current
        except (KeyError, TypeError):
            return default

    def _set_value(self, key: str, value: Any) -> None:
        parts = key.split('.')
        current = self.config

        for part in parts[:-1]:
            if part not in current or not isinstance(current[part], dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = value

    def set(self, key: str, value: Any) -> None:
        """设置配置值并保存

        Args:
            key: 配置键，使用点号分隔，如 "server.host"
            value: 配置值
        """
        self._set_value(key, value)
        if self.config_path:
            self._save_config()

    def get_all(self) -> Dict[str, Any]:
        """获取所有配置

        Returns:
            所有配置的副本
        """
        return copy.deepcopy(self.config)
