"""
Configuration management for the Aerodrome position monitor.

Settings come from environment variables (optionally loaded from a .env
file). Use get_config() to access them.

Example:
    from aero_monitor.config import get_config

    config = get_config()

    wallet = config.monitor.wallet_address
    rpc_url = config.chain.BASE_RPC_URL
    topic = config.notifications.NTFY_TOPIC
"""

from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .manager import ConfigManager, get_config, reload_config
from .monitor import MonitorConfig
from .notifications import NotificationConfig

__all__ = [
    "BaseConfig",
    "ConfigError",
    "ChainConfig",
    "MonitorConfig",
    "NotificationConfig",
    "ConfigManager",
    "get_config",
    "reload_config",
]
