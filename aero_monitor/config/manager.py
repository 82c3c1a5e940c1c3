"""
Single entry point for all configuration sections.

Loading is all-or-nothing: any missing or invalid value surfaces as one
ConfigError before the monitor starts.
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .monitor import MonitorConfig
from .notifications import NotificationConfig

logger = logging.getLogger(__name__)

SECTIONS = {
    "chain": ChainConfig,
    "monitor": MonitorConfig,
    "notifications": NotificationConfig,
}


class ConfigManager:
    """Loads the base settings and every section from the environment."""

    def __init__(self, environment: Optional[str] = None):
        """
        Args:
            environment: Override ENVIRONMENT (local, dev, staging, production)

        Raises:
            ConfigError: If any section is missing or invalid
        """
        overrides = {"ENVIRONMENT": environment} if environment else {}
        self._sections: Dict[str, BaseConfig] = {}
        try:
            self._sections["base"] = BaseConfig(**overrides)
            for name, section_cls in SECTIONS.items():
                self._sections[name] = section_cls(**overrides)
        except ConfigError:
            raise
        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise ConfigError(f"Configuration initialization failed: {e}")

        logger.info(f"Configuration loaded for environment: {self.environment}")

    @property
    def environment(self) -> str:
        return self.base.ENVIRONMENT

    @property
    def base(self) -> BaseConfig:
        return self._sections["base"]

    @property
    def chain(self) -> ChainConfig:
        return self._sections["chain"]

    @property
    def monitor(self) -> MonitorConfig:
        return self._sections["monitor"]

    @property
    def notifications(self) -> NotificationConfig:
        return self._sections["notifications"]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"environment": self.environment}
        data.update({name: section.to_dict() for name, section in self._sections.items()})
        return data

    def __repr__(self) -> str:
        return f"ConfigManager(environment={self.environment})"


_config_manager: Optional[ConfigManager] = None


def get_config(environment: Optional[str] = None, force_reload: bool = False) -> ConfigManager:
    """Return the process-wide ConfigManager, loading it on first use."""
    global _config_manager

    if _config_manager is None or force_reload:
        _config_manager = ConfigManager(environment=environment)

    return _config_manager


def reload_config(environment: Optional[str] = None) -> ConfigManager:
    return get_config(environment=environment, force_reload=True)
