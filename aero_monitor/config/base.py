"""
Environment-driven configuration shared by every config section.

Values are read when a section is instantiated, so a .env file or the
process environment can change between reloads.
"""

import os
import logging
from typing import Any, Callable, Dict, Optional, TypeVar
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ENVIRONMENTS = ("local", "dev", "staging", "production")
TRUTHY = ("true", "1", "yes", "on")

N = TypeVar("N", int, float)


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""
    pass


@dataclass
class BaseConfig:
    """Common settings plus the typed environment readers used by all sections."""

    ENVIRONMENT: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "local"))
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    def __post_init__(self):
        self._setup_logging()
        self._validate_config()

    def _setup_logging(self):
        level = logging.getLevelName(self.LOG_LEVEL.upper())
        if not isinstance(level, int):
            raise ConfigError(f"Invalid log level: {self.LOG_LEVEL}")
        logging.basicConfig(level=level, format=LOG_FORMAT)
        # basicConfig is a no-op once handlers exist
        logging.getLogger().setLevel(level)

    def _validate_config(self):
        """Section-specific checks extend this; always call super()."""
        if self.ENVIRONMENT not in ENVIRONMENTS:
            raise ConfigError(f"Invalid environment: {self.ENVIRONMENT}")

    @staticmethod
    def get_env(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
        """
        Read a raw environment variable.

        Args:
            key: Variable name
            default: Returned when the variable is unset
            required: Treat an unset or empty variable as an error

        Raises:
            ConfigError: If a required variable is unset or empty
        """
        value = os.getenv(key, default)
        if required and not value:
            raise ConfigError(f"Missing required environment variable: {key}")
        return value

    @staticmethod
    def _get_env_number(key: str, default: Optional[N], cast: Callable[[str], N], kind: str) -> N:
        raw = os.getenv(key, "").strip()
        if not raw:
            if default is None:
                raise ConfigError(f"Missing required environment variable: {key}")
            return default
        try:
            return cast(raw)
        except ValueError:
            raise ConfigError(f"Environment variable '{key}' must be {kind}, got: {raw}")

    @staticmethod
    def get_env_int(key: str, default: Optional[int] = None) -> int:
        """Integer variable; empty counts as unset."""
        return BaseConfig._get_env_number(key, default, int, "an integer")

    @staticmethod
    def get_env_float(key: str, default: Optional[float] = None) -> float:
        """Float variable; empty counts as unset."""
        return BaseConfig._get_env_number(key, default, float, "a number")

    @staticmethod
    def get_env_bool(key: str, default: bool = False) -> bool:
        raw = os.getenv(key, "").strip()
        if not raw:
            return default
        return raw.lower() in TRUTHY

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}
