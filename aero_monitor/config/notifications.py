"""
ntfy notification configuration.
"""

from dataclasses import dataclass, field

from .base import BaseConfig, ConfigError

PLACEHOLDER_TOPIC_MARKER = "your-unique-id"


@dataclass
class NotificationConfig(BaseConfig):
    """Where alerts are published."""

    NTFY_TOPIC: str = field(default_factory=lambda: BaseConfig.get_env("NTFY_TOPIC", required=True))
    NTFY_SERVER: str = field(
        default_factory=lambda: BaseConfig.get_env("NTFY_SERVER") or "https://ntfy.sh"
    )
    NTFY_TIMEOUT_SECONDS: float = field(
        default_factory=lambda: BaseConfig.get_env_float("NTFY_TIMEOUT_SECONDS", 10.0)
    )

    def _validate_config(self):
        super()._validate_config()

        if PLACEHOLDER_TOPIC_MARKER in self.NTFY_TOPIC:
            raise ConfigError("Please set NTFY_TOPIC in .env file")
        if not self.NTFY_SERVER.startswith(("http://", "https://")):
            raise ConfigError(f"Invalid NTFY_SERVER: {self.NTFY_SERVER}")
        if self.NTFY_TIMEOUT_SECONDS <= 0:
            raise ConfigError("NTFY_TIMEOUT_SECONDS must be > 0")
