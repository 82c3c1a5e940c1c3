"""
Monitoring loop configuration.
"""

from dataclasses import dataclass, field

from web3 import Web3

from .base import BaseConfig, ConfigError

PLACEHOLDER_WALLET = "0xYourWalletAddress"


@dataclass
class MonitorConfig(BaseConfig):
    """Wallet, polling and alerting settings."""

    WALLET_ADDRESS: str = field(
        default_factory=lambda: BaseConfig.get_env("WALLET_ADDRESS", required=True)
    )

    POLL_INTERVAL_MS: int = field(default_factory=lambda: BaseConfig.get_env_int("POLL_INTERVAL_MS", 60000))
    CACHE_TTL_MS: int = field(default_factory=lambda: BaseConfig.get_env_int("CACHE_TTL_MS", 30000))
    ALERT_COOLDOWN_SECONDS: int = field(
        default_factory=lambda: BaseConfig.get_env_int("ALERT_COOLDOWN_SECONDS", 3600)
    )
    OBSERVATION_MAX_MISSED_CYCLES: int = field(
        default_factory=lambda: BaseConfig.get_env_int("OBSERVATION_MAX_MISSED_CYCLES", 0)
    )

    # LpSugar pagination
    POSITION_PAGE_SIZE: int = 500
    MAX_POOLS_FALLBACK: int = 25000

    def _validate_config(self):
        super()._validate_config()

        if self.WALLET_ADDRESS == PLACEHOLDER_WALLET:
            raise ConfigError("Please set WALLET_ADDRESS in .env file")
        if not Web3.is_address(self.WALLET_ADDRESS):
            raise ConfigError(f"Invalid WALLET_ADDRESS: {self.WALLET_ADDRESS}")
        if self.POLL_INTERVAL_MS <= 0:
            raise ConfigError("POLL_INTERVAL_MS must be > 0")
        if self.CACHE_TTL_MS < 0:
            raise ConfigError("CACHE_TTL_MS must be >= 0")
        if self.ALERT_COOLDOWN_SECONDS < 0:
            raise ConfigError("ALERT_COOLDOWN_SECONDS must be >= 0")
        if self.OBSERVATION_MAX_MISSED_CYCLES < 0:
            raise ConfigError("OBSERVATION_MAX_MISSED_CYCLES must be >= 0")

    @property
    def wallet_address(self) -> str:
        return Web3.to_checksum_address(self.WALLET_ADDRESS)

    @property
    def poll_interval_seconds(self) -> float:
        return self.POLL_INTERVAL_MS / 1000

    @property
    def cache_ttl_seconds(self) -> float:
        return self.CACHE_TTL_MS / 1000
