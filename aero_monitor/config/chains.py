"""
Chain and RPC configuration.
"""

from dataclasses import dataclass, field

from web3 import Web3

from .base import BaseConfig, ConfigError

DEFAULT_BASE_RPC_URL = "https://mainnet.base.org"
DEFAULT_LP_SUGAR_ADDRESS = "0x9DE6Eab7a910A288dE83a04b6A43B52Fd1246f1E"
DEFAULT_RPC_DISCOVERY_URL = "https://aero.drome.eth.link"


@dataclass
class ChainConfig(BaseConfig):
    """Base chain RPC access and batching settings."""

    BASE_RPC_URL: str = field(
        default_factory=lambda: BaseConfig.get_env("BASE_RPC_URL") or DEFAULT_BASE_RPC_URL
    )
    LP_SUGAR_ADDRESS: str = field(
        default_factory=lambda: BaseConfig.get_env("LP_SUGAR_ADDRESS", DEFAULT_LP_SUGAR_ADDRESS)
    )

    # Batching and throttling
    RPC_BATCH_SIZE: int = field(default_factory=lambda: BaseConfig.get_env_int("RPC_BATCH_SIZE", 100))
    RPC_TIMEOUT_SECONDS: float = field(
        default_factory=lambda: BaseConfig.get_env_float("RPC_TIMEOUT_SECONDS", 30.0)
    )
    MIN_RPC_DELAY_MS: int = field(default_factory=lambda: BaseConfig.get_env_int("MIN_RPC_DELAY_MS", 100))
    RPC_MAX_RETRIES: int = field(default_factory=lambda: BaseConfig.get_env_int("RPC_MAX_RETRIES", 3))

    # Endpoint discovery
    RPC_DISCOVERY_ENABLED: bool = field(
        default_factory=lambda: BaseConfig.get_env_bool("RPC_DISCOVERY_ENABLED", True)
    )
    RPC_DISCOVERY_URL: str = field(
        default_factory=lambda: BaseConfig.get_env("RPC_DISCOVERY_URL", DEFAULT_RPC_DISCOVERY_URL)
    )

    def _validate_config(self):
        super()._validate_config()

        if not self.BASE_RPC_URL.startswith(("http://", "https://")):
            raise ConfigError(f"Invalid BASE_RPC_URL: {self.BASE_RPC_URL}")
        if not Web3.is_address(self.LP_SUGAR_ADDRESS):
            raise ConfigError(f"Invalid LP_SUGAR_ADDRESS: {self.LP_SUGAR_ADDRESS}")
        if self.RPC_BATCH_SIZE < 1:
            raise ConfigError("RPC_BATCH_SIZE must be >= 1")
        if self.RPC_TIMEOUT_SECONDS <= 0:
            raise ConfigError("RPC_TIMEOUT_SECONDS must be > 0")
        if self.MIN_RPC_DELAY_MS < 0:
            raise ConfigError("MIN_RPC_DELAY_MS must be >= 0")
        if self.RPC_MAX_RETRIES < 0:
            raise ConfigError("RPC_MAX_RETRIES must be >= 0")

    @property
    def min_rpc_delay_seconds(self) -> float:
        return self.MIN_RPC_DELAY_MS / 1000
