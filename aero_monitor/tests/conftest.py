"""Test configuration for the command-line driver."""
import pytest

from aero_monitor.config import ConfigManager

REQUIRED_ENV = {
    "WALLET_ADDRESS": "0x742d35cc6634c0532925a3b844bc454e4438f44e",
    "NTFY_TOPIC": "aero-alerts-test",
    "BASE_RPC_URL": "https://base.example/rpc",
    "RPC_DISCOVERY_ENABLED": "false",
    "ENVIRONMENT": "local",
    "LOG_LEVEL": "INFO",
}


@pytest.fixture
def env(monkeypatch):
    for name, value in REQUIRED_ENV.items():
        monkeypatch.setenv(name, value)
    for name in ("POLL_INTERVAL_MS", "CACHE_TTL_MS", "MIN_RPC_DELAY_MS", "RPC_MAX_RETRIES", "NTFY_SERVER"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config_manager(env):
    """Provide a test configuration manager."""
    return ConfigManager()
