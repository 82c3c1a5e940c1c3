"""Test configuration for the Sugar readers."""
import pytest
from unittest.mock import AsyncMock, Mock

from web3 import Web3

from aero_monitor.batchers.base import CallResult
from aero_monitor.sugar.abis import ZERO_ADDRESS

WALLET = Web3.to_checksum_address("0x" + "ab" * 20)
POOL_A = Web3.to_checksum_address("0x" + "a1" * 20)
POOL_B = Web3.to_checksum_address("0x" + "b2" * 20)
WETH = Web3.to_checksum_address("0x4200000000000000000000000000000000000006")
USDC = Web3.to_checksum_address("0x833589fcd6edb6e08f4c7c32d4f71b54bda02913")


def position_tuple(position_id, lp, liquidity=10**18, staked=0, tick_lower=-100, tick_upper=100):
    """A decoded LpSugar Position tuple in ABI field order."""
    return (
        position_id, lp, liquidity, staked,
        1, 2, 0, 0, 0, 0, 0,
        tick_lower, tick_upper,
        0, 0,
        ZERO_ADDRESS, 0, ZERO_ADDRESS,
    )


@pytest.fixture
def addresses():
    return {"wallet": WALLET, "pool_a": POOL_A, "pool_b": POOL_B, "weth": WETH, "usdc": USDC}


@pytest.fixture
def make_position_tuple():
    return position_tuple


@pytest.fixture
def mock_batcher():
    """Batcher double with async execute() and call()."""
    batcher = Mock()
    batcher.execute = AsyncMock(side_effect=lambda calls: [CallResult(success=True, data=([],)) for _ in calls])
    batcher.call = AsyncMock(return_value=(500,))
    return batcher
