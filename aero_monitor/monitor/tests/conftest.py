"""Test configuration for monitoring."""
import pytest
from unittest.mock import AsyncMock, MagicMock, Mock

from web3 import Web3

from aero_monitor.sugar.abis import ZERO_ADDRESS
from aero_monitor.sugar.models import PoolState, Position

WALLET = Web3.to_checksum_address("0x" + "cd" * 20)
POOL_A = Web3.to_checksum_address("0x" + "a1" * 20)
POOL_B = Web3.to_checksum_address("0x" + "b2" * 20)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def wallet():
    return WALLET


@pytest.fixture
def pools():
    return {"a": POOL_A, "b": POOL_B}


@pytest.fixture
def make_position():
    def _make(position_id=1, lp=POOL_A, tick_lower=900, tick_upper=1100, staked=True, liquidity=10**18):
        return Position(
            id=position_id,
            lp=lp,
            liquidity=0 if staked else liquidity,
            staked=liquidity if staked else 0,
            amount0=0,
            amount1=0,
            staked0=0,
            staked1=0,
            unstaked_earned0=0,
            unstaked_earned1=0,
            emissions_earned=0,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            sqrt_ratio_lower=0,
            sqrt_ratio_upper=0,
            locker=ZERO_ADDRESS,
            unlocks_at=0,
            alm=ZERO_ADDRESS,
        )

    return _make


@pytest.fixture
def make_pool():
    def _make(address=POOL_A, tick=1000, symbol="WETH/USDC"):
        token0, token1 = symbol.split("/")
        return PoolState(
            address=address,
            symbol=symbol,
            tick=tick,
            sqrt_price_x96=2**96,
            liquidity=10**20,
            token0=ZERO_ADDRESS,
            token1=ZERO_ADDRESS,
            token0_symbol=token0,
            token1_symbol=token1,
        )

    return _make


@pytest.fixture
def mock_notifier():
    notifier = Mock()
    for name in (
        "send_out_of_range_alert",
        "send_back_in_range_alert",
        "send_unstaked_alert",
        "send_startup_notification",
    ):
        setattr(notifier, name, AsyncMock(return_value=True))
    return notifier


@pytest.fixture
def make_session():
    """Mock aiohttp session; post()/get() yield a response with the given status and text."""

    def _make(status=200, text="", reason="OK", exc=None):
        response = Mock()
        response.status = status
        response.reason = reason
        response.text = AsyncMock(return_value=text)

        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=response)
        context.__aexit__ = AsyncMock(return_value=False)

        session = Mock()
        session.closed = False
        if exc is not None:
            session.post = Mock(side_effect=exc)
            session.get = Mock(side_effect=exc)
        else:
            session.post = Mock(return_value=context)
            session.get = Mock(return_value=context)
        return session

    return _make
