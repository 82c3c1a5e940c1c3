"""Test configuration for batchers."""
import pytest
from unittest.mock import AsyncMock, MagicMock, Mock

from eth_abi import encode

from aero_monitor.batchers.abi import ContractInterface

TOKEN_ABI = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "name": "Transfer",
        "type": "event",
        "inputs": [],
    },
]


def encode_uint(value):
    """Hex-encoded uint256 return data."""
    return "0x" + encode(["uint256"], [value]).hex()


def echo_ids(payload):
    """RPC body answering every entry with its own id as a uint256."""
    return [
        {"jsonrpc": "2.0", "id": entry["id"], "result": encode_uint(entry["id"])}
        for entry in payload
    ]


@pytest.fixture
def encode_result():
    return encode_uint


@pytest.fixture
def echo_body():
    return echo_ids


@pytest.fixture
def token_interface():
    return ContractInterface(TOKEN_ABI)


@pytest.fixture
def make_session():
    """Build a mock aiohttp session whose post() yields the given response."""

    def _make(status=200, json_body=None, json_exc=None, reason="OK", post_exc=None):
        response = Mock()
        response.status = status
        response.reason = reason
        response.json = AsyncMock(return_value=json_body, side_effect=json_exc)

        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=response)
        context.__aexit__ = AsyncMock(return_value=False)

        session = Mock()
        session.closed = False
        if post_exc is not None:
            session.post = Mock(side_effect=post_exc)
        else:
            session.post = Mock(return_value=context)
        return session

    return _make
