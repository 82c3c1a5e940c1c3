"""
Data model for positions and pool state.
"""

from dataclasses import dataclass, fields
from typing import Any, Sequence, Tuple

from web3 import Web3

from .abis import ZERO_ADDRESS


def normalize_address(address: str) -> str:
    """Checksum an address; zero/empty values normalize to the zero address."""
    if not address:
        return ZERO_ADDRESS
    return Web3.to_checksum_address(address)


@dataclass(frozen=True)
class Position:
    """A liquidity position as returned by LpSugar."""

    id: int
    lp: str
    liquidity: int
    staked: int
    amount0: int
    amount1: int
    staked0: int
    staked1: int
    unstaked_earned0: int
    unstaked_earned1: int
    emissions_earned: int
    tick_lower: int
    tick_upper: int
    sqrt_ratio_lower: int
    sqrt_ratio_upper: int
    locker: str
    unlocks_at: int
    alm: str

    @classmethod
    def from_abi(cls, values: Sequence[Any]) -> "Position":
        """Build a Position from a decoded LpSugar Position tuple."""
        names = [f.name for f in fields(cls)]
        if len(values) != len(names):
            raise ValueError(f"Expected {len(names)} position fields, got {len(values)}")

        data = dict(zip(names, values))
        for key in ("lp", "locker", "alm"):
            data[key] = normalize_address(data[key])
        for key in names:
            if key not in ("lp", "locker", "alm"):
                data[key] = int(data[key])
        return cls(**data)

    @property
    def key(self) -> Tuple[str, int]:
        return (self.lp, self.id)

    @property
    def is_staked(self) -> bool:
        return self.staked > 0

    @property
    def is_concentrated(self) -> bool:
        return self.id > 0

    @property
    def is_empty_slot(self) -> bool:
        return self.liquidity == 0 and self.staked == 0 and self.id == 0

    @property
    def has_pool(self) -> bool:
        return self.lp != ZERO_ADDRESS


@dataclass(frozen=True)
class PoolState:
    """Current state of a CL pool, used as the authoritative price for range checks."""

    address: str
    symbol: str
    tick: int
    sqrt_price_x96: int
    liquidity: int
    token0: str
    token1: str
    token0_symbol: str
    token1_symbol: str
