"""
Aerodrome contract reads: positions via LpSugar, pool state via the CL pools.
"""

from .abis import CL_POOL, ERC20, LP_SUGAR, LP_SUGAR_ADDRESS, ZERO_ADDRESS
from .models import PoolState, Position, normalize_address
from .pools import PoolDataError, PoolResolver
from .positions import PAGE_SIZE, PositionFetcher, is_concentrated_liquidity_position

__all__ = [
    "CL_POOL",
    "ERC20",
    "LP_SUGAR",
    "LP_SUGAR_ADDRESS",
    "ZERO_ADDRESS",
    "PoolState",
    "Position",
    "normalize_address",
    "PoolDataError",
    "PoolResolver",
    "PAGE_SIZE",
    "PositionFetcher",
    "is_concentrated_liquidity_position",
]
