"""
Pool state resolution for CL pools.

Pool data is read directly from the pool and token contracts in two batched
stages: pool basics first (slot0, token0, token1, liquidity), then the
symbols of every token those pools reference. Resolved pools are cached by
address for the configured TTL.
"""

import logging
from typing import Dict, Iterable, List

from aero_monitor.batchers.base import BatchCall, JsonRpcBatcher
from aero_monitor.batchers.errors import BatchError
from aero_monitor.utils.cache import TTLCache

from .abis import CL_POOL, ERC20
from .models import PoolState, Position, normalize_address

logger = logging.getLogger(__name__)

POOL_BASIC_METHODS = ("slot0", "token0", "token1", "liquidity")
UNKNOWN_SYMBOL = "UNKNOWN"


class PoolDataError(BatchError):
    """Raised when a pool's state could not be resolved."""
    pass


class PoolResolver:
    """Resolves PoolState records for the pools referenced by positions."""

    def __init__(self, batcher: JsonRpcBatcher, cache: TTLCache):
        self.batcher = batcher
        self.cache = cache

    async def fetch_pools_for_positions(
        self, positions: Iterable[Position]
    ) -> Dict[str, PoolState]:
        """Resolve the pool of every position (deduplicated by pool address)."""
        return await self.fetch_pools(position.lp for position in positions)

    async def fetch_pools(self, pool_addresses: Iterable[str]) -> Dict[str, PoolState]:
        """
        Resolve pool state for the given addresses.

        Pools whose basics could not all be fetched are left out of the
        result; callers treat a missing entry as temporarily unavailable.

        Returns:
            Mapping of checksummed pool address to PoolState
        """
        pruned = self.cache.prune()
        if pruned:
            logger.debug(f"🧹 Dropped {pruned} expired pool entries")

        unique_pools = list(dict.fromkeys(normalize_address(a) for a in pool_addresses))
        pool_map: Dict[str, PoolState] = {}
        missing: List[str] = []

        for address in unique_pools:
            cached = self.cache.get(address)
            if cached is not None:
                pool_map[address] = cached
            else:
                missing.append(address)

        logger.info(
            f"📊 Fetching data for {len(unique_pools)} unique pools "
            f"({len(pool_map)} cached)..."
        )
        if not missing:
            return pool_map

        basics = await self._fetch_pool_basics(missing)
        if not basics:
            return pool_map

        token_addresses = []
        for basic in basics.values():
            token_addresses.extend((basic["token0"], basic["token1"]))
        symbols = await self._fetch_token_symbols(token_addresses)

        for address, basic in basics.items():
            symbol0 = symbols.get(basic["token0"], UNKNOWN_SYMBOL)
            symbol1 = symbols.get(basic["token1"], UNKNOWN_SYMBOL)
            pool = PoolState(
                address=address,
                symbol=f"{symbol0}/{symbol1}",
                tick=basic["tick"],
                sqrt_price_x96=basic["sqrt_price_x96"],
                liquidity=basic["liquidity"],
                token0=basic["token0"],
                token1=basic["token1"],
                token0_symbol=symbol0,
                token1_symbol=symbol1,
            )
            self.cache.set(address, pool)
            pool_map[address] = pool

        return pool_map

    async def fetch_pool_data(self, pool_address: str) -> PoolState:
        """
        Resolve a single pool.

        Raises:
            PoolDataError: If the pool could not be resolved
        """
        address = normalize_address(pool_address)
        pools = await self.fetch_pools([address])
        if address not in pools:
            raise PoolDataError(f"Failed to fetch pool details for {address}")
        return pools[address]

    async def _fetch_pool_basics(self, pool_addresses: List[str]) -> Dict[str, Dict]:
        calls = [
            BatchCall(target=address, interface=CL_POOL, method=method)
            for address in pool_addresses
            for method in POOL_BASIC_METHODS
        ]
        results = await self.batcher.execute(calls)

        basics: Dict[str, Dict] = {}
        width = len(POOL_BASIC_METHODS)
        for i, address in enumerate(pool_addresses):
            slot0, token0, token1, liquidity = results[i * width : (i + 1) * width]

            if not all(r.success for r in (slot0, token0, token1, liquidity)):
                errors = [r.error for r in (slot0, token0, token1, liquidity) if r.failed]
                logger.warning(f"   ⚠️ Failed to fetch pool {address}: {errors[0]}")
                continue

            sqrt_price_x96, tick = slot0.data[0], slot0.data[1]
            basics[address] = {
                "sqrt_price_x96": int(sqrt_price_x96),
                "tick": int(tick),
                "token0": normalize_address(token0.value),
                "token1": normalize_address(token1.value),
                "liquidity": int(liquidity.value),
            }

        return basics

    async def _fetch_token_symbols(self, token_addresses: List[str]) -> Dict[str, str]:
        unique_tokens = list(dict.fromkeys(token_addresses))
        calls = [
            BatchCall(target=token, interface=ERC20, method="symbol")
            for token in unique_tokens
        ]
        results = await self.batcher.execute(calls)

        symbols = {}
        for token, result in zip(unique_tokens, results):
            if result.success and result.value:
                symbols[token] = result.value
            else:
                logger.debug(f"   Using placeholder symbol for token {token}: {result.error}")
                symbols[token] = UNKNOWN_SYMBOL
        return symbols
