"""
Position enumeration through the LpSugar contract.

LpSugar paginates over registered pools, so finding every position of an
account means sweeping offsets from 0 to ``count()``. Each page is queried
through two accessors (all positions, and unstaked CL positions only) whose
results overlap; the union is deduplicated by (id, pool) pair.
"""

import logging
from typing import List, Optional, Set, Tuple

from aero_monitor.batchers.base import BatchCall, JsonRpcBatcher
from aero_monitor.batchers.errors import BatchError

from .abis import LP_SUGAR, LP_SUGAR_ADDRESS
from .models import Position, normalize_address

logger = logging.getLogger(__name__)

PAGE_SIZE = 500
DEFAULT_MAX_POOLS = 25000
PAGINATED_METHODS = ("positions", "positionsUnstakedConcentrated")


def is_concentrated_liquidity_position(position: Position) -> bool:
    """CL positions are NFTs with a non-zero id."""
    return position.id > 0


class PositionFetcher:
    """Fetches the deduplicated set of positions held by an account."""

    def __init__(
        self,
        batcher: JsonRpcBatcher,
        sugar_address: str = LP_SUGAR_ADDRESS,
        page_size: int = PAGE_SIZE,
        max_pools: int = DEFAULT_MAX_POOLS,
    ):
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self.batcher = batcher
        self.sugar_address = normalize_address(sugar_address)
        self.page_size = page_size
        self.max_pools = max_pools
        self.last_failed_pages = 0

    async def fetch_pool_count(self) -> int:
        """
        Number of pools registered in LpSugar.

        Falls back to ``max_pools`` when the call fails.
        """
        try:
            (count,) = await self.batcher.call(self.sugar_address, LP_SUGAR, "count")
            count = int(count)
            logger.info(f"   ℹ️ Total pools in Sugar: {count}")
            return count
        except BatchError as e:
            logger.warning(
                f"   ⚠️ Could not fetch pool count, using default: {self.max_pools} ({e})"
            )
            return self.max_pools

    def build_page_plan(self, account: str, count: int) -> List[BatchCall]:
        """Two paginated calls per offset, covering offsets 0..count."""
        account = normalize_address(account)
        calls = []
        for offset in range(0, max(count, 0), self.page_size):
            for method in PAGINATED_METHODS:
                calls.append(
                    BatchCall(
                        target=self.sugar_address,
                        interface=LP_SUGAR,
                        method=method,
                        params=(self.page_size, offset, account),
                    )
                )
        return calls

    async def fetch_positions(self, account: str, count: Optional[int] = None) -> List[Position]:
        """
        Fetch every position of ``account``.

        Pages that fail are logged and skipped, so a partial RPC failure yields
        fewer positions rather than an error.

        Args:
            account: Wallet address
            count: Pool count override (skips the count() call)

        Returns:
            Positions unique by (id, pool address), in first-seen order
        """
        if count is None:
            count = await self.fetch_pool_count()

        logger.info(f"📊 Fetching positions for {account} (Paginated)...")
        logger.debug(f"   Contract: {self.sugar_address}")

        calls = self.build_page_plan(account, count)
        results = await self.batcher.execute(calls)

        positions: List[Position] = []
        seen: Set[Tuple[int, str]] = set()
        failed_pages = 0

        for call, result in zip(calls, results):
            if not result.success:
                failed_pages += 1
                logger.debug(
                    f"   {call.method}(offset={call.params[1]}) failed: {result.error}"
                )
                continue

            for raw in result.value or ():
                try:
                    position = Position.from_abi(raw)
                except (ValueError, TypeError) as e:
                    logger.warning(f"   ⚠️ Skipping undecodable position: {e}")
                    continue

                if not position.has_pool or position.is_empty_slot:
                    continue

                dedupe_key = (position.id, position.lp)
                if dedupe_key in seen:
                    continue
                seen.add(dedupe_key)
                positions.append(position)

        self.last_failed_pages = failed_pages
        if failed_pages:
            logger.warning(
                f"   ⚠️ {failed_pages}/{len(calls)} position pages failed; results may be incomplete"
            )

        logger.info(f"   ✅ Total unique positions found: {len(positions)}")
        return positions
