"""
Push notifications through ntfy.

Messages are published as JSON to the server root, which lets ntfy pick up
title, priority and tags from the body. Send failures are logged and
reported as False; they are never raised or retried.
"""

import asyncio
import logging
from typing import Dict, Optional, Sequence

import aiohttp

logger = logging.getLogger(__name__)

PRIORITY_MAP: Dict[str, int] = {
    "min": 1,
    "low": 2,
    "default": 3,
    "high": 4,
    "urgent": 5,
}


def out_of_range_direction(current_tick: int, tick_lower: int) -> str:
    return "below" if current_tick < tick_lower else "above"


def shorten_address(address: str) -> str:
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


class NtfyNotifier:
    """Async ntfy publisher with the alert formats used by the monitor."""

    def __init__(
        self,
        server: str,
        topic: str,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.server = server.rstrip("/")
        self.topic = topic
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def topic_url(self) -> str:
        return f"{self.server}/{self.topic}"

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def send_notification(
        self,
        message: str,
        title: Optional[str] = None,
        priority: str = "default",
        tags: Sequence[str] = (),
    ) -> bool:
        """
        Publish one message.

        Returns:
            True if ntfy accepted the message
        """
        body = {
            "topic": self.topic,
            "message": message,
            "priority": PRIORITY_MAP.get(priority, PRIORITY_MAP["default"]),
            "tags": list(tags),
        }
        if title:
            body["title"] = title

        try:
            session = self._get_session()
            async with session.post(self.server, json=body) as response:
                if response.status < 200 or response.status >= 300:
                    logger.error(
                        f"❌ Failed to send notification: {response.status} {response.reason}"
                    )
                    return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"❌ Error sending notification: {e!r}")
            return False

        logger.info(f"📱 Notification sent: {title or message}")
        return True

    async def send_out_of_range_alert(
        self,
        pool_symbol: str,
        position_id: int,
        current_tick: int,
        tick_lower: int,
        tick_upper: int,
        is_staked: bool,
    ) -> bool:
        direction = out_of_range_direction(current_tick, tick_lower)
        stake_status = "Staked" if is_staked else "Unstaked"

        message = (
            f"{pool_symbol} #{position_id}\n"
            f"Status: {stake_status}\n"
            f"Current: {current_tick}\n"
            f"Range: [{tick_lower}, {tick_upper}]\n"
            f"📉 Price moved {direction} range!"
        )
        return await self.send_notification(
            message,
            "⚠️ Position Out of Range",
            "high",
            ["warning", "chart_with_downwards_trend"],
        )

    async def send_back_in_range_alert(
        self,
        pool_symbol: str,
        position_id: int,
        current_tick: int,
        tick_lower: int,
        tick_upper: int,
        is_staked: bool,
    ) -> bool:
        stake_status = "Staked" if is_staked else "Unstaked"
        message = (
            f"{pool_symbol} #{position_id}\n"
            f"Status: {stake_status}\n"
            f"Current: {current_tick}\n"
            f"Range: [{tick_lower}, {tick_upper}]\n"
            f"💰 Earning fees again!"
        )
        return await self.send_notification(
            message,
            "✅ Position Back In Range",
            "default",
            ["white_check_mark", "chart_with_upwards_trend"],
        )

    async def send_unstaked_alert(
        self,
        pool_symbol: str,
        position_id: int,
        current_tick: int,
        tick_lower: int,
        tick_upper: int,
    ) -> bool:
        message = (
            f"{pool_symbol} #{position_id}\n"
            f"Current: {current_tick}\n"
            f"Range: [{tick_lower}, {tick_upper}]\n"
            f"ℹ️ This position is not staked in the gauge.\n"
            f"Stake it now to earn AERO emissions!"
        )
        return await self.send_notification(
            message,
            "⚠️ Position Unstaked!",
            "high",
            ["money_with_wings", "exclamation"],
        )

    async def send_startup_notification(
        self,
        wallet_address: str,
        total_positions: int,
        cl_positions: int,
        out_of_range_count: int,
    ) -> bool:
        message = (
            f"Wallet: {shorten_address(wallet_address)}\n"
            f"Total positions: {total_positions}\n"
            f"CL positions: {cl_positions}\n"
            f"Out of range: {out_of_range_count}"
        )
        return await self.send_notification(
            message, "🚀 Aerodrome Monitor Started", "low", ["rocket"]
        )

    async def send_test_notification(self) -> bool:
        return await self.send_notification(
            "If you see this, notifications are working correctly!",
            "🧪 Test Notification",
            "default",
            ["test_tube"],
        )
