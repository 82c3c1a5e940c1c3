#!/usr/bin/env python3
"""
Command-line interface for the Aerodrome position monitor.

Usage:
    python -m aero_monitor.cli                 # monitor until Ctrl+C / SIGTERM
    python -m aero_monitor.cli --once          # one quick contract check
    python -m aero_monitor.cli --test-notify   # send test notifications
"""

import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import dataclass
from typing import List, Optional

from aero_monitor.batchers.base import BatchConfig, JsonRpcBatcher
from aero_monitor.batchers.rate_limiter import RateLimiter
from aero_monitor.config import ConfigError, ConfigManager
from aero_monitor.config.base import LOG_FORMAT
from aero_monitor.monitor.monitor import CycleReport, PositionMonitor, is_position_in_range
from aero_monitor.monitor.notifier import NtfyNotifier
from aero_monitor.monitor.rpc_manager import RpcEvent, RpcManager
from aero_monitor.sugar.pools import PoolResolver
from aero_monitor.sugar.positions import PositionFetcher, is_concentrated_liquidity_position
from aero_monitor.utils.cache import TTLCache

# Configure logging
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


@dataclass
class MonitorApp:
    """Explicitly wired collaborators for one monitored wallet."""

    config: ConfigManager
    rate_limiter: RateLimiter
    batcher: JsonRpcBatcher
    position_fetcher: PositionFetcher
    pool_resolver: PoolResolver
    notifier: NtfyNotifier
    monitor: PositionMonitor
    rpc_manager: RpcManager

    async def close(self):
        await self.batcher.close()
        await self.notifier.close()
        await self.rpc_manager.close()


def build_app(config: ConfigManager) -> MonitorApp:
    """Construct every component from configuration."""
    chain = config.chain
    monitor_config = config.monitor
    notifications = config.notifications

    rate_limiter = RateLimiter(
        min_delay=chain.min_rpc_delay_seconds,
        max_retries=chain.RPC_MAX_RETRIES,
    )
    batcher = JsonRpcBatcher(
        chain.BASE_RPC_URL,
        rate_limiter=rate_limiter,
        config=BatchConfig(batch_size=chain.RPC_BATCH_SIZE, timeout=chain.RPC_TIMEOUT_SECONDS),
    )
    position_fetcher = PositionFetcher(
        batcher,
        sugar_address=chain.LP_SUGAR_ADDRESS,
        page_size=monitor_config.POSITION_PAGE_SIZE,
        max_pools=monitor_config.MAX_POOLS_FALLBACK,
    )
    pool_resolver = PoolResolver(batcher, TTLCache(monitor_config.cache_ttl_seconds))
    notifier = NtfyNotifier(
        notifications.NTFY_SERVER,
        notifications.NTFY_TOPIC,
        timeout=notifications.NTFY_TIMEOUT_SECONDS,
    )
    monitor = PositionMonitor(
        monitor_config.wallet_address,
        position_fetcher,
        pool_resolver,
        notifier=notifier,
        cooldown=monitor_config.ALERT_COOLDOWN_SECONDS,
        max_missed_cycles=monitor_config.OBSERVATION_MAX_MISSED_CYCLES,
    )
    rpc_manager = RpcManager(
        discovery_url=chain.RPC_DISCOVERY_URL,
        discovery_enabled=chain.RPC_DISCOVERY_ENABLED,
    )

    return MonitorApp(
        config=config,
        rate_limiter=rate_limiter,
        batcher=batcher,
        position_fetcher=position_fetcher,
        pool_resolver=pool_resolver,
        notifier=notifier,
        monitor=monitor,
        rpc_manager=rpc_manager,
    )


def attach_rpc_listener(app: MonitorApp):
    """Point the batcher at whichever endpoint the RPC manager selects."""

    def on_rpc_event(event: RpcEvent):
        rpc = event.data.get("new_rpc") or event.data.get("rpc")
        if not rpc:
            return
        app.batcher.rpc_url = rpc
        if event.name == "rpc-switched":
            logger.info(f"✅ RPC switched to: {rpc}")
        elif event.name == "rpc-refreshed":
            logger.info(f"✅ RPC refreshed: {event.data.get('count', 0)} address(es) found")

    return app.rpc_manager.subscribe(on_rpc_event)


async def run_cycle(app: MonitorApp) -> Optional[CycleReport]:
    """Run one monitoring cycle and fail over the RPC endpoint if transport broke."""
    app.batcher.reset_stats()
    report = None
    try:
        report = await app.monitor.check_and_alert()
    except Exception as e:
        logger.exception(f"❌ Error during monitoring: {e}")

    if app.batcher.transport_failures:
        logger.warning(
            f"⚠️ {app.batcher.transport_failures} RPC batch(es) failed: "
            f"{app.batcher.last_transport_error}"
        )
        await app.rpc_manager.handle_rpc_error(app.batcher.rpc_url)

    return report


async def run_monitor(app: MonitorApp, stop_event: asyncio.Event) -> bool:
    """Initial check, startup summary, then poll until ``stop_event`` is set."""
    wallet = app.monitor.wallet_address
    interval = app.config.monitor.poll_interval_seconds

    logger.info("🚀 Aerodrome Position Monitor")
    logger.info("━" * 50)
    logger.info(f"Wallet: {wallet}")
    logger.info(f"Alerts: {app.notifier.topic_url}")
    logger.info("━" * 50)

    attach_rpc_listener(app)
    await app.rpc_manager.initialize(app.config.chain.BASE_RPC_URL)

    report = await run_cycle(app)
    if report is not None:
        await app.monitor.send_startup_summary(report)
        if report.out_of_range_count > 0:
            logger.warning(f"⚠️ {report.out_of_range_count} position(s) are currently out of range")

    logger.info(f"🔄 Starting monitoring loop (every {interval:g}s)...")
    logger.info("Press Ctrl+C to stop")

    while not stop_event.is_set():
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
            break
        except asyncio.TimeoutError:
            pass
        await run_cycle(app)

    logger.info("🛑 Shutting down gracefully...")
    return True


async def run_quick_check(app: MonitorApp) -> bool:
    """Fetch positions and the first CL position's pool, without notifications."""
    wallet = app.monitor.wallet_address
    logger.info("🧪 Quick Contract Test")
    logger.info(f"RPC: {app.batcher.rpc_url}")
    logger.info(f"Wallet: {wallet}")

    try:
        logger.info("1️⃣ Testing positions fetch...")
        positions = await app.position_fetcher.fetch_positions(wallet)
        logger.info(f"   ✅ Fetched {len(positions)} positions")

        cl_positions = [p for p in positions if is_concentrated_liquidity_position(p)]
        logger.info(f"   ✅ {len(cl_positions)} are concentrated liquidity positions")

        if cl_positions:
            first = cl_positions[0]
            logger.info("2️⃣ Testing pool data fetch for first CL position...")
            logger.info(f"   Pool address: {first.lp}")

            pool = await app.pool_resolver.fetch_pool_data(first.lp)
            logger.info(f"   ✅ Pool symbol: {pool.symbol}")
            logger.info(f"   ✅ Current tick: {pool.tick}")

            logger.info("3️⃣ Checking range status...")
            logger.info(f"   Position ID: {first.id}")
            logger.info(f"   Staked: {'YES' if first.is_staked else 'NO'}")
            logger.info(f"   Tick range: [{first.tick_lower}, {first.tick_upper}]")
            logger.info(f"   ✅ In range: {'YES' if is_position_in_range(first, pool) else 'NO'}")

        logger.info("✅ All tests passed!")
        return True
    except Exception as e:
        logger.exception(f"❌ Test failed: {e}")
        return False


async def run_test_notify(app: MonitorApp) -> bool:
    notifier = app.notifier
    logger.info("🧪 Testing ntfy notification...")
    logger.info(f"   Topic URL: {notifier.topic_url}")

    success = await notifier.send_test_notification()
    if success:
        logger.info("✅ Standard notification sent!")

    logger.info("📱 Sending test UNSTAKED alert...")
    success_unstaked = await notifier.send_unstaked_alert("TEST-Token/USDC", 123456, 1000, 900, 1100)
    if success_unstaked:
        logger.info("✅ Unstaked notification sent! Check your phone.")
    else:
        logger.error("❌ Failed to send notifications.")

    return success and success_unstaked


def install_signal_handlers(stop_event: asyncio.Event):
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # add_signal_handler is unavailable on some platforms
            pass


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Monitor Aerodrome concentrated liquidity positions and push ntfy alerts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Monitor the wallet from .env until stopped
  python -m aero_monitor.cli

  # Verify contract access once
  python -m aero_monitor.cli --once

  # Check that notifications reach your phone
  python -m aero_monitor.cli --test-notify
        """,
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--once", action="store_true", help="Run one quick contract check and exit")
    mode.add_argument("--test-notify", action="store_true", help="Send test notifications and exit")

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override LOG_LEVEL",
    )
    return parser.parse_args(argv)


async def async_main(args: argparse.Namespace) -> int:
    try:
        config = ConfigManager()
    except ConfigError as e:
        logger.error(f"❌ {e}")
        return 1

    logging.getLogger().setLevel(args.log_level or config.base.LOG_LEVEL.upper())

    app = build_app(config)
    try:
        if args.test_notify:
            success = await run_test_notify(app)
        elif args.once:
            success = await run_quick_check(app)
        else:
            stop_event = asyncio.Event()
            install_signal_handlers(stop_event)
            success = await run_monitor(app, stop_event)
    finally:
        await app.close()

    return 0 if success else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function."""
    args = parse_args(argv)
    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        logger.info("⏹️  Monitor interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"💥 Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
