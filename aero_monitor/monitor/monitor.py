"""
Position monitoring and alert decisions.

Every poll cycle fetches positions and pool state, derives a PositionStatus
per CL position and runs it through a small per-position state machine:

- range: alert on leaving the range, repeat while out of range once the
  cooldown has elapsed, and alert once on coming back;
- stake: alert on becoming unstaked, repeat while unstaked once the
  cooldown has elapsed.

A position seen for the first time is assumed to have been in range and
staked, so only an already unhealthy position alerts on first sight.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from aero_monitor.sugar.models import PoolState, Position
from aero_monitor.sugar.pools import PoolResolver
from aero_monitor.sugar.positions import PositionFetcher, is_concentrated_liquidity_position

from .notifier import NtfyNotifier, out_of_range_direction

logger = logging.getLogger(__name__)

ALERT_COOLDOWN_SECONDS = 60 * 60


@dataclass(frozen=True)
class PositionStatus:
    """Range and stake status of one position for the current cycle."""

    position_id: int
    pool_address: str
    pool_symbol: str
    is_in_range: bool
    current_tick: int
    tick_lower: int
    tick_upper: int
    liquidity: int
    is_staked: bool

    @property
    def key(self) -> Tuple[str, int]:
        return (self.pool_address, self.position_id)


@dataclass
class PositionObservation:
    """What the monitor remembers about a position between cycles."""

    is_in_range: bool
    is_staked: bool
    last_out_of_range_alert_at: Optional[float] = None
    last_unstaked_alert_at: Optional[float] = None
    last_seen_cycle: int = 0


class AlertKind(Enum):
    OUT_OF_RANGE = "out_of_range"
    BACK_IN_RANGE = "back_in_range"
    UNSTAKED = "unstaked"


@dataclass(frozen=True)
class Alert:
    kind: AlertKind
    status: PositionStatus
    direction: Optional[str] = None


@dataclass
class CycleReport:
    """Outcome of one monitoring cycle."""

    statuses: List[PositionStatus] = field(default_factory=list)
    total_positions: int = 0
    cl_positions: int = 0
    alerts: List[Alert] = field(default_factory=list)
    skipped: int = 0

    @property
    def out_of_range_count(self) -> int:
        return count_out_of_range(self.statuses)


def is_position_in_range(position: Position, pool: PoolState) -> bool:
    """True iff tick_lower <= current tick < tick_upper."""
    return position.tick_lower <= pool.tick < position.tick_upper


def get_position_status(position: Position, pool: PoolState) -> PositionStatus:
    return PositionStatus(
        position_id=position.id,
        pool_address=position.lp,
        pool_symbol=pool.symbol,
        is_in_range=is_position_in_range(position, pool),
        current_tick=pool.tick,
        tick_lower=position.tick_lower,
        tick_upper=position.tick_upper,
        liquidity=position.liquidity,
        is_staked=position.is_staked,
    )


def count_out_of_range(statuses: List[PositionStatus]) -> int:
    return sum(1 for status in statuses if not status.is_in_range)


class PositionMonitor:
    """
    Tracks the positions of one wallet and decides which alerts to send.

    Observations live on the instance, so several monitors can run in one
    process without sharing state.
    """

    def __init__(
        self,
        wallet_address: str,
        position_fetcher: PositionFetcher,
        pool_resolver: PoolResolver,
        notifier: Optional[NtfyNotifier] = None,
        cooldown: float = ALERT_COOLDOWN_SECONDS,
        unstaked_cooldown: Optional[float] = None,
        max_missed_cycles: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            wallet_address: Account whose positions are monitored
            position_fetcher: Source of positions
            pool_resolver: Source of pool state
            notifier: Alert sink; alerts are only logged when None
            cooldown: Seconds between repeated out-of-range alerts
            unstaked_cooldown: Seconds between repeated unstaked alerts
                (defaults to ``cooldown``)
            max_missed_cycles: Forget positions unseen for more than this many
                cycles; 0 keeps every observation for the process lifetime
            clock: Monotonic time source in seconds
        """
        self.wallet_address = wallet_address
        self.position_fetcher = position_fetcher
        self.pool_resolver = pool_resolver
        self.notifier = notifier
        self.cooldown = cooldown
        self.unstaked_cooldown = cooldown if unstaked_cooldown is None else unstaked_cooldown
        self.max_missed_cycles = max_missed_cycles
        self._clock = clock

        self._observations: Dict[Tuple[str, int], PositionObservation] = {}
        self._cycle = 0

    def observation(self, pool_address: str, position_id: int) -> Optional[PositionObservation]:
        return self._observations.get((pool_address, position_id))

    @property
    def observation_count(self) -> int:
        return len(self._observations)

    @staticmethod
    def _cooldown_elapsed(last_alert_at: Optional[float], now: float, cooldown: float) -> bool:
        return last_alert_at is None or now - last_alert_at >= cooldown

    def evaluate(self, status: PositionStatus, now: Optional[float] = None) -> List[Alert]:
        """
        Decide the alerts for one status and record the new observation.

        Args:
            status: Current status of the position
            now: Evaluation time in clock seconds (defaults to the clock)

        Returns:
            Alerts to emit, unstaked before range alerts
        """
        now = self._clock() if now is None else now
        previous = self._observations.get(status.key)

        last_out_of_range = previous.last_out_of_range_alert_at if previous else None
        last_unstaked = previous.last_unstaked_alert_at if previous else None
        alerts: List[Alert] = []

        if not status.is_staked:
            was_staked = previous.is_staked if previous else True
            if was_staked or self._cooldown_elapsed(last_unstaked, now, self.unstaked_cooldown):
                alerts.append(Alert(AlertKind.UNSTAKED, status))
                last_unstaked = now
        else:
            last_unstaked = None

        if not status.is_in_range:
            was_in_range = previous.is_in_range if previous else True
            if was_in_range or self._cooldown_elapsed(last_out_of_range, now, self.cooldown):
                direction = out_of_range_direction(status.current_tick, status.tick_lower)
                alerts.append(Alert(AlertKind.OUT_OF_RANGE, status, direction))
                last_out_of_range = now
        else:
            if previous is not None and not previous.is_in_range:
                alerts.append(Alert(AlertKind.BACK_IN_RANGE, status))
            last_out_of_range = None

        self._observations[status.key] = PositionObservation(
            is_in_range=status.is_in_range,
            is_staked=status.is_staked,
            last_out_of_range_alert_at=last_out_of_range,
            last_unstaked_alert_at=last_unstaked,
            last_seen_cycle=self._cycle,
        )
        return alerts

    async def collect_statuses(self) -> CycleReport:
        """Fetch positions and pools and build the status of every CL position."""
        positions = await self.position_fetcher.fetch_positions(self.wallet_address)
        cl_positions = [p for p in positions if is_concentrated_liquidity_position(p)]
        logger.info(f"   {len(cl_positions)} concentrated liquidity positions")
        self._mark_seen(cl_positions)

        report = CycleReport(total_positions=len(positions), cl_positions=len(cl_positions))
        if not cl_positions:
            return report

        pool_map = await self.pool_resolver.fetch_pools_for_positions(cl_positions)

        for position in cl_positions:
            if position.tick_lower >= position.tick_upper:
                logger.warning(
                    f"   ⚠️ Invalid tick range for #{position.id}: "
                    f"[{position.tick_lower}, {position.tick_upper}]"
                )
                report.skipped += 1
                continue

            pool = pool_map.get(position.lp)
            if pool is None:
                logger.warning(f"   ⚠️ Missing pool data for {position.lp}")
                report.skipped += 1
                continue

            report.statuses.append(get_position_status(position, pool))

        return report

    async def check_and_alert(self) -> CycleReport:
        """Run one monitoring cycle: collect statuses, evaluate and send alerts."""
        self._cycle += 1
        logger.info(f"🔍 Checking positions at {datetime.now().strftime('%H:%M:%S')}...")

        report = await self.collect_statuses()
        now = self._clock()

        if not report.statuses:
            logger.info("   No concentrated liquidity positions found")
            self._prune_observations()
            return report

        for status in report.statuses:
            staked_str = "[Staked]" if status.is_staked else "[Unstaked]"
            range_str = "✅" if status.is_in_range else "❌"
            logger.info(
                f"   {staked_str} {status.pool_symbol} (#{status.position_id}) {range_str} "
                f"Tick: {status.current_tick} | Range: [{status.tick_lower}, {status.tick_upper}]"
            )

            alerts = self.evaluate(status, now)
            for alert in alerts:
                await self._dispatch(alert)
            report.alerts.extend(alerts)

        out_of_range = report.out_of_range_count
        logger.info(
            f"   Summary: {len(report.statuses) - out_of_range} in range, "
            f"{out_of_range} out of range"
        )

        self._prune_observations()
        return report

    async def send_startup_summary(self, report: CycleReport) -> bool:
        if self.notifier is None:
            return False
        return await self.notifier.send_startup_notification(
            self.wallet_address,
            report.total_positions,
            report.cl_positions,
            report.out_of_range_count,
        )

    async def _dispatch(self, alert: Alert) -> bool:
        status = alert.status
        label = alert.kind.value.replace("_", " ").upper()
        logger.info(f"   📱 Alerting: Position #{status.position_id} is {label}")

        if self.notifier is None:
            return False

        try:
            if alert.kind is AlertKind.UNSTAKED:
                sent = await self.notifier.send_unstaked_alert(
                    status.pool_symbol,
                    status.position_id,
                    status.current_tick,
                    status.tick_lower,
                    status.tick_upper,
                )
            elif alert.kind is AlertKind.OUT_OF_RANGE:
                sent = await self.notifier.send_out_of_range_alert(
                    status.pool_symbol,
                    status.position_id,
                    status.current_tick,
                    status.tick_lower,
                    status.tick_upper,
                    status.is_staked,
                )
            else:
                sent = await self.notifier.send_back_in_range_alert(
                    status.pool_symbol,
                    status.position_id,
                    status.current_tick,
                    status.tick_lower,
                    status.tick_upper,
                    status.is_staked,
                )
        except Exception as e:
            logger.warning(f"   ⚠️ Notifier raised while sending {label} alert: {e}")
            return False

        if not sent:
            logger.warning(f"   ⚠️ {label} alert for #{status.position_id} was not delivered")
        return sent

    def _mark_seen(self, positions: List[Position]):
        """Positions still returned by the fetch stay remembered even when skipped this cycle."""
        for position in positions:
            observation = self._observations.get((position.lp, position.id))
            if observation is not None:
                observation.last_seen_cycle = self._cycle

    def _prune_observations(self):
        if self.max_missed_cycles <= 0:
            return

        stale = [
            key
            for key, observation in self._observations.items()
            if self._cycle - observation.last_seen_cycle > self.max_missed_cycles
        ]
        for key in stale:
            del self._observations[key]
        if stale:
            logger.info(f"🧹 Forgot {len(stale)} positions no longer returned by the fetch")
