"""
Position monitoring: state transitions, notifications and RPC failover.
"""

from .monitor import (
    ALERT_COOLDOWN_SECONDS,
    Alert,
    AlertKind,
    CycleReport,
    PositionMonitor,
    PositionObservation,
    PositionStatus,
    count_out_of_range,
    get_position_status,
    is_position_in_range,
)
from .notifier import NtfyNotifier
from .rpc_manager import RpcEvent, RpcManager, RpcManagerError

__all__ = [
    "ALERT_COOLDOWN_SECONDS",
    "Alert",
    "AlertKind",
    "CycleReport",
    "PositionMonitor",
    "PositionObservation",
    "PositionStatus",
    "count_out_of_range",
    "get_position_status",
    "is_position_in_range",
    "NtfyNotifier",
    "RpcEvent",
    "RpcManager",
    "RpcManagerError",
]
