"""Core primitives for actool."""

from .models import (
    NO_FAN,
    CommandReceipt,
    DeviceSnapshot,
    FanAbsent,
    FanState,
    FanUnit,
    PowerCommand,
)
from .protocols import GatewayAdapter
from .timer import DeferredAction, format_duration
from .utils import deep_merge

__all__ = [
    "NO_FAN",
    "CommandReceipt",
    "DeferredAction",
    "DeviceSnapshot",
    "FanAbsent",
    "FanState",
    "FanUnit",
    "GatewayAdapter",
    "PowerCommand",
    "deep_merge",
    "format_duration",
]
