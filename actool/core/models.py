"""Domain models for device state and power commands."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Union

from .utils import deep_merge


class PowerCommand(str, Enum):
    """Power commands understood by the gateway, keyed by wire ``commandKey``."""

    OPEN = "AirOpen"
    CLOSE = "AirClose"

    @property
    def fan_status(self) -> int:
        return 1 if self is PowerCommand.OPEN else 0


@dataclass(slots=True)
class FanUnit:
    """Controllable fan-unit sub-record of a device."""

    power_on: bool
    temperature: float
    fan_speed: int
    locked: bool
    mode: int = 0
    current_temperature: float = 0.0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "FanUnit":
        return cls(
            power_on=_as_int(payload.get("fanStatus")) == 1,
            temperature=_as_float(payload.get("tempSetting")),
            fan_speed=_as_int(payload.get("windSpeed")),
            locked=_as_int(payload.get("lockStatus")) == 1,
            mode=_as_int(payload.get("fanModel")),
            current_temperature=_as_float(payload.get("currentTemp")),
        )


@dataclass(frozen=True, slots=True)
class FanAbsent:
    """Marker for devices that expose no fan unit."""


NO_FAN = FanAbsent()

FanState = Union[FanUnit, FanAbsent]


@dataclass(slots=True)
class DeviceSnapshot:
    """Device state as last fetched from the gateway.

    ``raw`` keeps the complete ``data`` object of the fetch response; command
    submission echoes it back with the power fields applied on top.
    ``status_code`` is the HTTP status of that fetch.
    """

    device_no: str
    gateway_no: str
    campus: str
    building: str
    floor: str
    room: str
    balance: float
    fan: FanState = NO_FAN
    raw: Dict[str, Any] = field(default_factory=dict)
    status_code: int = 0

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any], *, status_code: int = 0
    ) -> "DeviceSnapshot":
        fan_payload = payload.get("deviceFan")
        fan: FanState = (
            FanUnit.from_payload(fan_payload)
            if isinstance(fan_payload, Mapping)
            else NO_FAN
        )
        return cls(
            device_no=str(payload.get("deviceNo") or ""),
            gateway_no=str(payload.get("gatewayNo") or ""),
            campus=str(payload.get("campusTitle") or ""),
            building=str(payload.get("buildingTitle") or ""),
            floor=str(payload.get("floorTitle") or ""),
            room=str(payload.get("roomNo") or ""),
            balance=_as_float(payload.get("balance")),
            fan=fan,
            raw=copy.deepcopy(dict(payload)),
            status_code=status_code,
        )

    def with_power(self, command: PowerCommand, operator_name: str) -> "DeviceSnapshot":
        """Return a copy of this snapshot carrying ``command`` for submission."""

        updates: Dict[str, Any] = {
            "commandKey": command.value,
            "studentName": operator_name,
        }

        match self.fan:
            case FanUnit() as unit:
                fan = replace(unit, power_on=command is PowerCommand.OPEN)
                updates["deviceFan"] = {"fanStatus": command.fan_status}
            case FanAbsent():
                fan = NO_FAN

        raw = copy.deepcopy(self.raw)
        deep_merge(raw, updates)

        return DeviceSnapshot(
            device_no=self.device_no,
            gateway_no=self.gateway_no,
            campus=self.campus,
            building=self.building,
            floor=self.floor,
            room=self.room,
            balance=self.balance,
            fan=fan,
            raw=raw,
            status_code=self.status_code,
        )

    def to_payload(self) -> Dict[str, Any]:
        return copy.deepcopy(self.raw)


@dataclass(slots=True)
class CommandReceipt:
    """Acknowledgement returned by the gateway for a submitted command."""

    status_code: int
    message_id: str
    device_no: str


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
