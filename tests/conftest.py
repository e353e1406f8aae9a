import copy
import io
from configparser import ConfigParser
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

import pytest

from actool.adapters import TransportError
from actool.config import (
    ActoolConfig,
    CredentialsConfig,
    GatewayConfig,
    LoggingConfig,
    SchedulerConfig,
)
from actool.core import CommandReceipt, DeviceSnapshot
from actool.dispatcher import CommandDispatcher, ControlSession

DEVICE_PAYLOAD: dict[str, Any] = {
    "id": "dev-1",
    "gatewayId": "gw-1",
    "deviceNo": "AC-1001",
    "gatewayNo": "GW-0007",
    "campusTitle": "East Campus",
    "buildingTitle": "Building 3",
    "floorTitle": "4F",
    "roomNo": "412",
    "balance": 37.5,
    "commandKey": "",
    "deviceMeter": None,
    "deviceFan": {
        "id": "fan-1",
        "deviceId": "dev-1",
        "fanStatus": 0,
        "lockStatus": 0,
        "tempSetting": 26.0,
        "fanModel": 1,
        "windSpeed": 2,
        "currentTemp": 29.5,
    },
}


def device_payload(**overrides: Any) -> dict[str, Any]:
    payload = copy.deepcopy(DEVICE_PAYLOAD)
    payload.update(overrides)
    return payload


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeGateway:
    """Records gateway calls; failures are queued per call type."""

    def __init__(self, payload: Optional[dict[str, Any]] = None) -> None:
        self.payload = payload or device_payload()
        self.fetches: list[str] = []
        self.submitted: list[DeviceSnapshot] = []
        self.fetch_errors: list[Exception] = []
        self.submit_errors: list[Exception] = []
        self.closed = False

    async def fetch_state(self, device_no: str) -> DeviceSnapshot:
        self.fetches.append(device_no)
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        return DeviceSnapshot.from_payload(self.payload, status_code=200)

    async def submit_command(self, snapshot: DeviceSnapshot) -> CommandReceipt:
        if self.submit_errors:
            raise self.submit_errors.pop(0)
        self.submitted.append(snapshot)
        return CommandReceipt(
            status_code=200,
            message_id=f"msg-{len(self.submitted)}",
            device_no=snapshot.device_no,
        )

    async def aclose(self) -> None:
        self.closed = True

    @property
    def command_keys(self) -> list[str]:
        return [snapshot.raw["commandKey"] for snapshot in self.submitted]


def scripted_reader(lines: list[str], on_read=None):
    """Return a reader yielding ``lines`` then end of input.

    ``on_read(index)`` runs before each line is handed out, which lets tests
    move a fake clock between cycles.
    """

    pending = list(lines)
    count = 0

    def reader() -> Optional[str]:
        nonlocal count
        if on_read is not None:
            on_read(count)
        count += 1
        if not pending:
            return None
        return pending.pop(0)

    return reader


def build_config(*, tick_seconds: float = 0.0) -> ActoolConfig:
    return ActoolConfig(
        gateway=GatewayConfig(base_url="http://gateway.test", timeout_seconds=1.0),
        credentials=CredentialsConfig(
            token="token-abc", device_no="AC-1001", operator_name="Lin"
        ),
        scheduler=SchedulerConfig(tick_seconds=tick_seconds),
        logging=LoggingConfig(),
        raw=ConfigParser(),
        path=Path("actool.cfg"),
        env_file=Path("actool.env"),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 7, 1, 10, 0, 0))


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def session() -> ControlSession:
    return ControlSession()


@pytest.fixture
def dispatcher(gateway, session, output, clock) -> CommandDispatcher:
    return CommandDispatcher(
        gateway,
        session,
        device_no="AC-1001",
        operator_name="Lin",
        output=output,
        clock=clock,
    )


@pytest.fixture
def timeout_error() -> TransportError:
    return TransportError("request timed out after 10.0s")
