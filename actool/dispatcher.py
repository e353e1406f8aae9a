"""Command dispatcher: turns parsed commands into gateway calls and timer transitions."""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Callable, Optional, TextIO

from .adapters import GatewayError
from .commands import Command, CommandKind, ValidationError, next_occurrence
from .core import CommandReceipt, DeferredAction, GatewayAdapter, PowerCommand
from .core.timer import format_duration
from .display import INTERACTIVE_HELP, render_failure, render_receipt, render_snapshot

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ControlSession:
    """State shared by the dispatcher and the interactive loop.

    Only the dispatcher replaces ``timer``; the loop reads it to decide
    whether a deferred power-off is pending.
    """

    timer: DeferredAction = field(default_factory=DeferredAction)


class CommandDispatcher:
    """Executes operator commands against a single device.

    Every gateway call runs under one lock, and timer transitions that follow
    a submission happen before the lock is released, so a periodic expiry
    check and an operator command never submit concurrently.
    """

    def __init__(
        self,
        gateway: GatewayAdapter,
        session: ControlSession,
        *,
        device_no: str,
        operator_name: str,
        output: Optional[TextIO] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._gateway = gateway
        self.session = session
        self._device_no = device_no
        self._operator_name = operator_name
        self._output = output
        self._clock = clock or datetime.now
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def dispatch(self, command: Command) -> bool:
        """Run ``command``; returns False when it failed or was rejected."""

        match command.kind:
            case CommandKind.STATUS:
                return await self.show_status()
            case CommandKind.TURN_ON:
                return await self.turn_on(command.minutes)
            case CommandKind.TURN_OFF:
                return await self.turn_off()
            case CommandKind.SCHEDULE_AT:
                assert command.at is not None
                return await self.schedule_at(command.at, command.text)
            case CommandKind.HELP:
                self.emit(INTERACTIVE_HELP)
                return True
            case CommandKind.EXIT:
                self.emit("Exiting.")
                return True
            case _:
                self.emit(
                    f'Unknown command "{command.text}". Type /help for the command list.'
                )
                return False

    def reject(self, exc: ValidationError) -> bool:
        """Report a command whose arguments failed validation."""

        LOGGER.info("Rejected command: %s", exc)
        self.emit(f"Error: {exc}")
        return False

    async def show_status(self) -> bool:
        self.emit("Fetching device state...")
        async with self._lock:
            try:
                snapshot = await self._gateway.fetch_state(self._device_no)
            except GatewayError as exc:
                self.emit(render_failure("Fetching device state", exc))
                return False
        self.emit(render_snapshot(snapshot, self.session.timer.describe(self._clock())))
        return True

    async def turn_on(self, minutes: int = 0) -> bool:
        """Power on; ``minutes > 0`` arms a power-off, 0 cancels any pending one."""

        self.emit("Powering on...")
        async with self._lock:
            if await self._submit(PowerCommand.OPEN, "Power on") is None:
                return False

            if minutes > 0:
                target = self._clock() + timedelta(minutes=minutes)
                self._arm(target, f"{minutes} minutes")
            else:
                self._cancel("un-timed power on")

        if minutes > 0:
            self.emit(f"Power-off scheduled in {minutes} minutes.")
        return True

    async def turn_off(self) -> bool:
        self.emit("Powering off...")
        async with self._lock:
            if await self._submit(PowerCommand.CLOSE, "Power off") is None:
                return False
            was_armed = self.session.timer.armed
            self._cancel("explicit power off")

        if was_armed:
            self.emit("Pending timer cancelled.")
        return True

    async def schedule_at(self, at: time, text: str) -> bool:
        """Power on now and arm a power-off at the next occurrence of ``at``."""

        now = self._clock()
        target = next_occurrence(at, now)

        self.emit("Powering on and scheduling power-off...")
        async with self._lock:
            if await self._submit(PowerCommand.OPEN, "Power on") is None:
                return False
            self._arm(target, f"at {text}")

        self.emit(
            f"Power-off scheduled at {target:%Y-%m-%d %H:%M:%S} "
            f"(in {format_duration(target - now)})."
        )
        return True

    async def fire_if_due(self) -> bool:
        """Submit the deferred power-off if it is due; returns True if it fired.

        The action is consumed whether or not the submission succeeds.
        """

        async with self._lock:
            if not self.session.timer.is_due(self._clock()):
                return False

            self.emit("Timer expired, powering off...")
            try:
                receipt = await self._submit(PowerCommand.CLOSE, "Automatic power off")
            finally:
                self._cancel("fired")

        if receipt is not None:
            self.emit("Device powered off by timer.")
        return True

    def now(self) -> datetime:
        return self._clock()

    def emit(self, text: str) -> None:
        print(text, file=self._output or sys.stdout, flush=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _submit(self, command: PowerCommand, action: str) -> Optional[CommandReceipt]:
        # Callers hold self._lock. State is re-fetched every time; the device
        # may have been changed out-of-band since the last command.
        try:
            snapshot = await self._gateway.fetch_state(self._device_no)
        except GatewayError as exc:
            self.emit(render_failure("Fetching device state", exc))
            return None

        try:
            receipt = await self._gateway.submit_command(
                snapshot.with_power(command, self._operator_name)
            )
        except GatewayError as exc:
            self.emit(render_failure(action, exc))
            return None

        LOGGER.info(
            "%s submitted for device %s (message %s)",
            command.value,
            receipt.device_no or self._device_no,
            receipt.message_id,
        )
        self.emit(render_receipt(receipt))
        return receipt

    def _arm(self, target: datetime, description: str) -> None:
        self.session.timer = self.session.timer.arm(target, description)
        LOGGER.info("Deferred power-off armed for %s (%s)", target, description)

    def _cancel(self, reason: str) -> None:
        if self.session.timer.armed:
            LOGGER.info("Deferred power-off cancelled: %s", reason)
        self.session.timer = self.session.timer.cancel()
