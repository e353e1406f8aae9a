"""Interactive read-eval loop with deferred power-off checks."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
import threading
from enum import Enum
from typing import Callable, Optional

from .commands import CommandKind, ValidationError, parse_line
from .dispatcher import CommandDispatcher, ControlSession

LOGGER = logging.getLogger(__name__)

PROMPT = "> "

LineReader = Callable[[], Optional[str]]


class LoopState(str, Enum):
    RUNNING = "running"
    TERMINATED = "terminated"


def read_stdin_line() -> Optional[str]:
    """Prompt on stdout and read one line from stdin; ``None`` at end of input."""

    sys.stdout.write(PROMPT)
    sys.stdout.flush()
    line = sys.stdin.readline()
    return line if line else None


class ExpiryTicker:
    """Periodically fires the deferred power-off while the loop waits for input."""

    def __init__(self, dispatcher: CommandDispatcher, interval: float) -> None:
        self._dispatcher = dispatcher
        self._interval = interval
        self._task: Optional[asyncio.Task[None]] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="actool-expiry-ticker")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._dispatcher.fire_if_due()
            except Exception:  # keep ticking; the loop still checks each cycle
                LOGGER.exception("Deferred power-off check failed")


class InteractiveLoop:
    """Runs operator commands until ``/exit`` or end of input.

    Each cycle first fires a due deferred power-off, then blocks for one line
    of input and hands the parsed command to the dispatcher. With
    ``tick_seconds > 0`` an :class:`ExpiryTicker` also checks the timer while
    the loop is waiting for input.
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        session: ControlSession,
        *,
        reader: Optional[LineReader] = None,
        tick_seconds: float = 0.0,
    ) -> None:
        self._dispatcher = dispatcher
        self._session = session
        self._reader = reader or read_stdin_line
        self._tick_seconds = tick_seconds
        self.state = LoopState.RUNNING

    async def run(self) -> None:
        self.state = LoopState.RUNNING
        ticker: Optional[ExpiryTicker] = None
        if self._tick_seconds > 0:
            ticker = ExpiryTicker(self._dispatcher, self._tick_seconds)
            ticker.start()

        try:
            while self.state is LoopState.RUNNING:
                await self._dispatcher.fire_if_due()

                line = await self._read_line()
                if line is None:
                    await self._wait_for_pending_timer()
                    self.state = LoopState.TERMINATED
                    break

                try:
                    command = parse_line(line)
                except ValidationError as exc:
                    self._dispatcher.reject(exc)
                    continue

                if command is None:
                    continue

                await self._dispatcher.dispatch(command)
                if command.kind is CommandKind.EXIT:
                    self.state = LoopState.TERMINATED
        finally:
            if ticker is not None:
                await ticker.stop()

        LOGGER.debug("Interactive loop terminated")

    async def _read_line(self) -> Optional[str]:
        # A daemon thread per read: a blocked stdin read must not keep the
        # process alive after the loop is cancelled.
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Optional[str]] = loop.create_future()

        def _deliver(result: Optional[str], error: Optional[BaseException]) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(result)

        def _worker() -> None:
            try:
                line = self._reader()
            except Exception as exc:
                loop.call_soon_threadsafe(_deliver, None, exc)
            else:
                loop.call_soon_threadsafe(_deliver, line, None)

        threading.Thread(target=_worker, name="actool-input", daemon=True).start()
        return await future

    async def _wait_for_pending_timer(self) -> None:
        timer = self._session.timer
        if not timer.armed:
            return

        self._dispatcher.emit(
            f"Input closed; waiting for the pending power-off ({timer.description})."
        )
        while self._session.timer.armed:
            remaining = self._session.timer.remaining(self._dispatcher.now())
            if remaining:
                await asyncio.sleep(remaining.total_seconds())
            await self._dispatcher.fire_if_due()
