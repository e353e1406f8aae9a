"""Application wiring for actool."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional, TextIO

from .adapters import GatewayClient
from .commands import Command
from .config import ActoolConfig
from .core import GatewayAdapter
from .dispatcher import CommandDispatcher, ControlSession
from .display import INTERACTIVE_HINT
from .logging import configure_logging
from .loop import InteractiveLoop, LineReader

LOGGER = logging.getLogger(__name__)


class ActoolApp:
    """Owns the gateway client, the control session and the dispatcher.

    The gateway and the input reader can be injected for testing.
    """

    def __init__(
        self,
        config: ActoolConfig,
        *,
        gateway: Optional[GatewayAdapter] = None,
        reader: Optional[LineReader] = None,
        output: Optional[TextIO] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._config = config
        self._gateway: GatewayAdapter = gateway or GatewayClient(
            config.gateway, config.credentials.token
        )
        self._reader = reader
        self.session = ControlSession()
        self.dispatcher = CommandDispatcher(
            self._gateway,
            self.session,
            device_no=config.credentials.device_no,
            operator_name=config.credentials.operator_name,
            output=output,
            clock=clock,
        )

    @classmethod
    def start(cls, config: ActoolConfig, command: Optional[Command] = None) -> int:
        configure_logging(
            config.logging.level,
            log_path=config.logging.path,
            log_network=config.logging.log_network,
        )
        instance = cls(config)
        try:
            return asyncio.run(instance.run(command))
        except KeyboardInterrupt:
            LOGGER.info("actool interrupted; pending timer discarded")
            return 130

    async def run(self, command: Optional[Command] = None) -> int:
        """Run ``command`` once, or the interactive session when it is None.

        A startup command that leaves a deferred power-off armed keeps the
        process in the interactive loop so the timer can still fire.
        """

        LOGGER.info("actool controlling device %s", self._config.credentials.device_no)
        try:
            if command is None:
                await self.run_interactive()
                return 0

            succeeded = await self.dispatcher.dispatch(command)
            if self.session.timer.armed:
                self.dispatcher.emit(
                    "Timer set; actool keeps running until it fires. "
                    "Type /help for commands."
                )
                await self._build_loop().run()
            return 0 if succeeded else 1
        finally:
            await self._gateway.aclose()

    async def run_interactive(self) -> None:
        await self.dispatcher.show_status()
        self.dispatcher.emit(INTERACTIVE_HINT)
        await self._build_loop().run()

    def _build_loop(self) -> InteractiveLoop:
        return InteractiveLoop(
            self.dispatcher,
            self.session,
            reader=self._reader,
            tick_seconds=self._config.scheduler.tick_seconds,
        )
