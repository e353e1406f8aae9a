"""Protocol definitions for gateway adapters."""

from __future__ import annotations

from typing import Protocol

from .models import CommandReceipt, DeviceSnapshot


class GatewayAdapter(Protocol):
    """Minimal contract for components that reach the device gateway."""

    async def fetch_state(self, device_no: str) -> DeviceSnapshot:
        """Fetch the current state of ``device_no``.

        Raises:
            GatewayError: If the request fails or the service rejects it.
        """
        ...

    async def submit_command(self, snapshot: DeviceSnapshot) -> CommandReceipt:
        """Submit a snapshot carrying a power command.

        Raises:
            GatewayError: If the request fails or the service rejects it.
        """
        ...

    async def aclose(self) -> None:
        """Close any underlying resources."""
        ...
