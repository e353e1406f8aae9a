"""Gateway adapter performing device fetch and command submission over HTTP."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp

from .. import constants
from ..config import GatewayConfig
from ..core import CommandReceipt, DeviceSnapshot, GatewayAdapter

LOGGER = logging.getLogger(__name__)


class GatewayError(RuntimeError):
    """Base class for failed gateway calls."""

    def __init__(self, message: str, *, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportError(GatewayError):
    """Raised on network failures, timeouts, HTTP errors and unreadable bodies."""


class RemoteRejection(GatewayError):
    """Raised when the service answers with a non-zero business code."""

    def __init__(self, code: Any, message: str, *, status_code: int = 0) -> None:
        super().__init__(
            f"gateway rejected the request (code {code}): {message}",
            status_code=status_code,
        )
        self.code = code
        self.remote_message = message


class GatewayClient(GatewayAdapter):
    """aiohttp client for the air-conditioner gateway API."""

    def __init__(
        self,
        config: GatewayConfig,
        token: str,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.config = config
        self._base_url = config.base_url.rstrip("/")
        self._timeout = config.timeout_seconds
        self._headers = dict(constants.DEFAULT_HEADERS)
        self._headers["Token"] = token

        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def fetch_state(self, device_no: str) -> DeviceSnapshot:
        """Fetch the current device state.

        Raises:
            TransportError: If the request fails, times out or returns garbage.
            RemoteRejection: If the service reports a business error.
        """

        url = f"{self._base_url}{constants.FETCH_STATE_PATH}"
        status, payload = await self._request(
            "GET", url, params={"deviceNo": device_no}
        )

        data = payload.get("data")
        if not isinstance(data, dict):
            raise TransportError(
                "device state response carried no device data", status_code=status
            )
        return DeviceSnapshot.from_payload(data, status_code=status)

    async def submit_command(self, snapshot: DeviceSnapshot) -> CommandReceipt:
        """Submit ``snapshot`` (already carrying a power command) to the gateway."""

        url = f"{self._base_url}{constants.SUBMIT_COMMAND_PATH}"
        status, payload = await self._request("POST", url, json=snapshot.to_payload())

        data = payload.get("data")
        if not isinstance(data, dict):
            data = {}
        return CommandReceipt(
            status_code=status,
            message_id=str(data.get("msgId") or ""),
            device_no=str(data.get("deviceNo") or ""),
        )

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=None)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def _request(
        self, method: str, url: str, **kwargs: Any
    ) -> tuple[int, dict[str, Any]]:
        session = await self._ensure_session()
        LOGGER.debug("%s %s", method, url)

        try:
            async with asyncio.timeout(self._timeout):
                async with session.request(
                    method, url, headers=self._headers, **kwargs
                ) as response:
                    status = response.status
                    raw = await response.read()
        except asyncio.TimeoutError as exc:
            LOGGER.warning(
                "Gateway %s timed out after %.1fs (url=%s)", method, self._timeout, url
            )
            raise TransportError(
                f"request timed out after {self._timeout:.1f}s"
            ) from exc
        except aiohttp.ClientError as exc:
            LOGGER.warning("Gateway %s failed (url=%s): %s", method, url, exc)
            raise TransportError(f"request failed: {exc}") from exc

        if not 200 <= status < 300:
            body = raw.decode("utf-8", errors="replace")
            raise TransportError(
                f"HTTP {status}: {body.strip()[:200]}", status_code=status
            )

        try:
            body = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TransportError(
                f"response body is not valid UTF-8: {exc}", status_code=status
            ) from exc

        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise TransportError(
                f"invalid JSON response: {body.strip()[:200]}", status_code=status
            ) from exc

        if not isinstance(payload, dict):
            raise TransportError("unexpected response envelope", status_code=status)

        code = payload.get("code")
        if code != 0:
            raise RemoteRejection(
                code, str(payload.get("msg") or ""), status_code=status
            )

        return status, payload
