"""Periodic liveness reporting.

HeartbeatScheduler fires one heartbeat as soon as it is armed, then one per
interval until disarmed. Each heartbeat is a single fire-and-forget POST:
- No retry; the next tick is the only recovery
- Failures become a HeartbeatResult that the tick loop discards
- Ticks do not wait for the previous heartbeat, so requests may overlap

Disarming cancels the timer only. A heartbeat already in flight runs to
completion in the background.
"""

from __future__ import annotations

__all__ = ["HeartbeatScheduler"]

import asyncio

import httpx

from patchworkmcp.config import MiddlewareConfig
from patchworkmcp.constants import (
    HEARTBEAT_INTERVAL_SECONDS,
    HEARTBEAT_PATH,
    HEARTBEAT_TIMEOUT_SECONDS,
    TRANSPORT_ERRORS,
)
from patchworkmcp.exceptions import HeartbeatError
from patchworkmcp.models import HeartbeatPayload, HeartbeatResult
from patchworkmcp.telemetry.system_logger import get_system_logger
from patchworkmcp.transport import post_json

_system_logger = get_system_logger()


class HeartbeatScheduler:
    """Timer handle plus the heartbeat it fires.

    The timer is an asyncio task that exists only while armed; is_armed makes
    the armed/disarmed state inspectable. At most one timer per scheduler.
    """

    def __init__(
        self,
        config: MiddlewareConfig,
        *,
        interval_seconds: float = HEARTBEAT_INTERVAL_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the scheduler. Nothing is sent until arm().

        Args:
            config: Identity and endpoint settings.
            interval_seconds: Delay between ticks (default 60s).
            transport: Optional httpx transport for the POSTs.
        """
        self._config = config
        self.interval = interval_seconds
        self._transport = transport
        self._timer: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[HeartbeatResult]] = set()

    @property
    def is_armed(self) -> bool:
        """True while the recurring timer is live."""
        return self._timer is not None and not self._timer.done()

    @property
    def in_flight(self) -> int:
        """Number of heartbeat requests still pending."""
        return len(self._in_flight)

    def arm(self) -> bool:
        """Fire one heartbeat now and start the recurring timer.

        Must be called from a running event loop.

        Returns:
            False if the timer was already armed (nothing changes), else True.
        """
        if self.is_armed:
            return False

        self._fire()
        self._timer = asyncio.create_task(self._tick_loop(), name="patchworkmcp_heartbeat")
        return True

    async def disarm(self) -> None:
        """Cancel the timer. Safe to call when not armed."""
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass

    async def drain(self) -> None:
        """Wait for heartbeats already in flight to finish."""
        if self._in_flight:
            await asyncio.gather(*self._in_flight)

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._fire()

    def _fire(self) -> None:
        # Result discarded; the set only holds a reference until done
        task = asyncio.create_task(self.beat())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def beat(self) -> HeartbeatResult:
        """Send one heartbeat and report the outcome instead of raising.

        Returns:
            HeartbeatResult with ok=False on rejection or transport failure.
        """
        try:
            status_code = await self.send()
        except HeartbeatError as e:
            return self._failed(str(e), status_code=e.status_code)
        except TRANSPORT_ERRORS as e:
            return self._failed(f"{type(e).__name__}: {e}")
        except Exception as e:
            _system_logger.warning(
                {
                    "event": "heartbeat_crashed",
                    "message": f"Unexpected heartbeat error: {e}",
                    "error_type": type(e).__name__,
                }
            )
            return HeartbeatResult(ok=False, error=str(e))
        return HeartbeatResult(ok=True, status_code=status_code)

    async def send(self) -> int:
        """POST a heartbeat built from the current configuration.

        Returns:
            HTTP status code of the success response.

        Raises:
            HeartbeatError: If the service answered with a non-success status.
            httpx.HTTPError: On network, timeout, or protocol failure.
            ConnectionError: If a custom transport fails to connect.
        """
        payload = HeartbeatPayload.for_server(self._config.server_slug, self._config.tool_names)
        response = await post_json(
            self._config.endpoint(HEARTBEAT_PATH),
            self._config.headers,
            payload.model_dump(),
            timeout=HEARTBEAT_TIMEOUT_SECONDS,
            transport=self._transport,
        )
        if not response.is_success:
            raise HeartbeatError(response.status_code, response.text[:200])
        return response.status_code

    def _failed(self, error: str, status_code: int | None = None) -> HeartbeatResult:
        _system_logger.info(
            {
                "event": "heartbeat_failed",
                "message": f"Heartbeat failed: {error}",
                "status_code": status_code,
            }
        )
        return HeartbeatResult(ok=False, status_code=status_code, error=error)
