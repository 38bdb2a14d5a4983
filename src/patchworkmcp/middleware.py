"""PatchworkMCP middleware for Python MCP servers.

Provides heartbeat monitoring and feedback collection. Call
`start_middleware()` after your server starts. It handles:
  - Periodic heartbeat pings to PatchworkMCP
  - Best-effort feedback delivery with retry

Environment variables (read once, by MiddlewareConfig.from_env):
  PATCHWORKMCP_API_URL     - Base URL (default: https://app.patchworkmcp.com)
  PATCHWORKMCP_API_KEY     - Your team API key (required)
  PATCHWORKMCP_SERVER_SLUG - Your server slug (required)

Usage:
    mw = await start_middleware(tool_names=["search", "fetch"])
    ...
    await mw.send_feedback({"what_i_needed": "...", "what_i_tried": "..."})
    ...
    await mw.stop()
"""

from __future__ import annotations

__all__ = [
    "PatchworkMiddleware",
    "start_middleware",
]

from collections.abc import Mapping
from types import TracebackType
from typing import Any

import httpx

from patchworkmcp.config import MiddlewareConfig
from patchworkmcp.constants import HEARTBEAT_INTERVAL_SECONDS
from patchworkmcp.feedback import FeedbackSender
from patchworkmcp.heartbeat import HeartbeatScheduler
from patchworkmcp.models import FeedbackRecord
from patchworkmcp.telemetry.system_logger import get_system_logger

_system_logger = get_system_logger()


class PatchworkMiddleware:
    """Owns the server identity, the heartbeat timer, and feedback submission.

    Nothing here raises into the hosting server: a misconfigured middleware
    logs a warning and stays idle, and undelivered feedback resolves to None.
    """

    def __init__(
        self,
        config: MiddlewareConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        heartbeat_interval: float = HEARTBEAT_INTERVAL_SECONDS,
        **overrides: Any,
    ) -> None:
        """Initialize the middleware. No network activity.

        Args:
            config: Resolved configuration. When omitted, built from the
                environment plus overrides.
            transport: Optional httpx transport shared by both senders.
            heartbeat_interval: Seconds between heartbeats (default 60).
            **overrides: api_url, api_key, server_slug, tool_names. Only
                valid without an explicit config.

        Raises:
            TypeError: If both config and overrides are given.
        """
        if config is None:
            config = MiddlewareConfig.from_env(**overrides)
        elif overrides:
            raise TypeError("Pass either a MiddlewareConfig or keyword overrides, not both")

        self._config = config
        self._scheduler = HeartbeatScheduler(
            config,
            interval_seconds=heartbeat_interval,
            transport=transport,
        )
        self._sender = FeedbackSender(config, transport=transport)

    @property
    def config(self) -> MiddlewareConfig:
        return self._config

    @property
    def server_slug(self) -> str:
        return self._config.server_slug

    @property
    def tool_names(self) -> tuple[str, ...]:
        return self._config.tool_names

    @property
    def scheduler(self) -> HeartbeatScheduler:
        return self._scheduler

    @property
    def is_running(self) -> bool:
        """True while heartbeats are scheduled."""
        return self._scheduler.is_armed

    async def start(self) -> None:
        """Send a first heartbeat and schedule the rest.

        Skipped with a warning when the API key or server slug is missing.
        Calling start() while already running does nothing.
        """
        if not self._config.is_complete:
            _system_logger.warning(
                {
                    "event": "middleware_not_started",
                    "message": "PatchworkMCP middleware not started: missing API_KEY or SERVER_SLUG",
                    "has_api_key": bool(self._config.api_key),
                    "has_server_slug": bool(self._config.server_slug),
                }
            )
            return

        if not self._scheduler.arm():
            return

        _system_logger.info(
            {
                "event": "middleware_started",
                "message": f"PatchworkMCP middleware started for {self.server_slug}",
                "server_slug": self.server_slug,
                "tool_count": len(self.tool_names),
                "interval_seconds": self._scheduler.interval,
            }
        )

    async def stop(self) -> None:
        """Stop scheduling heartbeats. Safe to call when not running."""
        if not self._scheduler.is_armed:
            return
        await self._scheduler.disarm()
        _system_logger.info(
            {
                "event": "middleware_stopped",
                "message": f"PatchworkMCP middleware stopped for {self.server_slug}",
                "server_slug": self.server_slug,
            }
        )

    async def send_feedback(
        self,
        feedback: FeedbackRecord | Mapping[str, Any],
    ) -> dict[str, Any] | None:
        """Send feedback to the PatchworkMCP API.

        Args:
            feedback: FeedbackRecord, or a dict with keys what_i_needed,
                what_i_tried, gap_type, etc. server_slug is always replaced
                by the configured one.

        Returns:
            API response dict, or None if the feedback was not delivered.
        """
        return await self._sender.send(feedback)

    async def __aenter__(self) -> "PatchworkMiddleware":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()


async def start_middleware(
    config: MiddlewareConfig | None = None,
    **kwargs: Any,
) -> PatchworkMiddleware:
    """Create and start the PatchworkMCP middleware.

    Call this after your MCP server starts. Pass the list of tool names your
    server exposes for accurate heartbeat reporting.

    Args:
        config: Resolved configuration (optional).
        **kwargs: Constructor keywords (tool_names, api_key, transport, ...).

    Returns:
        The running middleware; keep it to call stop() later.
    """
    mw = PatchworkMiddleware(config, **kwargs)
    await mw.start()
    return mw
