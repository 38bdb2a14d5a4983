"""Tests for PatchworkMiddleware lifecycle and feedback delegation.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from patchworkmcp.config import MiddlewareConfig
from patchworkmcp.middleware import PatchworkMiddleware, start_middleware


@pytest.fixture
def mock_logger():
    with patch("patchworkmcp.middleware._system_logger") as logger:
        yield logger


class TestConstruction:
    def test_no_network_on_construct(self, config: MiddlewareConfig, service):
        """Constructing the middleware sends nothing."""
        svc = service((200, {}))

        mw = PatchworkMiddleware(config, transport=svc.transport)

        assert svc.requests == []
        assert mw.is_running is False

    def test_overrides_without_config(self, monkeypatch: pytest.MonkeyPatch):
        """Keyword overrides are merged over environment defaults."""
        monkeypatch.setenv("PATCHWORKMCP_API_KEY", "env-key")
        monkeypatch.setenv("PATCHWORKMCP_SERVER_SLUG", "env-slug")

        mw = PatchworkMiddleware(server_slug="explicit", tool_names=["t"])

        assert mw.config.api_key == "env-key"
        assert mw.server_slug == "explicit"
        assert mw.tool_names == ("t",)

    def test_config_and_overrides_conflict(self, config: MiddlewareConfig):
        with pytest.raises(TypeError):
            PatchworkMiddleware(config, server_slug="other")


class TestStartStop:
    async def test_start_sends_immediate_heartbeat(self, config: MiddlewareConfig, service, mock_logger):
        """Valid config: one heartbeat right away and an armed timer."""
        # Arrange
        svc = service((200, {}))
        mw = PatchworkMiddleware(config, transport=svc.transport)

        # Act
        await mw.start()
        await mw.scheduler.drain()

        # Assert
        assert mw.is_running is True
        assert svc.paths() == ["/api/v1/heartbeat/"]
        mock_logger.info.assert_called_once()
        assert mock_logger.info.call_args[0][0]["event"] == "middleware_started"

        await mw.stop()
        assert mw.is_running is False

    @pytest.mark.parametrize(
        "api_key,server_slug",
        [("", "svc1"), ("k", ""), ("", "")],
    )
    async def test_start_skipped_when_incomplete(self, service, mock_logger, api_key: str, server_slug: str):
        """Missing key or slug: warning, zero requests, no timer."""
        svc = service((200, {}))
        config = MiddlewareConfig(api_key=api_key, server_slug=server_slug)
        mw = PatchworkMiddleware(config, transport=svc.transport)

        await mw.start()
        await mw.scheduler.drain()

        assert mw.is_running is False
        assert svc.requests == []
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args[0][0]["event"] == "middleware_not_started"

    async def test_start_twice_does_not_double_arm(self, config: MiddlewareConfig, service, mock_logger):
        """Repeated start() keeps one timer and one immediate heartbeat."""
        svc = service((200, {}))
        mw = PatchworkMiddleware(config, transport=svc.transport)

        await mw.start()
        await mw.start()
        await mw.scheduler.drain()

        assert len(svc.requests) == 1
        mock_logger.info.assert_called_once()

        await mw.stop()

    async def test_start_survives_heartbeat_failure(self, config: MiddlewareConfig, service, mock_logger):
        """A failing first heartbeat does not propagate or disarm the timer."""
        svc = service(httpx.ConnectError("refused"))
        mw = PatchworkMiddleware(config, transport=svc.transport)

        await mw.start()
        await mw.scheduler.drain()

        assert mw.is_running is True

        await mw.stop()

    async def test_stop_before_start(self, config: MiddlewareConfig, mock_logger):
        """stop() without start() is a no-op."""
        mw = PatchworkMiddleware(config)

        await mw.stop()

        assert mw.is_running is False
        mock_logger.info.assert_not_called()

    async def test_restart_after_stop(self, config: MiddlewareConfig, service, mock_logger):
        svc = service((200, {}))
        mw = PatchworkMiddleware(config, transport=svc.transport)

        await mw.start()
        await mw.stop()
        await mw.start()
        await mw.scheduler.drain()

        assert mw.is_running is True
        assert len(svc.requests) == 2

        await mw.stop()

    async def test_async_context_manager(self, config: MiddlewareConfig, service, mock_logger):
        svc = service((200, {}))

        async with PatchworkMiddleware(config, transport=svc.transport) as mw:
            assert mw.is_running is True
            await mw.scheduler.drain()

        assert mw.is_running is False
        assert len(svc.requests) == 1


class TestSendFeedback:
    async def test_scenario_round_trip(self, config: MiddlewareConfig, service):
        """Configured svc1 + minimal record -> body and result as documented."""
        svc = service((200, {"id": 1}))
        mw = PatchworkMiddleware(config, transport=svc.transport)

        result = await mw.send_feedback({"what_i_needed": "x", "what_i_tried": "y"})

        assert result == {"id": 1}
        assert svc.bodies == [{"server_slug": "svc1", "what_i_needed": "x", "what_i_tried": "y"}]

    async def test_works_without_start(self, config: MiddlewareConfig, service):
        """Feedback does not depend on the heartbeat timer."""
        svc = service((200, {"ok": True}))
        mw = PatchworkMiddleware(config, transport=svc.transport)

        result = await mw.send_feedback({"what_i_needed": "x", "what_i_tried": "y"})

        assert result == {"ok": True}
        assert mw.is_running is False

    async def test_slug_always_from_config(self, config: MiddlewareConfig, service):
        svc = service((200, {}))
        mw = PatchworkMiddleware(config, transport=svc.transport)

        await mw.send_feedback({"what_i_needed": "x", "what_i_tried": "y", "server_slug": "spoof"})

        assert svc.bodies[0]["server_slug"] == "svc1"

    async def test_returns_none_when_undelivered(self, config: MiddlewareConfig, service):
        svc = service(httpx.ConnectError("down"))
        mw = PatchworkMiddleware(config, transport=svc.transport)

        with patch("patchworkmcp.feedback.asyncio.sleep", new_callable=AsyncMock):
            with patch("patchworkmcp.feedback._system_logger"):
                result = await mw.send_feedback({"what_i_needed": "x", "what_i_tried": "y"})

        assert result is None
        assert len(svc.requests) == 3


class TestStartMiddleware:
    async def test_returns_running_instance(self, config: MiddlewareConfig, service, mock_logger):
        svc = service((200, {}))

        mw = await start_middleware(config, transport=svc.transport)
        await mw.scheduler.drain()

        assert isinstance(mw, PatchworkMiddleware)
        assert mw.is_running is True
        assert len(svc.requests) == 1

        await mw.stop()

    async def test_keyword_config(self, service, mock_logger):
        svc = service((200, {}))

        mw = await start_middleware(
            api_key="k",
            server_slug="svc2",
            tool_names=["only"],
            transport=svc.transport,
        )
        await mw.scheduler.drain()

        assert svc.bodies == [{"server_slug": "svc2", "tool_count": 1, "tool_names": ["only"]}]

        await mw.stop()
