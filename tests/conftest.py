"""Shared fixtures: configuration and a scripted collection service."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from patchworkmcp.config import MiddlewareConfig

# An outcome is either (status_code, json_body) or an exception to raise
Outcome = tuple[int, Any] | Exception


class ScriptedService:
    """httpx.MockTransport backed by a list of scripted outcomes.

    Each request consumes the next outcome; the last one repeats forever.
    """

    def __init__(self, outcomes: list[Outcome]) -> None:
        self.outcomes = outcomes
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes[min(len(self.requests), len(self.outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        status_code, body = outcome
        return httpx.Response(status_code, json=body)

    @property
    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def config() -> MiddlewareConfig:
    """Complete configuration used across tests."""
    return MiddlewareConfig(
        api_url="https://collector.test",
        api_key="k",
        server_slug="svc1",
        tool_names=["a", "b"],
    )


@pytest.fixture
def service() -> Callable[..., ScriptedService]:
    """Factory: service(outcome, outcome, ...) -> ScriptedService."""

    def _make(*outcomes: Outcome) -> ScriptedService:
        return ScriptedService(list(outcomes) or [(200, {})])

    return _make
