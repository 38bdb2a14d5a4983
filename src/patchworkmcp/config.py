"""Middleware configuration for patchworkmcp.

Identity and endpoint settings are resolved once, at startup, into an
immutable MiddlewareConfig that is handed to PatchworkMiddleware. Nothing in
the package reads the environment after that.

Example usage:
    # Environment defaults, with an explicit tool list
    config = MiddlewareConfig.from_env(tool_names=["search", "fetch"])

    # Fully explicit (tests, multiple servers in one process)
    config = MiddlewareConfig(api_key="k", server_slug="svc1")
"""

from __future__ import annotations

__all__ = [
    "MiddlewareConfig",
]

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from patchworkmcp.constants import (
    DEFAULT_API_URL,
    ENV_API_KEY,
    ENV_API_URL,
    ENV_SERVER_SLUG,
)


class MiddlewareConfig(BaseModel):
    """Identity and endpoint settings shared by heartbeat and feedback delivery.

    Attributes:
        api_url: Base URL of the collection service (trailing slash stripped).
        api_key: Team API key, sent as a bearer token.
        server_slug: Identifier of the hosting MCP server. Stamped on every
            outbound payload.
        tool_names: Names of the tools the server exposes, reported in heartbeats.
    """

    api_url: str = DEFAULT_API_URL
    api_key: str = ""
    server_slug: str = ""
    tool_names: tuple[str, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return (value or DEFAULT_API_URL).rstrip("/")

    @field_validator("tool_names", mode="before")
    @classmethod
    def _coerce_tool_names(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        return tuple(value)

    @property
    def is_complete(self) -> bool:
        """True when both the API key and server slug are set."""
        return bool(self.api_key) and bool(self.server_slug)

    @property
    def headers(self) -> dict[str, str]:
        """Request headers for both endpoints."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def endpoint(self, path: str) -> str:
        """Join an endpoint path onto the base URL."""
        return f"{self.api_url}{path}"

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> "MiddlewareConfig":
        """Build a config from environment variables plus explicit overrides.

        Empty or None overrides fall back to the environment value, so
        callers can pass optional CLI flags straight through.

        Args:
            environ: Mapping to read from (defaults to os.environ).
            **overrides: api_url, api_key, server_slug, tool_names.

        Returns:
            Frozen MiddlewareConfig.

        Raises:
            pydantic.ValidationError: If an unknown override is passed.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {
            "api_url": env.get(ENV_API_URL) or DEFAULT_API_URL,
            "api_key": env.get(ENV_API_KEY, ""),
            "server_slug": env.get(ENV_SERVER_SLUG, ""),
        }
        values.update({key: value for key, value in overrides.items() if value})
        return cls(**values)
