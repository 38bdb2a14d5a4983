"""Shared connection options for CLI commands.

Each option falls back to its PATCHWORKMCP_* environment variable through
MiddlewareConfig.from_env, so flags only need to be passed to override.
"""

from __future__ import annotations

__all__ = [
    "connection_options",
    "resolve_config",
]

from typing import Any, Callable, TypeVar

import click

from patchworkmcp.config import MiddlewareConfig

F = TypeVar("F", bound=Callable[..., Any])


def connection_options(func: F) -> F:
    """Add --api-url, --api-key and --server-slug to a command."""
    func = click.option("--server-slug", "-s", help="Server slug (env: PATCHWORKMCP_SERVER_SLUG)")(func)
    func = click.option("--api-key", "-k", help="Team API key (env: PATCHWORKMCP_API_KEY)")(func)
    func = click.option("--api-url", help="Service base URL (env: PATCHWORKMCP_API_URL)")(func)
    return func


def resolve_config(
    api_url: str | None,
    api_key: str | None,
    server_slug: str | None,
    **extra: Any,
) -> MiddlewareConfig:
    """Build the config from flags plus environment defaults."""
    return MiddlewareConfig.from_env(api_url=api_url, api_key=api_key, server_slug=server_slug, **extra)
