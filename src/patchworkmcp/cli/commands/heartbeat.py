"""Heartbeat command for patchworkmcp CLI.

Sends a single heartbeat, to check the API key and server slug before
wiring the middleware into a server.
"""

from __future__ import annotations

__all__ = ["heartbeat"]

import asyncio
import sys

import click

from patchworkmcp.cli.options import connection_options, resolve_config
from patchworkmcp.cli.styling import style_error, style_success
from patchworkmcp.heartbeat import HeartbeatScheduler


@click.command()
@connection_options
@click.option("--tool", "-t", "tool_names", multiple=True, help="Tool name to report (repeatable)")
def heartbeat(
    api_url: str | None,
    api_key: str | None,
    server_slug: str | None,
    tool_names: tuple[str, ...],
) -> None:
    """Send one heartbeat and report the result.

    Examples:
        patchworkmcp heartbeat
        patchworkmcp heartbeat -s my-server -t search -t fetch
    """
    config = resolve_config(api_url, api_key, server_slug, tool_names=tool_names)
    if not config.is_complete:
        click.echo(style_error("Missing API key or server slug"), err=True)
        sys.exit(1)

    result = asyncio.run(HeartbeatScheduler(config).beat())

    if not result.ok:
        click.echo(style_error(result.error or "Heartbeat failed"), err=True)
        sys.exit(1)
    click.echo(style_success(f"Heartbeat accepted for {config.server_slug} ({len(config.tool_names)} tools)"))
