"""Main CLI entry point for patchworkmcp.

Commands:
    heartbeat - Send one heartbeat (connectivity check)
    feedback  - Send one feedback record
    replay    - Re-send undelivered feedback from a system log
"""

from __future__ import annotations

__all__ = ["cli", "main"]

import sys
from pathlib import Path

import click

from patchworkmcp import __version__
from patchworkmcp.telemetry.system_logger import configure_system_logger_file

from .commands.feedback import feedback
from .commands.heartbeat import heartbeat
from .commands.replay import replay


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write warnings and errors to this JSONL file",
)
@click.pass_context
def cli(ctx: click.Context, version: bool, log_file: Path | None) -> None:
    """patchworkmcp: heartbeat and feedback tooling for MCP servers."""
    if version:
        click.echo(f"patchworkmcp {__version__}")
        sys.exit(0)
    if log_file is not None:
        configure_system_logger_file(log_file)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(feedback)
cli.add_command(heartbeat)
cli.add_command(replay)


def main() -> None:
    """CLI entry point."""
    cli()
