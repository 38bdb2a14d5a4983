"""Replay command for patchworkmcp CLI.

Re-sends feedback that was dropped after exhausting retries. Undelivered
payloads are only ever kept in the system log (feedback_undelivered events),
so this reads them back from a system.jsonl file.
"""

from __future__ import annotations

__all__ = ["replay", "read_undelivered"]

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click

from patchworkmcp.cli.options import connection_options, resolve_config
from patchworkmcp.cli.styling import style_dim, style_error, style_label
from patchworkmcp.config import MiddlewareConfig
from patchworkmcp.feedback import FeedbackSender
from patchworkmcp.telemetry.system_logger import default_system_log_path


def read_undelivered(log_file: Path) -> list[dict[str, Any]]:
    """Extract undelivered feedback payloads from a JSONL system log.

    Lines that are not JSON, or are other events, are skipped.

    Args:
        log_file: Path to system.jsonl.

    Returns:
        Payloads in log order.
    """
    payloads: list[dict[str, Any]] = []
    with log_file.open(encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(entry, dict) or entry.get("event") != "feedback_undelivered":
                continue
            payload = entry.get("payload")
            if isinstance(payload, dict):
                payloads.append(payload)
    return payloads


async def _replay_all(config: MiddlewareConfig, payloads: list[dict[str, Any]]) -> tuple[int, int]:
    senders: dict[str, FeedbackSender] = {}
    delivered = 0
    for payload in payloads:
        # Configured slug wins; fall back to the slug recorded with the payload
        slug = config.server_slug or payload.get("server_slug", "")
        if slug not in senders:
            senders[slug] = FeedbackSender(config.model_copy(update={"server_slug": slug}))
        if await senders[slug].send(payload) is not None:
            delivered += 1
    return delivered, len(payloads) - delivered


@click.command()
@connection_options
@click.argument(
    "log_file",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--dry-run", is_flag=True, help="List payloads without sending")
def replay(
    api_url: str | None,
    api_key: str | None,
    server_slug: str | None,
    log_file: Path | None,
    dry_run: bool,
) -> None:
    """Re-send undelivered feedback found in a system log.

    LOG_FILE defaults to the platform system.jsonl location.

    Examples:
        patchworkmcp replay
        patchworkmcp replay ./logs/system.jsonl --dry-run
    """
    path = log_file or default_system_log_path()
    if not path.exists():
        click.echo(style_dim(f"No log file at {path}"))
        return

    payloads = read_undelivered(path)
    if not payloads:
        click.echo(style_dim("No undelivered feedback found."))
        return

    if dry_run:
        for payload in payloads:
            click.echo(json.dumps(payload))
        click.echo(style_label("Undelivered") + f" {len(payloads)}")
        return

    config = resolve_config(api_url, api_key, server_slug)
    delivered, failed = asyncio.run(_replay_all(config, payloads))

    click.echo(style_label("Delivered") + f" {delivered}")
    if failed:
        click.echo(style_error(f"{failed} still undelivered"), err=True)
        sys.exit(1)
