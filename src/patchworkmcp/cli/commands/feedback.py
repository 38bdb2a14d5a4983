"""Feedback command for patchworkmcp CLI.

Sends one feedback record through the same retrying sender the middleware
uses.
"""

from __future__ import annotations

__all__ = ["feedback"]

import asyncio
import json
import sys
from typing import Any, get_args

import click

from patchworkmcp.cli.options import connection_options, resolve_config
from patchworkmcp.cli.styling import style_error, style_success
from patchworkmcp.feedback import FeedbackSender
from patchworkmcp.models import GapType


@click.command()
@connection_options
@click.option("--needed", "what_i_needed", required=True, help="What was needed")
@click.option("--tried", "what_i_tried", required=True, help="What was tried")
@click.option("--gap-type", type=click.Choice(get_args(GapType)), help="Kind of gap")
@click.option("--suggestion", help="Suggested tool or change")
@click.option("--user-goal", help="End user's goal")
@click.option("--resolution", help="How the gap was worked around")
@click.option("--json", "as_json", is_flag=True, help="Print the API response as JSON")
def feedback(
    api_url: str | None,
    api_key: str | None,
    server_slug: str | None,
    what_i_needed: str,
    what_i_tried: str,
    gap_type: str | None,
    suggestion: str | None,
    user_goal: str | None,
    resolution: str | None,
    as_json: bool,
) -> None:
    """Send one feedback record.

    Exits 1 if the record could not be delivered after all retries. The
    payload is then logged as UNSENT_FEEDBACK.

    Examples:
        patchworkmcp feedback --needed "bulk export" --tried "export_one in a loop"
    """
    config = resolve_config(api_url, api_key, server_slug)
    record: dict[str, Any] = {
        "what_i_needed": what_i_needed,
        "what_i_tried": what_i_tried,
        "gap_type": gap_type,
        "suggestion": suggestion,
        "user_goal": user_goal,
        "resolution": resolution,
        "client_type": "patchworkmcp-cli",
    }
    record = {key: value for key, value in record.items() if value is not None}

    result = asyncio.run(FeedbackSender(config).send(record))

    if result is None:
        click.echo(style_error("Feedback not delivered"), err=True)
        sys.exit(1)
    if as_json:
        click.echo(json.dumps(result, indent=2))
    else:
        click.echo(style_success("Feedback delivered"))
