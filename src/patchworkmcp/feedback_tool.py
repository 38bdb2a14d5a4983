"""Drop-in feedback tool for MCP servers.

Agents call this tool when a server could not give them what they needed.
The tool forwards the report through PatchworkMiddleware.send_feedback.

FastMCP servers:
    mw = await start_middleware(tool_names=[...])
    register_feedback_tool(server, mw)

Other MCP servers can advertise get_tool_definition() and call
send_feedback() / send_feedback_sync() from their own handler.
"""

__all__ = [
    "TOOL_DESCRIPTION",
    "TOOL_INPUT_SCHEMA",
    "TOOL_NAME",
    "get_tool_definition",
    "register_feedback_tool",
    "send_feedback",
    "send_feedback_sync",
]

import asyncio
import concurrent.futures
from collections.abc import Mapping
from typing import Any, get_args

from fastmcp import Context, FastMCP

from patchworkmcp.config import MiddlewareConfig
from patchworkmcp.feedback import FeedbackSender
from patchworkmcp.middleware import PatchworkMiddleware
from patchworkmcp.models import FeedbackRecord, GapType

TOOL_NAME = "feedback"

TOOL_DESCRIPTION = (
    "Report a gap in this server's tools. Call this when you could not complete "
    "a task because a tool was missing, returned incomplete results, lacked a "
    "parameter, or returned data in the wrong format. Describe what you needed "
    "and what you tried; the server maintainers use these reports to decide "
    "what to build next."
)

TOOL_INPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "what_i_needed": {
            "type": "string",
            "description": "What you were trying to accomplish",
        },
        "what_i_tried": {
            "type": "string",
            "description": "Tools or approaches you tried and what happened",
        },
        "gap_type": {
            "type": "string",
            "enum": list(get_args(GapType)),
            "description": "Kind of gap encountered",
        },
        "suggestion": {
            "type": "string",
            "description": "Tool or change that would have helped",
        },
        "user_goal": {
            "type": "string",
            "description": "The end user's underlying goal, if known",
        },
        "resolution": {
            "type": "string",
            "description": "How you worked around the gap, if at all",
        },
        "tools_available": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Tools you had access to",
        },
        "agent_model": {
            "type": "string",
            "description": "Model identifier of the agent",
        },
    },
    "required": ["what_i_needed", "what_i_tried"],
}

_DELIVERED_MESSAGE = "Thank you. Your feedback has been recorded."
_UNDELIVERED_MESSAGE = "Feedback could not be delivered right now. It has been logged for later review."


def get_tool_definition() -> dict[str, Any]:
    """MCP tool definition (name, description, inputSchema)."""
    return {
        "name": TOOL_NAME,
        "description": TOOL_DESCRIPTION,
        "inputSchema": TOOL_INPUT_SCHEMA,
    }


def _request_metadata(ctx: Context) -> dict[str, str]:
    """Session id and client name from the FastMCP request context, best effort."""
    metadata: dict[str, str] = {}

    # Context may not be bound to a session outside a request
    try:
        if ctx.session_id:
            metadata["session_id"] = ctx.session_id
    except (AttributeError, RuntimeError):
        pass
    try:
        client_info = ctx.session.client_params.clientInfo
        if client_info.name:
            metadata["client_type"] = client_info.name
    except (AttributeError, RuntimeError):
        pass
    return metadata


def register_feedback_tool(server: FastMCP, middleware: PatchworkMiddleware) -> None:
    """Register the feedback tool on a FastMCP server.

    Args:
        server: FastMCP server to register on.
        middleware: Middleware that delivers the reports.
    """

    async def feedback(
        what_i_needed: str,
        what_i_tried: str,
        ctx: Context,
        gap_type: GapType | None = None,
        suggestion: str | None = None,
        user_goal: str | None = None,
        resolution: str | None = None,
        tools_available: list[str] | None = None,
        agent_model: str | None = None,
    ) -> str:
        record: dict[str, Any] = {
            "what_i_needed": what_i_needed,
            "what_i_tried": what_i_tried,
            "gap_type": gap_type,
            "suggestion": suggestion,
            "user_goal": user_goal,
            "resolution": resolution,
            "tools_available": tools_available,
            "agent_model": agent_model,
            **_request_metadata(ctx),
        }
        result = await middleware.send_feedback({k: v for k, v in record.items() if v is not None})
        return _DELIVERED_MESSAGE if result is not None else _UNDELIVERED_MESSAGE

    server.tool(name=TOOL_NAME, description=TOOL_DESCRIPTION)(feedback)


async def send_feedback(
    feedback: FeedbackRecord | Mapping[str, Any],
    config: MiddlewareConfig | None = None,
) -> dict[str, Any] | None:
    """One-shot feedback delivery without a running middleware.

    Args:
        feedback: Record or dict with what_i_needed, what_i_tried, ...
        config: Configuration; defaults to the environment.

    Returns:
        API response dict, or None if not delivered.
    """
    sender = FeedbackSender(config or MiddlewareConfig.from_env())
    return await sender.send(feedback)


def send_feedback_sync(
    feedback: FeedbackRecord | Mapping[str, Any],
    config: MiddlewareConfig | None = None,
) -> dict[str, Any] | None:
    """Blocking variant of send_feedback() for synchronous handlers.

    Works inside a running event loop by delivering on a worker thread.
    """
    try:
        asyncio.get_running_loop()
        in_async_context = True
    except RuntimeError:
        in_async_context = False

    if in_async_context:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
            future = executor.submit(asyncio.run, send_feedback(feedback, config))
            return future.result()
    return asyncio.run(send_feedback(feedback, config))
