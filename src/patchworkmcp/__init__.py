"""PatchworkMCP - heartbeat and feedback middleware for Python MCP servers."""

__version__ = "0.1.0"

from patchworkmcp.config import MiddlewareConfig
from patchworkmcp.feedback_tool import (
    TOOL_DESCRIPTION,
    TOOL_INPUT_SCHEMA,
    TOOL_NAME,
    get_tool_definition,
    register_feedback_tool,
    send_feedback,
    send_feedback_sync,
)
from patchworkmcp.middleware import PatchworkMiddleware, start_middleware
from patchworkmcp.models import FeedbackRecord

__all__ = [
    "FeedbackRecord",
    "MiddlewareConfig",
    "PatchworkMiddleware",
    "TOOL_DESCRIPTION",
    "TOOL_INPUT_SCHEMA",
    "TOOL_NAME",
    "get_tool_definition",
    "register_feedback_tool",
    "send_feedback",
    "send_feedback_sync",
    "start_middleware",
]
