"""Wire models for the collection service.

HeartbeatPayload and FeedbackRecord mirror the JSON bodies of
POST /api/v1/heartbeat/ and POST /api/v1/feedback/. HeartbeatResult is the
outcome of a single heartbeat attempt; the scheduler discards it.
"""

from __future__ import annotations

__all__ = [
    "FeedbackRecord",
    "GapType",
    "HeartbeatPayload",
    "HeartbeatResult",
]

from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# Known gap categories. The service accepts any string for gap_type.
GapType = Literal[
    "missing_tool",
    "incomplete_results",
    "missing_parameter",
    "wrong_format",
    "other",
]


class HeartbeatPayload(BaseModel):
    """Body of one heartbeat POST."""

    server_slug: str
    tool_count: int
    tool_names: list[str]

    @classmethod
    def for_server(cls, server_slug: str, tool_names: tuple[str, ...]) -> "HeartbeatPayload":
        return cls(
            server_slug=server_slug,
            tool_count=len(tool_names),
            tool_names=list(tool_names),
        )


class FeedbackRecord(BaseModel):
    """One feedback event reported by an agent.

    server_slug is accepted so that dicts built for the wire can be passed
    back in, but the sender always overwrites it with the configured slug.
    Unset optional fields are left off the wire.
    """

    what_i_needed: str = Field(description="What the agent needed to accomplish")
    what_i_tried: str = Field(description="Tools or approaches the agent tried")
    gap_type: Optional[str] = None
    suggestion: Optional[str] = None
    user_goal: Optional[str] = None
    resolution: Optional[str] = None
    tools_available: Optional[list[str]] = None
    agent_model: Optional[str] = None
    session_id: Optional[str] = None
    client_type: Optional[str] = None
    server_slug: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    def to_payload(self, server_slug: str) -> dict[str, Any]:
        """Serialize for the wire, stamped with the configured server slug."""
        data = self.model_dump(exclude_unset=True, exclude_none=True, exclude={"server_slug"})
        return {"server_slug": server_slug, **data}


@dataclass(frozen=True)
class HeartbeatResult:
    """Outcome of a single heartbeat attempt.

    Attributes:
        ok: True if the service answered with a success status.
        status_code: HTTP status, None if no response was received.
        error: Failure description, None on success.
    """

    ok: bool
    status_code: int | None = None
    error: str | None = None
