"""Custom exceptions for patchworkmcp.

None of these escape the public surface of PatchworkMiddleware. They are
raised inside a single delivery attempt and absorbed by the caller that
owns the retry or scheduling policy:

    - HeartbeatError: Service rejected a heartbeat (dropped until next tick)
    - FeedbackRejectedError: Service rejected a feedback record (retried)

Usage:
    from patchworkmcp.exceptions import HeartbeatError
"""

from __future__ import annotations

__all__ = [
    "FeedbackRejectedError",
    "HeartbeatError",
    "PatchworkError",
]


class PatchworkError(Exception):
    """Base exception for patchworkmcp delivery failures."""


class _RejectedError(PatchworkError):
    """The service answered with a non-success HTTP status."""

    kind: str = "request"

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"{self.kind.capitalize()} failed: {status_code}")


class HeartbeatError(_RejectedError):
    """Heartbeat POST returned a non-success status.

    Attributes:
        status_code: HTTP status returned by the service.
        body: Response text, truncated by the caller if large.
    """

    kind = "heartbeat"


class FeedbackRejectedError(_RejectedError):
    """Feedback POST returned a non-success status.

    Counts as a failed attempt; the sender backs off and retries like a
    transport error.
    """

    kind = "feedback"
