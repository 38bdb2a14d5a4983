"""Best-effort feedback delivery.

FeedbackSender POSTs one feedback record with bounded retry:
- Up to FEEDBACK_MAX_ATTEMPTS attempts (3)
- Success (2xx): parsed JSON body returned, no further attempts
- Transport error or non-2xx status: back off BASE * 2**attempt seconds
  (1s, 2s) and try again
- Last attempt fails: the full payload is logged once at ERROR as
  UNSENT_FEEDBACK and None is returned

send() never raises. Undelivered records are not requeued; the log line is
their only trace.
"""

from __future__ import annotations

__all__ = ["FeedbackSender"]

import asyncio
import json
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import ValidationError

from patchworkmcp.config import MiddlewareConfig
from patchworkmcp.constants import (
    FEEDBACK_BACKOFF_BASE_SECONDS,
    FEEDBACK_MAX_ATTEMPTS,
    FEEDBACK_PATH,
    FEEDBACK_TIMEOUT_SECONDS,
    TRANSPORT_ERRORS,
    UNSENT_FEEDBACK_PREFIX,
)
from patchworkmcp.exceptions import FeedbackRejectedError
from patchworkmcp.models import FeedbackRecord
from patchworkmcp.telemetry.system_logger import get_system_logger
from patchworkmcp.transport import parse_json_body, post_json

_system_logger = get_system_logger()

# Failures worth another attempt
_RETRYABLE_ERRORS: tuple[type[Exception], ...] = (FeedbackRejectedError, *TRANSPORT_ERRORS)


class FeedbackSender:
    """Retrying sender for feedback records.

    Holds no mutable state, so concurrent send() calls are independent.
    """

    def __init__(
        self,
        config: MiddlewareConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        max_attempts: int = FEEDBACK_MAX_ATTEMPTS,
        backoff_base_seconds: float = FEEDBACK_BACKOFF_BASE_SECONDS,
    ) -> None:
        self._config = config
        self._transport = transport
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base_seconds

    def build_payload(self, record: FeedbackRecord | Mapping[str, Any]) -> dict[str, Any]:
        """Validate a record and stamp it with the configured server slug.

        Raises:
            pydantic.ValidationError: If required fields are missing or invalid.
        """
        if not isinstance(record, FeedbackRecord):
            record = FeedbackRecord.model_validate(dict(record))
        return record.to_payload(self._config.server_slug)

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (zero-based)."""
        return self.backoff_base * (2**attempt)

    async def send(self, record: FeedbackRecord | Mapping[str, Any]) -> dict[str, Any] | None:
        """Deliver a feedback record.

        Args:
            record: FeedbackRecord or a dict with the same keys. Any
                server_slug in it is replaced.

        Returns:
            Parsed response body on success, None if not delivered.
        """
        try:
            payload = self.build_payload(record)
        except ValidationError as e:
            _system_logger.error(
                {
                    "event": "feedback_invalid",
                    "message": f"Feedback not sent, invalid record: {e.error_count()} error(s)",
                    "errors": e.errors(include_url=False),
                }
            )
            return None

        for attempt in range(self.max_attempts):
            try:
                return await self._post(payload)
            except _RETRYABLE_ERRORS as e:
                if attempt == self.max_attempts - 1:
                    self._log_undelivered(payload, e, attempts=attempt + 1)
                    return None
                delay = self.backoff_delay(attempt)
                _system_logger.info(
                    {
                        "event": "feedback_retry",
                        "message": f"Feedback attempt {attempt + 1} failed, retrying in {delay:.0f}s",
                        "error": str(e),
                        "error_type": type(e).__name__,
                    }
                )
                await asyncio.sleep(delay)
            except Exception as e:
                # Not a delivery failure: no retry
                self._log_undelivered(payload, e, attempts=attempt + 1)
                return None
        return None

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = await post_json(
            self._config.endpoint(FEEDBACK_PATH),
            self._config.headers,
            payload,
            timeout=FEEDBACK_TIMEOUT_SECONDS,
            transport=self._transport,
        )
        if not response.is_success:
            raise FeedbackRejectedError(response.status_code, response.text[:200])
        return parse_json_body(response)

    def _log_undelivered(self, payload: dict[str, Any], error: Exception, *, attempts: int) -> None:
        _system_logger.error(
            {
                "event": "feedback_undelivered",
                "message": f"{UNSENT_FEEDBACK_PREFIX}: {json.dumps(payload)} - {error}",
                "payload": payload,
                "error": str(error),
                "error_type": type(error).__name__,
                "attempts": attempts,
            }
        )
