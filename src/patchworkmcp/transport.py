"""HTTP transport for the collection service.

Each POST opens a short-lived httpx.AsyncClient. Calls are rare (one per
minute plus ad hoc feedback), so there is no pooled client to manage across
start/stop. A custom httpx transport can be injected for routing or tests.
"""

from __future__ import annotations

__all__ = [
    "parse_json_body",
    "post_json",
]

from typing import Any

import httpx


async def post_json(
    url: str,
    headers: dict[str, str],
    payload: dict[str, Any],
    *,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.Response:
    """POST a JSON body and return the response, whatever its status.

    Args:
        url: Absolute endpoint URL.
        headers: Request headers (bearer token, content type).
        payload: JSON-serializable body.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (e.g. httpx.MockTransport).

    Returns:
        The httpx.Response. Status is not checked here.

    Raises:
        httpx.HTTPError: On network, timeout, or protocol failure.
    """
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        return await client.post(url, headers=headers, json=payload)


def parse_json_body(response: httpx.Response) -> dict[str, Any]:
    """Parse a success response body into a dict.

    Empty or non-JSON bodies yield {}; JSON values that are not objects are
    wrapped as {"value": ...}.
    """
    try:
        body = response.json()
    except ValueError:
        return {}
    if isinstance(body, dict):
        return body
    return {"value": body}
