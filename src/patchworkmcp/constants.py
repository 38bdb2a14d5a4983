"""Application-wide constants for patchworkmcp.

Constants that define middleware behavior.
For per-deployment settings (URL, API key, server slug), see config.py.
"""

from __future__ import annotations

__all__ = [
    # Application identity
    "APP_NAME",
    # Environment variables
    "ENV_API_URL",
    "ENV_API_KEY",
    "ENV_SERVER_SLUG",
    # Remote service
    "DEFAULT_API_URL",
    "HEARTBEAT_PATH",
    "FEEDBACK_PATH",
    # Heartbeat
    "HEARTBEAT_INTERVAL_SECONDS",
    "HEARTBEAT_TIMEOUT_SECONDS",
    # Feedback delivery
    "FEEDBACK_MAX_ATTEMPTS",
    "FEEDBACK_BACKOFF_BASE_SECONDS",
    "FEEDBACK_TIMEOUT_SECONDS",
    # Logging
    "SYSTEM_LOG_FILENAME",
    "UNSENT_FEEDBACK_PREFIX",
    # Transport errors
    "TRANSPORT_ERRORS",
]

import httpx

# ============================================================================
# Application Identity
# ============================================================================

APP_NAME: str = "patchworkmcp"

# ============================================================================
# Environment Variables
# ============================================================================

# Read once by MiddlewareConfig.from_env(), never at import time
ENV_API_URL: str = "PATCHWORKMCP_API_URL"
ENV_API_KEY: str = "PATCHWORKMCP_API_KEY"
ENV_SERVER_SLUG: str = "PATCHWORKMCP_SERVER_SLUG"

# ============================================================================
# Remote Collection Service
# ============================================================================

DEFAULT_API_URL: str = "https://app.patchworkmcp.com"

# Endpoint paths, appended to the base URL (trailing slash required by the service)
HEARTBEAT_PATH: str = "/api/v1/heartbeat/"
FEEDBACK_PATH: str = "/api/v1/feedback/"

# ============================================================================
# Heartbeat
# ============================================================================

# Interval between heartbeat ticks (seconds)
HEARTBEAT_INTERVAL_SECONDS: float = 60.0

# Per-request timeout for a heartbeat POST (seconds)
# Shorter than the interval so a hung request never outlives its tick by much
HEARTBEAT_TIMEOUT_SECONDS: float = 10.0

# ============================================================================
# Feedback Delivery
# ============================================================================

# Total attempts per feedback record (not retries)
# 3 attempts: immediate -> wait 1s -> retry -> wait 2s -> retry -> drop
FEEDBACK_MAX_ATTEMPTS: int = 3

# Backoff before attempt n+1 is BASE * 2**n seconds (n is zero-based)
FEEDBACK_BACKOFF_BASE_SECONDS: float = 1.0

# Per-request timeout for a feedback POST (seconds)
FEEDBACK_TIMEOUT_SECONDS: float = 15.0

# ============================================================================
# Logging
# ============================================================================

# JSONL file for WARNING and above, under the platform log dir
SYSTEM_LOG_FILENAME: str = "system.jsonl"

# Prefix of the console line carrying an undelivered payload.
# Operators grep for this to recover dropped feedback.
UNSENT_FEEDBACK_PREFIX: str = "UNSENT_FEEDBACK"

# ============================================================================
# Transport Error Detection
# ============================================================================

# Errors that mean the request never got a response (retryable)
# - NetworkError: ConnectError, CloseError, ReadError, WriteError
# - TimeoutException: ConnectTimeout, ReadTimeout, WriteTimeout, PoolTimeout
# - ProtocolError: RemoteProtocolError, LocalProtocolError
TRANSPORT_ERRORS: tuple[type[Exception], ...] = (
    ConnectionError,
    httpx.NetworkError,
    httpx.TimeoutException,
    httpx.ProtocolError,
)
