"""System logger for middleware events.

Singleton logger for everything the middleware reports: startup warnings,
heartbeat failures, and undelivered feedback.

Logging strategy:
- Console (stderr): INFO and above, human-readable
- File (system.jsonl): WARNING and above as JSONL, only once
  configure_system_logger_file() is called by the host

Undelivered feedback is logged at ERROR with the full payload, so the JSONL
file doubles as the recovery source for `patchworkmcp replay`.
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "default_system_log_path",
    "get_system_logger",
]

import logging
import sys
from pathlib import Path

from platformdirs import user_log_dir

from patchworkmcp.constants import APP_NAME, SYSTEM_LOG_FILENAME
from patchworkmcp.telemetry.iso_formatter import ISO8601Formatter


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output.

    Extracts the 'message' or 'event' field from dict messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        if isinstance(record.msg, dict):
            msg = record.msg.get("message") or record.msg.get("event", "")
            return f"{record.levelname}: {msg}"
        return f"{record.levelname}: {record.getMessage()}"


# Module-level singleton logger
_system_logger: logging.Logger | None = None
_file_handler_path: Path | None = None


def get_system_logger() -> logging.Logger:
    """Get the singleton system logger instance.

    Creates the logger on first call with a stderr handler only.

    Returns:
        logging.Logger: Configured system logger instance.

    Example:
        >>> logger = get_system_logger()
        >>> logger.warning({"event": "middleware_not_started", "message": "..."})
    """
    global _system_logger

    if _system_logger is not None:
        return _system_logger

    _system_logger = logging.getLogger(f"{APP_NAME}.system")
    _system_logger.setLevel(logging.INFO)
    _system_logger.propagate = False

    for handler in _system_logger.handlers:
        handler.close()
    _system_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.INFO)
    stderr_handler.setFormatter(ConsoleFormatter())
    _system_logger.addHandler(stderr_handler)

    return _system_logger


def default_system_log_path() -> Path:
    """Platform log location for system.jsonl.

    - macOS: ~/Library/Logs/patchworkmcp/system.jsonl
    - Linux: ~/.local/state/patchworkmcp/log/system.jsonl
    """
    return Path(user_log_dir(APP_NAME)) / SYSTEM_LOG_FILENAME


def configure_system_logger_file(log_path: Path | None = None) -> Path:
    """Add a JSONL file handler (WARNING and above) to the system logger.

    Idempotent: only the first call attaches a handler.

    Args:
        log_path: Destination file. Defaults to default_system_log_path().

    Returns:
        Path of the file actually being written.
    """
    global _file_handler_path

    if _file_handler_path is not None:
        return _file_handler_path

    path = log_path or default_system_log_path()
    logger = get_system_logger()

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if sys.platform != "win32":
            try:
                path.parent.chmod(0o700)
            except OSError:
                pass
    except OSError:
        pass  # FileHandler below raises with a clearer message

    file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(ISO8601Formatter())
    logger.addHandler(file_handler)

    _file_handler_path = path
    return path
