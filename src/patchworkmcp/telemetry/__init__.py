"""Operational logging for patchworkmcp."""

from patchworkmcp.telemetry.system_logger import (
    ConsoleFormatter,
    configure_system_logger_file,
    default_system_log_path,
    get_system_logger,
)

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "default_system_log_path",
    "get_system_logger",
]
