"""Command-line interface for patchworkmcp.

Operator tooling for checking connectivity and recovering dropped feedback.
"""

from .main import cli, main

__all__ = ["cli", "main"]
