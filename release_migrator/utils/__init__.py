"""Shared utilities for external commands and logging."""

__all__ = [
    "command",
    "logging",
]
