"""Core reconciliation logic including configuration, state and planning."""

__all__ = [
    "config",
    "context",
    "reconciler",
    "resource",
    "runner",
    "status_store",
]
