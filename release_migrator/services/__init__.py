"""Service integrations for the Helm v2 and Helm v3 release stores."""

__all__ = [
    "invoker",
    "probe",
]
