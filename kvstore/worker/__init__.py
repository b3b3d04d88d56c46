"""Background worker module for KV-Store."""

from .reporter import StatusReporter

__all__ = ["StatusReporter"]
