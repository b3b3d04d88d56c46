"""Cache module for KV-Store."""

from .store import KVStore, StatsSnapshot

__all__ = ["KVStore", "StatsSnapshot"]
