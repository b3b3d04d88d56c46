"""
Key-Value Store Module

This module implements the shared in-memory state of the service: a
string -> string mapping plus a request counter.

Every operation takes the same lock, so each call is atomic with respect
to every other call, whether it comes from the event loop, a threadpool
worker running a handler, or the background status reporter.
"""

import threading
from dataclasses import asdict, dataclass
from typing import Dict, Mapping


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time view of the request counter and the store size."""

    total_requests: int
    database_size: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class KVStore:
    """
    Thread-safe in-memory key-value store with a request counter.

    The store is created once at process start and handed to every
    component that needs it. Nothing is persisted.

    Internal Storage:
        _data: plain dict of key -> value
        _requests: number of requests counted so far

    All reads and writes of either field happen under ``_lock``; no
    method ever returns a live reference to ``_data``.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[str, str] = {}
        self._requests = 0

    def set(self, pairs: Mapping[str, str]) -> None:
        """
        Merge key-value pairs into the store.

        Existing keys are overwritten. The whole batch is applied under a
        single lock acquisition, so concurrent readers see either none or
        all of it.

        Args:
            pairs: Mapping of keys to values to store
        """
        with self._lock:
            self._data.update(pairs)

    def get_all(self) -> Dict[str, str]:
        """
        Return a copy of the current contents.

        Returns:
            New dict owned by the caller
        """
        with self._lock:
            return dict(self._data)

    def delete(self, key: str) -> bool:
        """
        Delete a key.

        Args:
            key: The key to delete

        Returns:
            True if the key was deleted, False if it didn't exist
        """
        with self._lock:
            if key not in self._data:
                return False
            del self._data[key]
            return True

    def increment_requests(self) -> int:
        """Count one request and return the new total."""
        with self._lock:
            self._requests += 1
            return self._requests

    def stats(self) -> StatsSnapshot:
        """
        Read the request counter and the store size at the same instant.

        Returns:
            StatsSnapshot with total_requests and database_size
        """
        with self._lock:
            return StatsSnapshot(
                total_requests=self._requests,
                database_size=len(self._data),
            )

    def size(self) -> int:
        """Get the current number of keys in the store."""
        with self._lock:
            return len(self._data)

    def clear(self) -> None:
        """Remove all keys from the store. The request counter is kept."""
        with self._lock:
            self._data.clear()
