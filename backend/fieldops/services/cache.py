"""
In-process cache for access-control configuration.

Holds the last computed effective permission map and the last loaded
custom-role list. Entries never expire on their own; they are dropped only
by ``invalidate()``, which every configuration write calls before returning.
The cache is an optimisation for a single process: other workers always
re-read the record store after their own invalidation or restart.
"""
from __future__ import annotations

from threading import Lock
from typing import Any, Optional

EFFECTIVE_PERMISSIONS = "effective_permissions"
CUSTOM_ROLES = "custom_roles"


class ConfigCache:
    """
    Thread-safe cache with generation-checked writes.

    A reader records ``generation`` before loading from the store and passes
    it back to ``set()``. If an invalidation happened in between, the write is
    discarded, so a slow load can never repopulate the cache with data read
    before a mutation was acknowledged.
    """

    def __init__(self):
        self._entries: dict[str, Any] = {}
        self._generation = 0
        self._lock = Lock()

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, key: str) -> Optional[Any]:
        """
        Get a value from the cache.

        Args:
            key: Cache slot name

        Returns:
            Cached value or None if the slot is empty
        """
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: Any, generation: int) -> bool:
        """
        Store a value if no invalidation happened since *generation*.

        Args:
            key: Cache slot name
            value: Value to cache
            generation: Generation observed before the value was loaded

        Returns:
            True if the value was stored
        """
        with self._lock:
            if generation != self._generation:
                return False
            self._entries[key] = value
            return True

    def invalidate(self):
        """Drop every slot and advance the generation."""
        with self._lock:
            self._entries.clear()
            self._generation += 1

    def size(self) -> int:
        """Get the number of populated slots."""
        with self._lock:
            return len(self._entries)
