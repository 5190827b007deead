"""Interface for the key-addressed cache store.

Defines the contract for the get-or-compute protocol and the record-level
operations (lookup, expiry checks, removal, eviction) that the command line
and other callers depend on.
"""

import abc
from typing import Any, Iterable, List, Optional

# Import relevant domain models
from nanocache.domain.models.common import CacheKey, RefreshCallback

class CacheService(abc.ABC):
    """Abstract Base Class for cache store operations."""

    @abc.abstractmethod
    def resolve(
        self,
        key: CacheKey,
        callback: RefreshCallback,
        ttl: Optional[int] = None,
        locked: bool = False,
    ) -> Any:
        """Returns the cached value for key, refreshing it through callback when stale.

        Args:
            key: The cache key.
            callback: Called with no arguments when the key is absent or expired.
            ttl: Time-to-live in seconds for a refreshed value (store default if None).
            locked: Whether a refreshed record is exempt from eviction.

        Returns:
            The value currently stored under key, or None.
        """
        pass

    @abc.abstractmethod
    def has_cached(self, key: CacheKey) -> bool:
        """Returns True if a record exists for key (fresh or stale)."""
        pass

    @abc.abstractmethod
    def has_expired(self, key: CacheKey) -> bool:
        """Returns True if key is absent or its record is stale."""
        pass

    @abc.abstractmethod
    def retrieve_data(self, key: CacheKey) -> Optional[Any]:
        """Returns the decoded payload for key, or None when absent."""
        pass

    @abc.abstractmethod
    def remove(self, key: CacheKey) -> bool:
        """Deletes the record for key regardless of its lock.

        Returns:
            True if the key existed.
        """
        pass

    @abc.abstractmethod
    def remove_list(self, keys: Iterable[CacheKey]) -> List[bool]:
        """Deletes several keys, returning one result per key."""
        pass

    @abc.abstractmethod
    def remove_if_expired(self) -> int:
        """Evicts every expired, unlocked record.

        Returns:
            The number of records removed.
        """
        pass

    @abc.abstractmethod
    def clear_cache(self) -> None:
        """Empties the table and flushes it to disk."""
        pass

    @abc.abstractmethod
    def remove_cache_file(self) -> bool:
        """Deletes the backing file.

        Returns:
            True if the file existed.
        """
        pass
