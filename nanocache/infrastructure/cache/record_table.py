"""In-memory record table with the expiry and eviction rules.

The table knows nothing about files; the cache store flushes it through the
persistence codec after each mutation.
"""

import logging
import time
from typing import Callable, Dict, Iterator, List, Optional, Tuple

# Domain Layer Imports
from nanocache.domain.models.common import CacheKey, CacheRecord

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class RecordTable:
    """Mapping of key to CacheRecord with TTL-based expiry."""

    def __init__(
        self,
        records: Optional[Dict[str, CacheRecord]] = None,
        clock: Clock = time.time,
    ):
        self._records: Dict[str, CacheRecord] = dict(records or {})
        self._clock = clock

    def now(self) -> int:
        """Current time in whole seconds, as stored in record timestamps."""
        return int(self._clock())

    def has_entry(self, key: CacheKey) -> bool:
        return key in self._records

    def is_expired(self, key: CacheKey) -> bool:
        """Returns True if key is absent or (now - timestamp) >= ttl.

        An unknown key always counts as expired so that callers refresh it.
        """
        record = self._records.get(key)
        if record is None:
            return True
        return (self.now() - record.timestamp) >= record.ttl

    def get(self, key: CacheKey) -> Optional[CacheRecord]:
        return self._records.get(key)

    def put(self, key: CacheKey, record: CacheRecord) -> None:
        self._records[key] = record

    def remove(self, key: CacheKey) -> bool:
        """Removes key regardless of its lock flag. Returns whether it existed."""
        if key not in self._records:
            return False
        del self._records[key]
        return True

    def evict_expired(self) -> int:
        """Removes every expired record that is not locked.

        Returns:
            The number of records removed.
        """
        expired_keys: List[str] = [
            key for key, record in self._records.items()
            if self.is_expired(key) and not record.locked
        ]
        for key in expired_keys:
            del self._records[key]
        if expired_keys:
            logger.debug(f"Evicted {len(expired_keys)} expired record(s): {expired_keys}")
        return len(expired_keys)

    def clear(self) -> None:
        self._records.clear()

    def replace(self, records: Dict[str, CacheRecord]) -> None:
        """Swaps in a freshly loaded set of records."""
        self._records = dict(records)

    def snapshot(self) -> Dict[str, CacheRecord]:
        """Shallow copy of the records, suitable for serialization."""
        return dict(self._records)

    def keys(self) -> List[str]:
        return list(self._records.keys())

    def items(self) -> List[Tuple[str, CacheRecord]]:
        return list(self._records.items())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._records))
