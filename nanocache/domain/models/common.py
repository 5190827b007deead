"""Defines common Value Objects used across the cache store.

These objects represent the cache key, the per-key record and the
selectable on-disk flavors, ensuring consistency between the record
table, the persistence codec and the orchestration layer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, NewType

# === Core Value Objects ===

CacheKey = NewType("CacheKey", str)              # Unique key for a cache entry
EncodedPayload = NewType("EncodedPayload", str)  # Payload after serialization + text transform
Checksum = NewType("Checksum", str)              # Hex digest stored under the reserved key

# Callback invoked when a key needs to be refreshed
RefreshCallback = Callable[[], Any]

# Reserved envelope key; never a valid cache key
HASH_SUM_KEY = "hash-sum"

DEFAULT_CACHE_NAME = "nanoBlockCache"
DEFAULT_TTL_SECONDS = 60


class CacheFormat(str, Enum):
    """On-disk flavors. The value is the file suffix."""

    PHP = ".catch.php"
    JSON = ".json"
    TEXT = ".txt"

    @property
    def supports_preamble(self) -> bool:
        """Only the flavor a web server would execute takes the access-denial line."""
        return self is CacheFormat.PHP

    @classmethod
    def from_value(cls, value: Any) -> "CacheFormat":
        """Accepts an enum member, a suffix ('.json') or a name ('json')."""
        if isinstance(value, CacheFormat):
            return value
        text = str(value).strip()
        for member in cls:
            if text == member.value or text.lower() == member.name.lower():
                return member
        raise ValueError(f"Unknown cache format: {value!r}")


# --- Structured Data ---

@dataclass
class CacheRecord:
    """One key's stored value plus its timestamp, TTL and lock flag."""

    timestamp: int
    ttl: int
    data: EncodedPayload
    locked: bool = False

    def to_dict(self) -> Dict[str, Any]:
        # Short field names keep the on-disk layout compact
        return {
            "time": self.timestamp,
            "expire": self.ttl,
            "data": self.data,
            "lock": self.locked,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CacheRecord":
        """Builds a record from its on-disk form.

        Raises:
            KeyError, TypeError, ValueError: If the mapping is malformed.
        """
        if not isinstance(raw, dict):
            raise TypeError(f"Cache record must be an object, got {type(raw).__name__}")
        data = raw["data"]
        if not isinstance(data, str):
            raise TypeError(f"Cache record data must be text, got {type(data).__name__}")
        return cls(
            timestamp=int(raw["time"]),
            ttl=int(raw["expire"]),
            data=EncodedPayload(data),
            locked=bool(raw.get("lock", False)),
        )
