"""Error types raised by the cache store.

Every error is surfaced to the caller; the only recovery action the store
takes on its own is removing (or quarantining) a corrupt backing file.
"""

from pathlib import Path
from typing import Any, Optional, Union


class CacheError(Exception):
    """Base class for all cache store errors."""


class UnreadableCacheError(CacheError):
    """Raised when the backing file is missing, empty or cannot be read."""

    def __init__(self, path: Union[str, Path], reason: Optional[str] = None):
        self.path = Path(path)
        self.reason = reason
        message = f"Cannot load cache file! ({self.path})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CorruptCacheError(CacheError):
    """Raised when the backing file fails to parse or its checksum does not match.

    The file has already been removed (or quarantined) when this is raised,
    so a later load starts from an empty table.
    """

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{reason}, cache file removed ({self.path})")


class InvalidKeyError(CacheError, TypeError):
    """Raised when a key is not a string or collides with the reserved checksum key."""

    def __init__(self, key: Any):
        self.key = key
        if isinstance(key, str):
            message = f"Cache key {key!r} is reserved"
        else:
            message = f"Cache key must be a string, got type {type(key).__name__!r} instead"
        super().__init__(message)


class PersistFailureError(CacheError):
    """Raised when the table cannot be written to disk.

    The in-memory table is ahead of the file after this error; reload or
    save again before trusting reads.
    """

    def __init__(self, path: Union[str, Path], original_exception: Exception):
        self.path = Path(path)
        self.original_exception = original_exception
        super().__init__(f"Cannot save cache ({self.path}): {original_exception}")
