"""nanocache: a single-file, key-addressed cache store with TTL expiry.

Values are produced on demand by a refresh callback, kept in memory and
mirrored to one checksummed file after every change.
"""

from nanocache.core.cache_store import CacheStore
from nanocache.domain.exceptions import (
    CacheError,
    CorruptCacheError,
    InvalidKeyError,
    PersistFailureError,
    UnreadableCacheError,
)
from nanocache.domain.models.common import CacheFormat
from nanocache.infrastructure.cache.file_utils import remove_cache_files

__version__ = "1.0.0"

__all__ = [
    'CacheStore',
    'CacheFormat',
    'CacheError',
    'CorruptCacheError',
    'InvalidKeyError',
    'PersistFailureError',
    'UnreadableCacheError',
    'remove_cache_files',
]
