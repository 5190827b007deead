"""Cache Store: the get-or-compute protocol over a single backing file.

Ties the record table, the payload codec and the persistence codec together.
Every mutation rewrites the whole table to disk before returning. Eviction of
expired, unlocked records runs before each read when auto-evict is enabled.
"""

import logging
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

# Domain Layer Imports
from nanocache.domain.exceptions import InvalidKeyError
from nanocache.domain.interfaces.cache import CacheService
from nanocache.domain.models.common import (
    DEFAULT_CACHE_NAME,
    DEFAULT_TTL_SECONDS,
    HASH_SUM_KEY,
    CacheFormat,
    CacheKey,
    CacheRecord,
    RefreshCallback,
)

# Infrastructure Layer Imports
from nanocache.infrastructure.cache.file_utils import cache_file_path
from nanocache.infrastructure.cache.payload_codec import PayloadCodec, get_serializer
from nanocache.infrastructure.cache.persistence_codec import CORRUPT_POLICY_DELETE, PersistenceCodec
from nanocache.infrastructure.cache.record_table import Clock, RecordTable
from nanocache.infrastructure.config.settings import CacheSettings

logger = logging.getLogger(__name__)

# Expiry given to anything written while debugging
DEBUG_TTL_SECONDS = 1


class CacheStore(CacheService):
    """Key-addressed cache held in memory and mirrored to one file."""

    def __init__(
        self,
        name: str = DEFAULT_CACHE_NAME,
        directory: Union[str, Path] = DEFAULT_CACHE_NAME,
        extension: Union[CacheFormat, str] = CacheFormat.JSON,
        ttl: int = DEFAULT_TTL_SECONDS,
        debug: bool = False,
        delete_expired: bool = True,
        base64_encode: bool = True,
        secure_access: bool = True,
        serializer: str = "json",
        corrupt_policy: str = CORRUPT_POLICY_DELETE,
        clock: Clock = time.time,
    ):
        """Initializes the store and loads its backing file if present.

        Args:
            name: Logical cache name; hashed to form the file name.
            directory: Directory holding the backing file.
            extension: On-disk flavor (CacheFormat member, suffix or name).
            ttl: Default time-to-live in seconds.
            debug: Always call the refresh callback and skip table reads.
            delete_expired: Evict expired, unlocked records before every read.
            base64_encode: Apply the base64 text transform to payloads.
            secure_access: Write the access-denial preamble for the PHP flavor.
            serializer: Payload serializer name ('json' or 'pickle').
            corrupt_policy: 'delete' or 'quarantine' for files failing verification.
            clock: Time source, in seconds.

        Raises:
            CorruptCacheError: If an existing backing file fails verification.
            UnreadableCacheError: If an existing backing file cannot be read.
        """
        self._name = name
        self._directory = Path(directory)
        self._format = CacheFormat.from_value(extension)
        self._ttl = ttl
        self._debug = debug
        self._delete_expired = delete_expired
        self._secure_access = secure_access
        self._corrupt_policy = corrupt_policy
        self._payload_codec = PayloadCodec(get_serializer(serializer), base64_enabled=base64_encode)
        self._table = RecordTable(clock=clock)
        self._codec = self._build_codec()
        self._response: Any = None

        self.reload()
        if self._delete_expired:
            self.remove_if_expired()
        logger.info(f"CacheStore initialized. name={name}, file={self.get_cache_file_path()}, ttl={ttl}s")

    @classmethod
    def from_settings(cls, settings: CacheSettings, **overrides: Any) -> "CacheStore":
        """Builds a store from loaded configuration; keyword overrides win."""
        options = dict(
            name=settings.name,
            directory=settings.directory,
            extension=settings.extension,
            ttl=settings.ttl,
            debug=settings.debug,
            delete_expired=settings.delete_expired,
            base64_encode=settings.base64_encode,
            secure_access=settings.secure_access,
            serializer=settings.serializer,
            corrupt_policy=settings.corrupt_policy,
        )
        options.update(overrides)
        return cls(**options)

    # --- Configuration surface ---

    def _build_codec(self) -> PersistenceCodec:
        return PersistenceCodec(
            self.get_cache_file_path(),
            secure_preamble=self._secure_access and self._format.supports_preamble,
            corrupt_policy=self._corrupt_policy,
        )

    def _repoint(self) -> None:
        """Rebuilds the codec for a new path and reloads the table from it."""
        self._codec = self._build_codec()
        self.reload()

    def set_cache_location(self, directory: Union[str, Path]) -> "CacheStore":
        self._directory = Path(directory)
        self._repoint()
        return self

    def set_filename(self, name: str) -> "CacheStore":
        self._name = name
        self._repoint()
        return self

    def set_extension(self, extension: Union[CacheFormat, str]) -> "CacheStore":
        self._format = CacheFormat.from_value(extension)
        self._repoint()
        return self

    def set_debug_mode(self, mode: bool) -> "CacheStore":
        self._debug = mode
        return self

    def set_expire(self, ttl: int = DEFAULT_TTL_SECONDS) -> "CacheStore":
        self._ttl = ttl
        return self

    def enable_base64(self, encode: bool) -> "CacheStore":
        """Switches the payload transform. Records written with the other setting become unreadable."""
        self._payload_codec.base64_enabled = encode
        return self

    def enable_delete_expired(self, allow: bool) -> "CacheStore":
        """Turns read-time eviction on or off; turning it on evicts immediately."""
        self._delete_expired = allow
        if allow:
            self.remove_if_expired()
        return self

    def enable_secure_access(self, secure: bool) -> "CacheStore":
        self._secure_access = secure
        self._codec.secure_preamble = secure and self._format.supports_preamble
        return self

    def get_cache_file_path(self) -> Path:
        return cache_file_path(self._directory, self._name, self._format)

    @property
    def name(self) -> str:
        return self._name

    @property
    def ttl(self) -> int:
        return self._ttl

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def table(self) -> RecordTable:
        return self._table

    # --- Persistence ---

    def reload(self) -> "CacheStore":
        """Replaces the in-memory table with the backing file's contents (empty if absent)."""
        if self._codec.exists():
            self._table.replace(self._codec.load())
        else:
            logger.debug(f"No cache file at {self._codec.path}, starting with an empty table.")
            self._table.replace({})
        return self

    def save(self) -> None:
        """Writes the whole table to disk.

        Raises:
            PersistFailureError: If the write fails; the in-memory table is kept.
        """
        self._codec.save(self._table.snapshot())

    # --- Record table ---

    def has_cached(self, key: CacheKey) -> bool:
        return self._table.has_entry(key)

    def has_expired(self, key: CacheKey) -> bool:
        return self._table.is_expired(key)

    def remove_if_expired(self) -> int:
        counter = self._table.evict_expired()
        if counter > 0:
            logger.info(f"Removed {counter} expired cache record(s).")
            self.save()
        return counter

    def remove(self, key: CacheKey) -> bool:
        if not self._table.remove(key):
            return False
        self.save()
        logger.debug(f"Removed cache key: {key}")
        return True

    def remove_list(self, keys: Iterable[CacheKey]) -> List[bool]:
        return [self.remove(key) for key in keys]

    def clear_cache(self) -> None:
        self._table.clear()
        self.save()
        logger.info(f"Cleared cache table {self._name}")

    def remove_cache_file(self) -> bool:
        return self._codec.delete()

    # --- Get-or-compute ---

    def _validate_key(self, key: Any) -> None:
        if not isinstance(key, str) or key == HASH_SUM_KEY:
            raise InvalidKeyError(key)

    def build_data(
        self,
        key: CacheKey,
        data: Any,
        ttl: Optional[int] = None,
        locked: bool = False,
    ) -> "CacheStore":
        """Stores data under key with a fresh timestamp and saves the table.

        Raises:
            InvalidKeyError: If key is not a string or is the reserved checksum key.
            PersistFailureError: If the table cannot be written.
        """
        self._validate_key(key)
        expiration = self._ttl if ttl is None else ttl
        record = CacheRecord(
            timestamp=self._table.now(),
            ttl=DEBUG_TTL_SECONDS if self._debug else expiration,
            data=self._payload_codec.encode(data),
            locked=locked,
        )
        self._table.put(key, record)
        self.save()
        logger.debug(f"Stored cache key: {key} (ttl={record.ttl}s, locked={locked})")
        return self

    put = build_data

    def retrieve_data(self, key: CacheKey) -> Optional[Any]:
        """Returns the decoded payload for key, evicting stale records first if enabled."""
        if self._delete_expired:
            self.remove_if_expired()
        record = self._table.get(key)
        if record is None:
            logger.debug(f"Cache miss for key: {key}")
            return None
        return self._payload_codec.decode(record.data)

    def _refresh(self, key: CacheKey, callback: RefreshCallback, ttl: Optional[int], locked: bool) -> None:
        self._validate_key(key)
        if self._debug:
            logger.debug(f"Debug mode: refreshing key {key} without reading the table")
            self._response = callback()
            return

        if self.has_expired(key):
            logger.debug(f"Cache key expired or absent, refreshing: {key}")
            response = callback()
            if response:
                self.build_data(key, response, ttl, locked)
            else:
                logger.debug(f"Refresh for key {key} returned an empty value; not stored.")
        self._response = self.retrieve_data(key)

    def resolve(
        self,
        key: CacheKey,
        callback: RefreshCallback,
        ttl: Optional[int] = None,
        locked: bool = False,
    ) -> Any:
        self._refresh(key, callback, ttl, locked)
        return self._response

    def resolve_quietly(
        self,
        key: CacheKey,
        callback: RefreshCallback,
        ttl: Optional[int] = None,
        locked: bool = False,
    ) -> None:
        """Like resolve, but only updates the current response for get() and row()."""
        self._refresh(key, callback, ttl, locked)

    def on_expired(self, key: CacheKey, callback: RefreshCallback) -> Any:
        """resolve() with the default TTL and no lock."""
        return self.resolve(key, callback, self._ttl, False)

    def on_one_expired(self, key: CacheKey, callback: RefreshCallback) -> None:
        """resolve_quietly() with the default TTL and no lock."""
        self.resolve_quietly(key, callback, self._ttl, False)

    # --- Current response accessors ---

    def get(self, key: Optional[str] = None) -> Any:
        """Returns the last resolved value, or one field of it when key is given."""
        if not key:
            return self._response
        if isinstance(self._response, Mapping):
            return self._response.get(key)
        return None

    def row(self) -> Any:
        """Returns the 'row' field of the last resolved value, or an empty list."""
        if isinstance(self._response, Mapping) and "row" in self._response:
            return self._response["row"]
        return []
