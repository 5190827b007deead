"""Whole-table persistence with a checksum envelope.

File layout (one line of JSON, optionally preceded by a preamble line):

    <?php header("Content-type: text/plain"); die("Access denied"); ?>
    {"<key>": {"data": ..., "expire": 60, "lock": false, "time": 1700000000}, ..., "hash-sum": "<md5>"}

The checksum is the MD5 of the canonical JSON of the table without the
"hash-sum" key. It detects corruption, not tampering. Every save rewrites the
whole file through a temporary sibling and os.replace.
"""

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Union

# Domain Layer Imports
from nanocache.domain.exceptions import CorruptCacheError, PersistFailureError, UnreadableCacheError
from nanocache.domain.models.common import HASH_SUM_KEY, CacheRecord, Checksum

logger = logging.getLogger(__name__)

PREAMBLE = '<?php header("Content-type: text/plain"); die("Access denied"); ?>'
PREAMBLE_MARKER = "<?php"
LINE_TERMINATOR = "\n"
DIRECTORY_MODE = 0o755

CORRUPT_POLICY_DELETE = "delete"
CORRUPT_POLICY_QUARANTINE = "quarantine"
CORRUPT_POLICIES = (CORRUPT_POLICY_DELETE, CORRUPT_POLICY_QUARANTINE)
QUARANTINE_SUFFIX = ".corrupt"

def canonical_json(data: Dict[str, Any]) -> str:
    """Stable serialization used both for the file body and for the checksum."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=True)

def compute_checksum(table: Dict[str, Any]) -> Checksum:
    return Checksum(hashlib.md5(canonical_json(table).encode("ascii")).hexdigest())

def strip_preamble(text: str) -> str:
    """Drops everything up to and including the first line terminator of a preamble line."""
    if not text.startswith(PREAMBLE_MARKER):
        return text
    position = text.find(LINE_TERMINATOR)
    if position == -1:
        return ""
    return text[position + 1:]


class PersistenceCodec:
    """Reads and writes one backing file."""

    def __init__(
        self,
        path: Union[str, Path],
        secure_preamble: bool = False,
        corrupt_policy: str = CORRUPT_POLICY_DELETE,
    ):
        if corrupt_policy not in CORRUPT_POLICIES:
            raise ValueError(f"Invalid corrupt policy '{corrupt_policy}'. Choose one of: {', '.join(CORRUPT_POLICIES)}")
        self.path = Path(path)
        self.secure_preamble = secure_preamble
        self.corrupt_policy = corrupt_policy

    def exists(self) -> bool:
        return self.path.is_file()

    # --- Writing ---

    def serialize(self, records: Dict[str, CacheRecord]) -> str:
        """Builds the full file content for a table."""
        table = {key: record.to_dict() for key, record in records.items()}
        envelope = dict(table)
        envelope[HASH_SUM_KEY] = compute_checksum(table)
        body = canonical_json(envelope)
        if self.secure_preamble:
            return PREAMBLE + LINE_TERMINATOR + body
        return body

    def save(self, records: Dict[str, CacheRecord]) -> None:
        """Writes the whole table.

        Raises:
            PersistFailureError: If the directory or file cannot be written.
        """
        content = self.serialize(records)
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self._ensure_directory()
            temp_path.write_text(content, encoding="ascii")
            # Use os.replace for atomic operation (works on Windows and Unix)
            os.replace(str(temp_path), str(self.path))
        except OSError as e:
            logger.error(f"Failed to write cache file {self.path}: {e}")
            try:
                temp_path.unlink(missing_ok=True)
            except OSError as cleanup_err:
                logger.warning(f"Failed to remove temporary cache file {temp_path}: {cleanup_err}")
            raise PersistFailureError(self.path, e) from e
        logger.debug(f"Saved {len(records)} record(s) to {self.path}")

    def _ensure_directory(self) -> None:
        directory = self.path.parent
        if directory.exists():
            return
        directory.mkdir(parents=True, exist_ok=True)
        directory.chmod(DIRECTORY_MODE)
        logger.info(f"Created cache directory: {directory}")

    # --- Reading ---

    def load(self) -> Dict[str, CacheRecord]:
        """Reads and verifies the backing file.

        Raises:
            UnreadableCacheError: If the file is missing, unreadable or empty.
            CorruptCacheError: If parsing or the checksum check fails. The
                file is removed (or quarantined) before this is raised.
        """
        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise UnreadableCacheError(self.path, str(e)) from e
        if not raw:
            raise UnreadableCacheError(self.path, "file is empty")

        try:
            body = strip_preamble(raw.decode("utf-8"))
            data = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self._discard(f"Cannot deserialize cache file ({e})")
        if not isinstance(data, dict):
            self._discard("Cache file does not hold a table")

        if HASH_SUM_KEY not in data:
            self._discard("No hash found in cache file")
        # Body must be byte-identical to its canonical form
        if canonical_json(data) != body:
            self._discard("Cache data miss-hashed")
        stored_hash = data.pop(HASH_SUM_KEY)
        if stored_hash != compute_checksum(data):
            self._discard("Cache data miss-hashed")

        try:
            records = {key: CacheRecord.from_dict(raw_record) for key, raw_record in data.items()}
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            self._discard(f"Malformed cache record ({e!r})")
        logger.debug(f"Loaded {len(records)} record(s) from {self.path}")
        return records

    def _discard(self, reason: str) -> None:
        """Applies the corrupt-file policy and raises CorruptCacheError."""
        logger.error(f"{reason}: {self.path}")
        try:
            if self.corrupt_policy == CORRUPT_POLICY_QUARANTINE:
                quarantine_path = self.path.with_name(self.path.name + QUARANTINE_SUFFIX)
                os.replace(str(self.path), str(quarantine_path))
                logger.warning(f"Quarantined corrupt cache file to {quarantine_path}")
            else:
                self.path.unlink(missing_ok=True)
                logger.warning(f"Deleted corrupt cache file {self.path}")
        except OSError as e:
            logger.error(f"Failed to remove corrupt cache file {self.path}: {e}")
        raise CorruptCacheError(self.path, reason)

    def delete(self) -> bool:
        """Removes the backing file. Returns True if it existed and was removed."""
        if not self.path.exists():
            return False
        try:
            self.path.unlink()
        except OSError as e:
            logger.error(f"Failed to remove cache file {self.path}: {e}")
            return False
        logger.info(f"Removed cache file {self.path}")
        return True
