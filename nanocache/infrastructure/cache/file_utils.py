"""Backing file naming and bulk deletion helpers."""

import hashlib
import logging
from pathlib import Path
from typing import Iterable, Union

# Domain Layer Imports
from nanocache.domain.models.common import CacheFormat

logger = logging.getLogger(__name__)

def hash_filename(name: str) -> str:
    """MD5 hex digest of the logical cache name, so the file name does not reveal it."""
    return hashlib.md5(name.encode("utf-8")).hexdigest()

def cache_file_path(
    directory: Union[str, Path],
    name: str,
    extension: Union[CacheFormat, str] = CacheFormat.JSON,
) -> Path:
    """Combines directory, hashed name and extension into the backing file path."""
    suffix = extension.value if isinstance(extension, CacheFormat) else str(extension)
    return Path(directory) / f"{hash_filename(name)}{suffix}"

def remove_cache_files(
    directory: Union[str, Path],
    names: Iterable[str],
    extension: Union[CacheFormat, str] = CacheFormat.JSON,
) -> bool:
    """Deletes the backing file of each logical name found in directory.

    Names without a file are skipped. Returns True only if every file that
    existed was deleted.
    """
    success = True
    for name in names:
        file_path = cache_file_path(directory, name, extension)
        if not file_path.exists():
            logger.debug(f"No cache file for '{name}' at {file_path}, skipping.")
            continue
        try:
            file_path.unlink()
            logger.info(f"Deleted cache file for '{name}': {file_path}")
        except OSError as e:
            logger.warning(f"Failed to delete cache file {file_path}: {e}")
            success = False
    return success
