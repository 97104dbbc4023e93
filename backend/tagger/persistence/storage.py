"""
Key/value storage backends.

The tagger persists one JSON document under one fixed key. The backend
only has to get, set and remove strings by key.

Every operation returns a StorageResult instead of raising. Storage can
be missing, read-only or full; the caller decides what a failure means.
"""

import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


DEFAULT_STORAGE_DIR = Path.home() / ".match_tagger"

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class StorageResult:
    """Outcome of a single storage operation."""

    ok: bool
    value: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Optional[str] = None) -> "StorageResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "StorageResult":
        return cls(ok=False, error=error)


@runtime_checkable
class KeyValueStorage(Protocol):
    """
    Read/write contract of the durable store.

    get() on a missing key is a success with value None.
    Implementations must not raise.
    """

    def get(self, key: str) -> StorageResult: ...

    def set(self, key: str, value: str) -> StorageResult: ...

    def remove(self, key: str) -> StorageResult: ...


class JsonFileStorage:
    """
    Directory-backed storage: one file per key.

    Writes go to a temp file in the same directory and are moved into
    place, so a crash mid-write leaves the previous document intact.
    """

    def __init__(self, storage_dir: Optional[Path] = None):
        """
        Initialize file storage.

        The directory is created lazily on first write.

        Args:
            storage_dir: Directory holding the documents.
                         Defaults to ~/.match_tagger
        """
        self.storage_dir = Path(storage_dir) if storage_dir else DEFAULT_STORAGE_DIR

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.storage_dir / f"{key}.json"

    def get(self, key: str) -> StorageResult:
        try:
            path = self.path_for(key)
            if not path.exists():
                return StorageResult.success(None)
            return StorageResult.success(path.read_text(encoding="utf-8"))
        except (OSError, ValueError, UnicodeDecodeError) as e:
            return StorageResult.failure(f"Failed to read {key}: {e}")

    def set(self, key: str, value: str) -> StorageResult:
        tmp_name = None
        try:
            path = self.path_for(key)
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{key}.", suffix=".tmp", dir=str(self.storage_dir)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
            tmp_name = None
            return StorageResult.success()
        except (OSError, ValueError) as e:
            return StorageResult.failure(f"Failed to write {key}: {e}")
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug(f"Could not remove temp file {tmp_name}")

    def remove(self, key: str) -> StorageResult:
        try:
            self.path_for(key).unlink(missing_ok=True)
            return StorageResult.success()
        except (OSError, ValueError) as e:
            return StorageResult.failure(f"Failed to remove {key}: {e}")


class MemoryStorage:
    """
    In-process storage for tests and throwaway sessions.

    Can simulate an unavailable backend and a quota, which is how the
    browser store fails in practice.
    """

    def __init__(self, quota: Optional[int] = None):
        """
        Args:
            quota: Maximum total characters stored (None = unlimited)
        """
        self._data: Dict[str, str] = {}
        self.quota = quota
        self.available = True

    def get(self, key: str) -> StorageResult:
        if not self.available:
            return StorageResult.failure("Storage unavailable")
        return StorageResult.success(self._data.get(key))

    def set(self, key: str, value: str) -> StorageResult:
        if not self.available:
            return StorageResult.failure("Storage unavailable")
        if self.quota is not None:
            used = sum(len(v) for k, v in self._data.items() if k != key)
            if used + len(value) > self.quota:
                return StorageResult.failure("Storage quota exceeded")
        self._data[key] = value
        return StorageResult.success()

    def remove(self, key: str) -> StorageResult:
        if not self.available:
            return StorageResult.failure("Storage unavailable")
        self._data.pop(key, None)
        return StorageResult.success()

    def raw(self, key: str) -> Optional[str]:
        """Direct read, bypassing availability. For tests."""
        return self._data.get(key)

    def put_raw(self, key: str, value: str) -> None:
        """Direct write, bypassing availability and quota. For tests."""
        self._data[key] = value
