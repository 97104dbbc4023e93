"""
Persistence layer for the tagging session.

One versioned JSON document per variant, stored under a fixed key in a
key/value backend. Storage is best-effort: failures come back as values
and never interrupt the running session.
"""

from .errors import PersistenceError, MigrationError, CorruptBlobError
from .storage import (
    StorageResult,
    KeyValueStorage,
    JsonFileStorage,
    MemoryStorage,
    DEFAULT_STORAGE_DIR,
)
from .migrations import SCHEMA_VERSION, coerce_int, detect_version, migrate
from .store import (
    LoadStatus,
    LoadOutcome,
    SessionStore,
    session_to_blob,
    blob_to_session,
)

__all__ = [
    "PersistenceError",
    "MigrationError",
    "CorruptBlobError",
    "StorageResult",
    "KeyValueStorage",
    "JsonFileStorage",
    "MemoryStorage",
    "DEFAULT_STORAGE_DIR",
    "SCHEMA_VERSION",
    "coerce_int",
    "detect_version",
    "migrate",
    "LoadStatus",
    "LoadOutcome",
    "SessionStore",
    "session_to_blob",
    "blob_to_session",
]
