"""
Persistence-specific errors.

These never escape SessionStore. They are raised inside the migration
and decoding steps and turned into a LoadOutcome status there.
"""


class PersistenceError(Exception):
    """Base exception for persistence operations."""

    pass


class MigrationError(PersistenceError):
    """A stored blob could not be migrated to the current schema."""

    pass


class CorruptBlobError(PersistenceError):
    """A stored blob is not a JSON document of the expected shape."""

    pass
